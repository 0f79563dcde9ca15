import argparse
import os
from functools import lru_cache
from pathlib import Path

DEFAULT_CONFIGFILE = "parley.yaml"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="parley",
        description=(
            "Start a Parley listener.\n\n"
            "The listener binds a TCP endpoint, accepts a connection, reads one\n"
            "request line, answers with one reply line and closes the connection."
        ),
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        help="Path to a Parley configuration file"
    )

    parser.add_argument(
        "-l", "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=(
            "Logging verbosity.\n"
            "DEBUG    → connection-level tracing.\n"
            "INFO     → listener lifecycle and exchanges (default).\n"
            "WARNING  → rejected connections and framing errors.\n"
            "ERROR    → failed sessions only.\n"
            "CRITICAL → only critical failures."
        ),
    )

    parser.add_argument(
        "--host",
        type=str,
        help="Override server.host from the configuration"
    )

    parser.add_argument(
        "--port",
        type=int,
        help="Override server.port from the configuration"
    )

    return parser


@lru_cache
def get_cli_args() -> argparse.Namespace:
    return build_parser().parse_args()


def resolve_configfile(cli_path: str | None) -> Path | None:
    """
    Priority: CLI > ENV > 'parley.yaml' in the current working directory.

    An explicitly requested file must exist. Without one, the default file
    is optional and built-in defaults apply when it is absent.
    """
    raw = cli_path or os.getenv("PARLEYCONFIG")

    if raw is None:
        file = Path.cwd() / DEFAULT_CONFIGFILE
        return file if file.is_file() else None

    file = Path(raw)
    if not file.is_file():
        raise SystemExit(
            f"[config] Configuration file not found: '{file}'.\n"
            "  - Use --config <file.yaml>\n"
            "  - Or set the PARLEYCONFIG environment variable\n"
            f"  - Or place a '{DEFAULT_CONFIGFILE}' file in the current working directory."
        )

    return file


@lru_cache
def get_configfile() -> Path | None:
    return resolve_configfile(get_cli_args().config)
