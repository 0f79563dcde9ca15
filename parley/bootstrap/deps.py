import json
from functools import lru_cache

from pydantic import ValidationError

from parley.bootstrap.config.loader import get_cli_args
from parley.bootstrap.config.settings import ParleyConfig
from parley.core.controlplane import ControlPlane
from parley.core.models.config import ServerConfig
from parley.core.ports.framer import Framer
from parley.core.responder import EchoReply, Replier, Responder, StaticReply
from parley.infra.framers import create_framer


@lru_cache
def get_cp() -> ControlPlane:
    config = get_config()
    return build_cp(config)


def build_cp(config: ParleyConfig, loop=None) -> ControlPlane:
    server = config.server
    session = config.session

    server_config = ServerConfig(
        app=build_responder(config),
        endpoint=server.endpoint,
        backlog=server.backlog,
        ssl_ctx=config.get_server_ssl_ctx(),
        single_shot=server.single_shot,
        limit_concurrency=server.limit_concurrency,
        read_timeout=session.read_timeout,
        write_timeout=session.write_timeout,
        timeout_graceful_shutdown=server.timeout_graceful_shutdown,
    )

    return ControlPlane(config=server_config, framer=build_framer(config), loop=loop)


def build_framer(config: ParleyConfig) -> Framer:
    return create_framer(config.session.framing, config.session.max_message_size)


def build_responder(config: ParleyConfig) -> Responder:
    settings = config.responder
    replier: Replier
    if settings.mode == "echo":
        replier = EchoReply(settings.echo_prefix)
    else:
        replier = StaticReply(settings.reply)
    return Responder(replier)


@lru_cache
def get_config() -> ParleyConfig:
    cli = get_cli_args()
    overrides: dict = {}
    if cli.host is not None:
        overrides["host"] = cli.host
    if cli.port is not None:
        overrides["port"] = cli.port

    try:
        if overrides:
            return ParleyConfig(server=overrides)  # type: ignore[arg-type]
        return ParleyConfig()
    except FileNotFoundError as ex:
        raise SystemExit(f"Provide a correct configuration file path: {ex}")
    except ValidationError as ex:
        msg = ["Configuration validation failed:"]
        errs = json.loads(ex.json())
        for err in errs:
            msg.append(f"  {'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}")
        raise SystemExit("\n".join(msg))
