import logging

from parley.bootstrap.config.loader import get_cli_args
from parley.bootstrap.deps import get_cp
from parley.core.errors import AddressInUseError
from parley.core.helpers.utils import setup_signal_handler, setup_logging


def main() -> None:
    cli = get_cli_args()
    setup_logging(cli.log_level)
    logger = logging.getLogger("parley.boot")

    controlplane = get_cp()
    loop = controlplane.loop

    try:
        with setup_signal_handler(loop) as stop_event:
            loop.run_until_complete(controlplane.start(stop_event))
    except (AddressInUseError, PermissionError) as ex:
        logger.error(f"Cannot start listener: {ex}")
        raise SystemExit(1)
    except OSError as ex:
        logger.error(f"Cannot start listener ({ex.__class__.__name__}): {ex}")
        raise SystemExit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        try:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.run_until_complete(loop.shutdown_default_executor())
        finally:
            loop.close()


if __name__ == "__main__":
    main()
