import asyncio
import contextlib
import functools
import importlib
import logging
import pkgutil
import signal
import sys
import threading
from collections.abc import Callable
from types import FrameType
from typing import Generator

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s:%(funcName)s] : %(message)s"

SHUTDOWN_SIGNALS = (
    signal.SIGINT,
    signal.SIGTERM,
)

if sys.platform == "win32":
    SHUTDOWN_SIGNALS += (signal.SIGBREAK,)


@contextlib.contextmanager
def setup_signal_handler(loop: asyncio.AbstractEventLoop) -> Generator[asyncio.Event, None, None]:
    """
    Turn SIGINT/SIGTERM into a stop event for the duration of the block.

    The handlers only set the event, thread-safely, so the running exchange
    can finish and close its connection. Original handlers are restored on
    exit. Outside the main thread, signals cannot be installed and the
    event is only set by the caller.
    """
    stop_event = asyncio.Event()

    if threading.current_thread() is not threading.main_thread():
        yield stop_event
        return

    def handle(sig: int, frame: FrameType | None) -> None:
        logging.getLogger("core.helpers.signal").info(
            f"Received {signal.Signals(sig).name}, stopping"
        )
        loop.call_soon_threadsafe(stop_event.set)

    original_handlers = {
        sig: signal.signal(sig, handle)
        for sig in SHUTDOWN_SIGNALS
    }

    try:
        yield stop_event
    finally:
        for sig, old in original_handlers.items():
            signal.signal(sig, old)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def import_submodules(package: str) -> list[str]:
    """Import every direct submodule of `package` and return their names."""
    py_package = importlib.import_module(package)
    names = []

    for module_info in pkgutil.iter_modules(py_package.__path__):
        module_name = f"{package}.{module_info.name}"
        importlib.import_module(module_name)
        names.append(module_name)

    return names


def scan(package: str):
    """
    Decorator importing every module of `package` before the decorated
    function runs, so that decorator-based registrations in those modules
    take effect.
    """
    def decorator(func: Callable):

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            import_submodules(package)
            return func(*args, **kwargs)

        return wrapper

    return decorator
