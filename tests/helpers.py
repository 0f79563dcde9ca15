import asyncio
import contextlib
import os
import socket
from typing import AsyncIterator, Callable

from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, YamlConfigSettingsSource

from parley.bootstrap.config.settings import ParleyConfig
from parley.core.models.config import ServerConfig
from parley.core.models.endpoint import Endpoint
from parley.core.responder import Responder
from parley.core.ports.framer import Framer
from parley.core.transport.application import Application
from parley.core.transport.server import Listener
from parley.infra.line_framer import LineFramer


class FakeParleyConfig(ParleyConfig, BaseSettings):
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=os.environ["TEST_PARLEYCONFIG"]),
        )


def make_server_config(app: Application | None = None, **kwargs) -> ServerConfig:
    kwargs.setdefault("timeout_graceful_shutdown", 1.0)
    kwargs.setdefault("read_timeout", 5.0)
    kwargs.setdefault("write_timeout", 5.0)
    kwargs.setdefault("endpoint", Endpoint("127.0.0.1", 0))
    return ServerConfig(app=app or Responder(), **kwargs)


def closed_port() -> int:
    """Return a local port nobody listens on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@contextlib.asynccontextmanager
async def running_listener(config: ServerConfig, framer: Framer | None = None) -> AsyncIterator[Listener]:
    listener = Listener(config, framer or LineFramer(), asyncio.get_running_loop())
    await listener.bind()
    try:
        yield listener
    finally:
        await listener.shutdown()


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async def poll():
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout)
