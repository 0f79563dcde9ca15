import ssl
from dataclasses import dataclass

from parley.core.models.endpoint import Endpoint
from parley.core.transport.application import Application


@dataclass
class ServerConfig:
    """
    Static configuration for a Parley Listener.

    This structure defines all parameters required to bind and serve:
    networking, optional TLS, session limits, timeouts and graceful
    shutdown behavior.
    """
    app: Application
    """
    The application coroutine run for each accepted connection:
        async def app(receive, send)
    """

    endpoint: Endpoint
    """
    Address to bind. Port 0 lets the OS select an available port.
    """

    backlog: int = 128
    """
    Maximum number of pending TCP connections waiting for accept().
    """

    ssl_ctx: ssl.SSLContext | None = None
    """
    TLS context used to secure incoming connections, plain TCP when None.
    """

    single_shot: bool = True
    """
    Accept exactly one connection, then stop listening.
    """

    limit_concurrency: int = 1024
    """
    Maximum number of concurrent sessions when single_shot is disabled.
    """

    read_timeout: float | None = 30.0
    """
    Seconds a session waits for the request message. None waits forever.
    """

    write_timeout: float | None = 30.0
    """
    Seconds a session waits for the transport to accept the reply.
    """

    timeout_graceful_shutdown: float = 5.0
    """
    Maximum time (in seconds) allowed for graceful shutdown. After this
    timeout, remaining session tasks are cancelled.
    """


@dataclass
class ClientConfig:
    """
    Static configuration for an Initiator.
    """
    endpoint: Endpoint

    ssl_ctx: ssl.SSLContext | None = None

    connect_timeout: float | None = 5.0
    """
    Seconds allowed to establish the connection.
    """

    read_timeout: float | None = 30.0

    write_timeout: float | None = 30.0

    connect_retries: int = 0
    """
    Extra connect attempts after a refused or timed-out connect.
    0 disables retrying.
    """
