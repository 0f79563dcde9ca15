import asyncio
import errno
import logging

from parley.core.errors import AddressInUseError, ListenerClosedError
from parley.core.models.config import ServerConfig
from parley.core.models.state import ServerState
from parley.core.ports.framer import Framer
from parley.core.transport.protocol import Protocol
from parley.core.transport.session import ResponderSession


class Listener:
    """
    Owns the lifecycle of a TCP listening socket: bind, admission of
    accepted connections, and graceful shutdown.

    It binds to the configured endpoint using asyncio's create_server. Each
    accepted connection gets a Protocol instance that builds a
    ResponderSession and runs the configured application on it.

    In single-shot mode (the default) exactly one connection is admitted.
    The listening socket is closed as soon as that connection is made, and
    any connection that already sat in the backlog is aborted, so no second
    session can ever start. `accept_one()` returns the admitted session.

    With single-shot disabled, connections keep being admitted up to
    `limit_concurrency` live sessions; connections above the limit are
    aborted.

    On shutdown, the Listener closes the listening socket, asks all live
    sessions to close, and waits for their tasks. If the graceful shutdown
    timeout is exceeded, remaining tasks are cancelled and an error is
    logged.
    """
    def __init__(
        self,
        config: ServerConfig,
        framer: Framer,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._config = config
        self._framer = framer
        self._loop = loop or asyncio.get_event_loop()
        self.state = ServerState()
        self._logger = logging.getLogger("core.transport.server")

        self._server: asyncio.AbstractServer | None = None
        self._listen: tuple[str, int] | None = None
        self._first: asyncio.Future[ResponderSession] | None = None
        self._accept_called = False
        self._closing = False

    @property
    def running(self) -> bool:
        return self._server is not None and self._server.is_serving()

    @property
    def listen(self) -> tuple[str, int]:
        if self._listen is None:
            raise RuntimeError("Listener is not bound")
        return self._listen

    def create_protocol(self) -> asyncio.Protocol:
        return Protocol(
            config=self._config,
            server_state=self.state,
            framer=self._framer,
            admit=self._admit,
            loop=self._loop,
        )

    async def bind(self) -> None:
        if self._server is not None:
            raise RuntimeError("Listener is already bound")

        endpoint = self._config.endpoint
        self._first = self._loop.create_future()
        self._first.add_done_callback(_consume_exception)

        try:
            self._server = await self._loop.create_server(
                self.create_protocol,
                host=endpoint.host,
                port=endpoint.port,
                backlog=self._config.backlog,
                ssl=self._config.ssl_ctx,
            )
        except OSError as ex:
            self._first.cancel()
            self._first = None
            if ex.errno == errno.EADDRINUSE:
                raise AddressInUseError(endpoint.host, endpoint.port) from ex
            if ex.errno in (errno.EACCES, errno.EPERM):
                raise PermissionError(
                    ex.errno, f"Permission denied to bind {endpoint}"
                ) from ex
            raise

        sockname = self._server.sockets[0].getsockname()
        self._listen = (sockname[0], sockname[1])

        mode = "single-shot" if self._config.single_shot else "serve"
        self._logger.info("Listening on %s:%d (%s)", *self._listen, mode)

    async def accept_one(self, timeout: float | None = None) -> ResponderSession:
        """
        Wait until a peer connects and return the session owning it.

        Raises ListenerClosedError if the Listener shuts down first, and
        TimeoutError if no peer arrives within `timeout` seconds.
        """
        if self._first is None:
            raise RuntimeError("Listener is not bound")
        if self._accept_called:
            raise RuntimeError("accept_one() can only be called once")
        self._accept_called = True

        return await asyncio.wait_for(asyncio.shield(self._first), timeout)

    async def shutdown(self) -> None:
        self._closing = True

        if self._server:
            self._server.close()

        if self._first is not None and not self._first.done():
            self._first.set_exception(
                ListenerClosedError("Listener closed before a peer connected")
            )

        for session in self.state.sessions.copy():
            session.shutdown()

        try:
            await asyncio.wait_for(
                self._wait_task_complete(),
                timeout=self._config.timeout_graceful_shutdown
            )
        except TimeoutError:
            self._logger.error(
                f"Cancel {len(self.state.tasks)} running session(s), "
                f"timeout graceful shutdown: {self.state.tasks}"
            )
            for task in self.state.tasks:
                task.cancel("Session cancelled, timeout graceful shutdown exceeded")

        if self._listen is not None:
            self._logger.info("Listener on %s:%d stopped", *self._listen)

    def _admit(self, session: ResponderSession) -> bool:
        if self._closing:
            self.state.rejected += 1
            return False

        if self._config.single_shot and self.state.accepted >= 1:
            self.state.rejected += 1
            return False

        if len(self.state.sessions) >= self._config.limit_concurrency:
            self._logger.warning(
                f"Concurrency limit reached ({self._config.limit_concurrency})"
            )
            self.state.rejected += 1
            return False

        self.state.accepted += 1

        if self._config.single_shot and self._server is not None:
            self._server.close()

        if self._first is not None and not self._first.done():
            self._first.set_result(session)

        return True

    async def _wait_task_complete(self) -> None:
        if self.state.sessions:
            self._logger.info("Waiting for sessions to close.")

        while self.state.sessions:
            await asyncio.sleep(0.1)

        if self.state.tasks:
            self._logger.info("Waiting for session tasks to complete.")

        while self.state.tasks:
            await asyncio.sleep(0.1)

        if self._server:
            await self._server.wait_closed()


def _consume_exception(future: asyncio.Future) -> None:
    if not future.cancelled():
        future.exception()
