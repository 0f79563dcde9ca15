import asyncio
import logging
from typing import Callable

from parley.core.errors import ConnectionClosedError, FramingError
from parley.core.models.config import ServerConfig
from parley.core.models.state import ServerState
from parley.core.ports.framer import FrameDecoder, Framer
from parley.core.transport.addr import format_addr, get_remote_addr
from parley.core.transport.flow import FlowControl
from parley.core.transport.session import ResponderSession


class Protocol(asyncio.Protocol):
    """
    Implements the low-level framing and connection lifecycle for a single
    accepted TCP connection.

    When a connection is made, Protocol asks the Listener whether it may be
    admitted. A rejected connection is aborted at once and never reaches the
    application. An admitted connection gets a FlowControl, a frame decoder
    and a ResponderSession, and a task running the application is started
    and registered in the server state.

    Incoming bytes are handed to the decoder; every complete message is
    pushed into the session queue. A framing violation (oversized or
    undecodable frame) is delivered to the session as an error and the
    connection is closed.

    On end of stream, any bytes of an incomplete message are discarded and
    ConnectionClosedError is delivered instead. A transport failure is
    delivered as the OSError reported by the event loop.
    """
    def __init__(
        self,
        config: ServerConfig,
        server_state: ServerState,
        framer: Framer,
        admit: Callable[[ResponderSession], bool],
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._transport: asyncio.Transport = None   # type: ignore[assignment]
        self._flow: FlowControl = None  # type: ignore[assignment]
        self._decoder: FrameDecoder = None  # type: ignore[assignment]
        self._session: ResponderSession = None   # type: ignore[assignment]

        self._config = config
        self._app = config.app
        self._loop = loop or asyncio.get_event_loop()
        self._state = server_state
        self._framer = framer
        self._admit = admit
        self._admitted = False
        self._ended = False
        self._client: tuple[str, int] | None = None
        self._logger = logging.getLogger("core.transport.protocol")

    @property
    def session(self) -> ResponderSession:
        return self._session

    def connection_made(self, transport: asyncio.Transport) -> None:  # type: ignore[override]
        self._transport = transport
        self._client = get_remote_addr(transport)
        who = format_addr(self._client)

        self._flow = FlowControl()
        self._decoder = self._framer.decoder()
        self._session = ResponderSession(
            transport=transport,
            flow=self._flow,
            framer=self._framer,
            queue=asyncio.Queue(),
            read_timeout=self._config.read_timeout,
            write_timeout=self._config.write_timeout,
            peer=self._client,
        )

        if not self._admit(self._session):
            self._logger.warning(f"{who} - Connection rejected")
            transport.abort()
            return

        self._admitted = True
        self._state.sessions.add(self._session)
        task = self._loop.create_task(self._session.run(self._app))
        task.add_done_callback(self._state.tasks.discard)
        self._state.tasks.add(task)

        self._logger.debug(f"{who} - Connection made")

    def data_received(self, data: bytes) -> None:
        if not self._admitted or self._ended:
            return

        try:
            messages = self._decoder.feed(data)
        except FramingError as exc:
            self._logger.warning(f"{format_addr(self._client)} - {exc}, closing connection")
            self._end_stream(exc)
            self._transport.close()
            return

        for message in messages:
            self._session.queue.put_nowait(message)

    def eof_received(self) -> bool | None:
        if self._admitted:
            self._end_stream(None)

        # keep the write side open so a half-closed peer still gets its reply
        return self._transport.get_extra_info("sslcontext") is None

    def connection_lost(self, exc: Exception | None) -> None:
        if not self._admitted:
            return

        self._state.sessions.discard(self._session)
        self._logger.debug(f"{format_addr(self._client)} - Connection lost.")

        self._flow.close()
        self._end_stream(exc)

    def pause_writing(self) -> None:
        self._flow.pause_writing()

    def resume_writing(self) -> None:
        self._flow.resume_writing()

    def _end_stream(self, exc: BaseException | None) -> None:
        if self._ended:
            return
        self._ended = True

        if isinstance(exc, FramingError):
            self._session.fail(exc)
            return

        try:
            self._decoder.finish()
        except ConnectionClosedError as partial:
            self._session.fail(partial)
            return

        if isinstance(exc, OSError):
            self._session.fail(exc)
        elif exc is not None:
            self._session.fail(ConnectionClosedError(f"Connection lost: {exc}"))
        else:
            self._session.fail(ConnectionClosedError("Connection closed by peer"))
