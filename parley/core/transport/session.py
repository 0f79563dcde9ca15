import asyncio
import logging

from parley.core.errors import ConnectionClosedError, InvalidTransitionError
from parley.core.models.state import SessionState, SessionTracker
from parley.core.ports.framer import Framer
from parley.core.transport.addr import format_addr
from parley.core.transport.application import Application
from parley.core.transport.flow import FlowControl


class ResponderSession:
    """
    Owns one accepted connection for the lifetime of a single exchange.

    The Protocol pushes decoded messages into the session queue, as well
    as the terminal error describing how the stream ended. The application
    reads the request through `receive()` and writes the reply through
    `send()`. Framing is delegated to the configured Framer; this class
    never looks at raw bytes.

    `send()` honours FlowControl: while the transport is paused the call
    waits, bounded by the write timeout, and fails with BrokenPipeError if
    the connection is lost in the meantime. Nothing is retried.

    `run()` executes the application and closes the transport on every
    exit path: normal return, read error, write error or cancellation.
    Closing is idempotent; the transport is closed exactly once.
    """
    def __init__(
        self,
        transport: asyncio.Transport,
        flow: FlowControl,
        framer: Framer,
        queue: asyncio.Queue[str | BaseException],
        read_timeout: float | None = None,
        write_timeout: float | None = None,
        peer: tuple[str, int] | None = None,
    ) -> None:
        self.queue = queue
        self.peer = peer
        self.tracker = SessionTracker()
        self.tracker.advance(SessionState.connected)

        self._transport = transport
        self._flow = flow
        self._framer = framer
        self._read_timeout = read_timeout
        self._write_timeout = write_timeout
        self._error: BaseException | None = None
        self._closed = False
        self._done = asyncio.Event()
        self._logger = logging.getLogger("core.transport.session")

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def state(self) -> SessionState:
        return self.tracker.state

    async def receive(self) -> str:
        if self._error is not None:
            raise self._error
        if self.tracker.visited(SessionState.received):
            raise InvalidTransitionError("Request already received, one exchange per connection")

        item = await asyncio.wait_for(self.queue.get(), self._read_timeout)

        if isinstance(item, BaseException):
            self._error = item
            if isinstance(item, ConnectionClosedError) and not self.tracker.terminated:
                if not self.tracker.visited(SessionState.closed):
                    self.tracker.advance(SessionState.closed)
            raise item

        self.tracker.advance(SessionState.received)
        return item

    async def send(self, message: str) -> None:
        if self._closed or self._transport.is_closing():
            raise BrokenPipeError(f"{format_addr(self.peer)} - Connection is closed")
        if self.tracker.visited(SessionState.sent):
            raise InvalidTransitionError("Reply already sent, one exchange per connection")

        frame = self._framer.encode(message)
        await self._flow.drain(self._write_timeout)

        if self._transport.is_closing():
            raise BrokenPipeError(f"{format_addr(self.peer)} - Connection closed before write")

        self._transport.write(frame)
        self.tracker.advance(SessionState.sent)

    def fail(self, error: BaseException) -> None:
        """Deliver a terminal error to a pending or future receive()."""
        self.queue.put_nowait(error)

    async def run(self, app: Application) -> None:
        who = format_addr(self.peer)
        try:
            await app(self.receive, self.send)
        except asyncio.CancelledError:
            self._logger.warning(f"{who} - Session cancelled")
            raise
        except ConnectionClosedError as exc:
            self._logger.error(f"{who} - Peer closed before the exchange completed: {exc}")
        except TimeoutError:
            self._logger.error(f"{who} - Session timed out in state {self.tracker.state}")
        except Exception as exc:
            self._logger.error(f"{who} - Exception in session: {exc}", exc_info=exc)
        finally:
            self.close()

    def close(self) -> None:
        if self._closed:
            return

        self._closed = True
        self._transport.close()
        self.tracker.advance(SessionState.terminated)
        self._done.set()

    def shutdown(self) -> None:
        self.close()

    async def wait_closed(self) -> None:
        await self._done.wait()
