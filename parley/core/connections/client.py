import asyncio
import logging
from collections import deque

from parley.core.errors import ConnectionClosedError, InvalidTransitionError
from parley.core.models.config import ClientConfig
from parley.core.models.state import SessionState, SessionTracker
from parley.core.ports.framer import Framer
from parley.core.throttling.backoff import ExponentialBackoff


class Initiator:
    """
    Asynchronous client side of a single exchange.

    An Initiator opens one TCP connection to the configured endpoint, writes
    one request message, reads one reply message and closes. The connection
    is never reused: once closed, the Initiator is terminated and a new one
    must be created for the next exchange.

    Connection failures surface as ConnectionRefusedError (nobody listening)
    or TimeoutError (connect deadline exceeded). When `connect_retries` is
    positive, these two failures are retried on an ExponentialBackoff
    schedule; by default nothing is retried. Read and write failures are
    never retried.

    Every operation is bounded by its timeout from ClientConfig, and
    cancelling the calling task cancels the pending operation. The
    connection is closed on every exit path when used as an async context
    manager.
    """
    def __init__(
        self,
        config: ClientConfig,
        framer: Framer,
        backoff: ExponentialBackoff | None = None,
        read_size: int = 4096,
    ) -> None:
        self._config = config
        self._framer = framer
        self._backoff = backoff or ExponentialBackoff()
        self._read_size = read_size

        self._reader: asyncio.StreamReader = None  # type: ignore[assignment]
        self._writer: asyncio.StreamWriter = None  # type: ignore[assignment]
        self._decoder = framer.decoder()
        self._inbox: deque[str] = deque()

        self.tracker = SessionTracker()
        self._logger = logging.getLogger("core.connections.client")

    @property
    def connected(self) -> bool:
        return self._writer is not None and not self.tracker.terminated

    async def __aenter__(self) -> "Initiator":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def connect(self) -> None:
        if self.tracker.state is not SessionState.unconnected:
            raise RuntimeError(f"Cannot connect in state {self.tracker.state}")

        endpoint = self._config.endpoint
        delays = self._backoff.delays(self._config.connect_retries)

        while True:
            try:
                self._reader, self._writer = await asyncio.wait_for(
                    asyncio.open_connection(
                        host=endpoint.host,
                        port=endpoint.port,
                        ssl=self._config.ssl_ctx,
                        server_hostname=endpoint.host if self._config.ssl_ctx else None,
                    ),
                    self._config.connect_timeout,
                )
                break
            except (ConnectionRefusedError, TimeoutError) as ex:
                delay = next(delays, None)
                if delay is None:
                    self.tracker.advance(SessionState.terminated)
                    raise
                self._logger.warning(
                    f"Connect failed to {endpoint}: {ex!r}. Retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)
            except BaseException:
                self.tracker.advance(SessionState.terminated)
                raise

        self.tracker.advance(SessionState.connected)
        self._logger.debug(f"Connected to {endpoint}")

    async def write_line(self, message: str) -> None:
        if not self.connected:
            raise BrokenPipeError("Initiator is not connected")
        self._ensure_first(SessionState.sent)

        frame = self._framer.encode(message)
        self._writer.write(frame)
        await asyncio.wait_for(self._writer.drain(), self._config.write_timeout)
        self.tracker.advance(SessionState.sent)

    async def read_line(self) -> str:
        if not self.connected:
            raise BrokenPipeError("Initiator is not connected")
        self._ensure_first(SessionState.received)

        while not self._inbox:
            data = await asyncio.wait_for(
                self._reader.read(self._read_size), self._config.read_timeout
            )
            if not data:
                self._peer_closed()
                self._decoder.finish()
                raise ConnectionClosedError("Connection closed by peer before a complete message")

            self._inbox.extend(self._decoder.feed(data))

        self.tracker.advance(SessionState.received)
        return self._inbox.popleft()

    async def request(self, message: str) -> str:
        await self.write_line(message)
        return await self.read_line()

    async def close(self) -> None:
        """Close the connection. Safe to call multiple times."""
        if self.tracker.terminated:
            return

        self.tracker.advance(SessionState.terminated)
        writer, self._writer, self._reader = self._writer, None, None
        if writer is None:
            return

        writer.close()
        try:
            await writer.wait_closed()
        except OSError as ex:
            self._logger.debug(f"Error while closing connection: {ex!r}")

    def _ensure_first(self, state: SessionState) -> None:
        if self.tracker.visited(state):
            raise InvalidTransitionError(f"Already {state}, one exchange per connection")

    def _peer_closed(self) -> None:
        if not self.tracker.visited(SessionState.closed):
            self.tracker.advance(SessionState.closed)
