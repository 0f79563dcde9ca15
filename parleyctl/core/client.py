import logging
import socket
import ssl
import time
from collections import deque

from parley.core.errors import ConnectionClosedError, InvalidTransitionError
from parley.core.models.endpoint import Endpoint
from parley.core.models.state import SessionState, SessionTracker
from parley.core.ports.framer import Framer
from parley.core.throttling.backoff import ExponentialBackoff


class ParleyClient:
    """
    Synchronous TCP client for a Parley listener.

    One client carries one exchange: connect, send one request, read one
    reply, close. Every call blocks the calling thread, bounded by the
    socket timeouts given at construction. Refused and timed-out connects
    are retried only when `connect_retries` is positive.

    This client is minimal and blocking. It is intended for CLI usage,
    debugging, and simple scripts.
    """
    def __init__(
        self,
        endpoint: Endpoint,
        framer: Framer,
        ssl_ctx: ssl.SSLContext | None = None,
        connect_timeout: float | None = 5.0,
        read_timeout: float | None = 30.0,
        write_timeout: float | None = 30.0,
        connect_retries: int = 0,
        backoff: ExponentialBackoff | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._framer = framer
        self._ssl_ctx = ssl_ctx
        self._connect_timeout = connect_timeout
        self._read_timeout = read_timeout
        self._write_timeout = write_timeout
        self._connect_retries = connect_retries
        self._backoff = backoff or ExponentialBackoff()

        self._sock: socket.socket | None = None
        self._decoder = framer.decoder()
        self._inbox: deque[str] = deque()
        self.tracker = SessionTracker()
        self._logger = logging.getLogger("parleyctl.client")

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    def __enter__(self) -> "ParleyClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def connect(self) -> None:
        if self.tracker.state is not SessionState.unconnected:
            raise RuntimeError(f"Cannot connect in state {self.tracker.state}")

        delays = self._backoff.delays(self._connect_retries)
        while True:
            try:
                raw_sock = socket.create_connection(
                    self._endpoint.as_tuple(), timeout=self._connect_timeout
                )
                break
            except (ConnectionRefusedError, TimeoutError) as ex:
                delay = next(delays, None)
                if delay is None:
                    self.tracker.advance(SessionState.terminated)
                    raise
                self._logger.warning(
                    f"Connect failed to {self._endpoint}: {ex!r}. Retrying in {delay:.1f}s"
                )
                time.sleep(delay)
            except OSError:
                self.tracker.advance(SessionState.terminated)
                raise

        if self._ssl_ctx is not None:
            try:
                raw_sock = self._ssl_ctx.wrap_socket(raw_sock, server_hostname=self._endpoint.host)
            except OSError:
                raw_sock.close()
                self.tracker.advance(SessionState.terminated)
                raise

        self._sock = raw_sock
        self.tracker.advance(SessionState.connected)

    def close(self) -> None:
        if self.tracker.terminated:
            return

        self.tracker.advance(SessionState.terminated)
        if self._sock:
            try:
                self._sock.close()
            finally:
                self._sock = None

    def write_line(self, message: str) -> None:
        sock = self._connected_sock(SessionState.sent)

        frame = self._framer.encode(message)
        sock.settimeout(self._write_timeout)
        sock.sendall(frame)
        self.tracker.advance(SessionState.sent)

    def read_line(self) -> str:
        sock = self._connected_sock(SessionState.received)
        sock.settimeout(self._read_timeout)

        while not self._inbox:
            chunk = sock.recv(4096)
            if not chunk:
                if not self.tracker.visited(SessionState.closed):
                    self.tracker.advance(SessionState.closed)
                self._decoder.finish()
                raise ConnectionClosedError("Connection closed by peer before a complete message")
            self._inbox.extend(self._decoder.feed(chunk))

        self.tracker.advance(SessionState.received)
        return self._inbox.popleft()

    def request(self, message: str) -> str:
        if self.tracker.state is SessionState.unconnected:
            self.connect()

        self.write_line(message)
        return self.read_line()

    def _connected_sock(self, next_state: SessionState) -> socket.socket:
        if self._sock is None or self.tracker.terminated:
            raise BrokenPipeError("Client is not connected")
        if self.tracker.visited(next_state):
            raise InvalidTransitionError(f"Already {next_state}, one exchange per connection")
        return self._sock
