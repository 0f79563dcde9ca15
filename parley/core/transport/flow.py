import asyncio


class FlowControl:
    """
    Cooperative flow-control helper for an asyncio TCP transport.

    It mirrors the transport's pause_writing()/resume_writing() callbacks
    and exposes an awaitable `drain()` so that a session does not push
    bytes into a full send buffer.

    Once the connection is lost, the helper is marked closed: pending and
    future drains fail with BrokenPipeError instead of waiting forever.
    """

    def __init__(self) -> None:
        self._writable = asyncio.Event()
        self._writable.set()
        self.write_paused = False
        self.closed = False

    async def drain(self, timeout: float | None = None) -> None:
        """
        Block until writing is allowed again.

        Raises TimeoutError if the transport stays paused longer than
        `timeout` seconds, BrokenPipeError if the connection is lost.
        """
        if self.write_paused:
            await asyncio.wait_for(self._writable.wait(), timeout)

        if self.closed:
            raise BrokenPipeError("Connection lost while waiting to write")

    def pause_writing(self) -> None:
        """Mark the transport as non-writable and block future drains."""
        if self.closed:
            return
        self.write_paused = True
        self._writable.clear()

    def resume_writing(self) -> None:
        """Mark the transport as writable and wake blocked drains."""
        if self.write_paused:
            self.write_paused = False
            self._writable.set()

    def close(self) -> None:
        """Wake every blocked drain; they will fail with BrokenPipeError."""
        self.closed = True
        self.resume_writing()
