from typing import Protocol


class FrameDecoder(Protocol):
    """
    Stateful, per-connection reassembly of frames from a byte stream.

    TCP does not preserve write boundaries, so bytes are accumulated until
    a frame is complete. A message is only produced once its frame is fully
    buffered and delimited.
    """

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet part of a complete frame."""

    def feed(self, data: bytes) -> list[str]:
        """Append data and return every message it completes, in order."""

    def finish(self) -> None:
        """
        Signal end of stream.

        Raises ConnectionClosedError when an incomplete frame is buffered;
        the partial bytes are discarded.
        """


class Framer(Protocol):
    """
    Defines the wire contract for messages exchanged over a connection.

    Implementations must be:
    - deterministic
    - pure in encode() (no side effects)
    - safe against malformed input in their decoders
    """

    max_message_size: int

    def encode(self, message: str) -> bytes:
        """Encode one message into a frame ready to be written."""

    def decoder(self) -> FrameDecoder:
        """Return a new decoder for one connection."""
