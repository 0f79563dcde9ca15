import struct

from parley.core.errors import ConnectionClosedError, InvalidMessageError, MessageTooLargeError
from parley.core.ports.framer import FrameDecoder, Framer
from parley.infra.line_framer import DEFAULT_MAX_MESSAGE_SIZE

# "!I" = uint32 big-endian (network order)
HEADER = struct.Struct("!I")


class LengthPrefixDecoder(FrameDecoder):
    def __init__(self, max_message_size: int, encoding: str = "utf-8") -> None:
        self._max = max_message_size
        self._encoding = encoding
        self._buffer = bytearray()
        self._expected_length: int | None = None

    @property
    def pending(self) -> int:
        return len(self._buffer) + (HEADER.size if self._expected_length is not None else 0)

    def feed(self, data: bytes) -> list[str]:
        self._buffer.extend(data)
        messages: list[str] = []

        while True:
            if self._expected_length is None:
                if len(self._buffer) < HEADER.size:
                    return messages

                self._expected_length = HEADER.unpack(self._buffer[:HEADER.size])[0]
                del self._buffer[:HEADER.size]

                if self._expected_length > self._max:
                    raise MessageTooLargeError(self._expected_length, self._max)

            if len(self._buffer) < self._expected_length:
                return messages

            payload = bytes(self._buffer[:self._expected_length])
            del self._buffer[:self._expected_length]
            self._expected_length = None

            try:
                messages.append(payload.decode(self._encoding))
            except UnicodeDecodeError as ex:
                raise InvalidMessageError(f"Frame is not valid {self._encoding}: {ex}") from ex

    def finish(self) -> None:
        discarded = self.pending
        self._buffer.clear()
        self._expected_length = None
        if discarded:
            raise ConnectionClosedError(
                f"Peer closed mid-frame, {discarded} byte(s) discarded",
                discarded=discarded,
            )


class LengthPrefixFramer(Framer):
    """
    Length-prefixed framing:

        [4-byte big-endian length][UTF-8 payload]

    Unlike line framing, the payload may contain line breaks.
    """
    name = "length-prefixed"

    def __init__(self, max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE, encoding: str = "utf-8") -> None:
        self.max_message_size = max_message_size
        self._encoding = encoding

    def encode(self, message: str) -> bytes:
        payload = message.encode(self._encoding)
        if len(payload) > self.max_message_size:
            raise MessageTooLargeError(len(payload), self.max_message_size)
        return HEADER.pack(len(payload)) + payload

    def decoder(self) -> LengthPrefixDecoder:
        return LengthPrefixDecoder(self.max_message_size, self._encoding)
