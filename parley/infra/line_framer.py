from parley.core.errors import ConnectionClosedError, InvalidMessageError, MessageTooLargeError
from parley.core.ports.framer import FrameDecoder, Framer

DELIMITER = b"\n"
DEFAULT_MAX_MESSAGE_SIZE = 64 * 1024


class LineDecoder(FrameDecoder):
    def __init__(self, max_message_size: int, encoding: str = "utf-8") -> None:
        self._max = max_message_size
        self._encoding = encoding
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def feed(self, data: bytes) -> list[str]:
        self._buffer.extend(data)
        lines: list[str] = []

        while True:
            idx = self._buffer.find(DELIMITER)
            if idx < 0:
                break

            raw = bytes(self._buffer[:idx])
            del self._buffer[:idx + 1]

            if raw.endswith(b"\r"):
                raw = raw[:-1]
            if len(raw) > self._max:
                raise MessageTooLargeError(len(raw), self._max)

            lines.append(self._decode(raw))

        # +1 leaves room for a CR sitting before a delimiter not yet received
        if len(self._buffer) > self._max + 1:
            raise MessageTooLargeError(len(self._buffer), self._max)

        return lines

    def finish(self) -> None:
        if self._buffer:
            discarded = len(self._buffer)
            self._buffer.clear()
            raise ConnectionClosedError(
                f"Peer closed mid-line, {discarded} byte(s) discarded",
                discarded=discarded,
            )

    def _decode(self, raw: bytes) -> str:
        try:
            return raw.decode(self._encoding)
        except UnicodeDecodeError as ex:
            raise InvalidMessageError(f"Line is not valid {self._encoding}: {ex}") from ex


class LineFramer(Framer):
    """
    Newline-delimited text framing: one message per line.

    The payload cannot carry a line break. encode() rejects '\\n' and '\\r'
    so that what is sent is exactly what the peer reads back. On decode a
    single '\\r' before the delimiter is stripped, which lets CRLF peers
    interoperate.
    """
    name = "line"

    def __init__(self, max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE, encoding: str = "utf-8") -> None:
        self.max_message_size = max_message_size
        self._encoding = encoding

    def encode(self, message: str) -> bytes:
        if "\n" in message or "\r" in message:
            raise InvalidMessageError("Line framing cannot carry a line break in the payload")

        payload = message.encode(self._encoding)
        if len(payload) > self.max_message_size:
            raise MessageTooLargeError(len(payload), self.max_message_size)

        return payload + DELIMITER

    def decoder(self) -> LineDecoder:
        return LineDecoder(self.max_message_size, self._encoding)
