import errno


class AddressInUseError(OSError):
    """The listening port is already bound by another socket."""

    def __init__(self, host: str, port: int) -> None:
        super().__init__(errno.EADDRINUSE, f"Address already in use: {host}:{port}")
        self.host = host
        self.port = port


class ListenerClosedError(OSError):
    """The Listener stopped before a peer connected."""


class ConnectionClosedError(ConnectionError):
    """
    The peer closed the connection before a complete message arrived.

    Bytes of an incomplete message are discarded; they are never handed
    to the caller nor merged into a later read.
    """

    def __init__(self, message: str = "Connection closed by peer", discarded: int = 0) -> None:
        super().__init__(message)
        self.discarded = discarded


class FramingError(ValueError):
    """A frame violates the wire contract."""


class MessageTooLargeError(FramingError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Message of {size} bytes exceeds limit of {limit} bytes")
        self.size = size
        self.limit = limit


class InvalidMessageError(FramingError):
    """The message cannot be represented on the wire, or decoded from it."""


class InvalidTransitionError(RuntimeError):
    pass
