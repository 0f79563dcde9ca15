from typing import Protocol

from parley.core.models.message import ReceiveMessage, SendMessage


class Application(Protocol):
    """
    This interface defines the per-connection handler executed by the
    ResponderSession.

    An Application is an asynchronous callable that receives two functions:
    `receive`, which waits for and returns the next incoming message, and
    `send`, which transmits a message to the remote peer.

    When it returns or raises, the connection is closed by the session.
    Framing and transport concerns belong to the Protocol and the session.
    """
    async def __call__(self, receive: ReceiveMessage, send: SendMessage) -> None:
        ...
