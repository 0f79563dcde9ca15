import logging
from typing import Protocol

from parley.core.models.message import ReceiveMessage, SendMessage

DEFAULT_ACKNOWLEDGEMENT = "Transaction received. Processing in INR..."


class Replier(Protocol):
    def compute_reply(self, request: str) -> str:
        """
        Compose the reply for a request.

        Implementations must be pure: the same request always yields the
        same reply, with no dependency on clocks, randomness or other
        mutable state.
        """


class StaticReply(Replier):
    def __init__(self, text: str = DEFAULT_ACKNOWLEDGEMENT) -> None:
        self._text = text

    def compute_reply(self, request: str) -> str:
        return self._text


class EchoReply(Replier):
    def __init__(self, prefix: str = "") -> None:
        self._prefix = prefix

    def compute_reply(self, request: str) -> str:
        return f"{self._prefix}{request}"


class Responder:
    """
    Application run on each accepted connection.

    It reads exactly one request, computes the reply with the configured
    Replier, sends it and returns. Returning hands the connection back to
    the session, which closes it. Errors are not handled here: they
    propagate to the session, which logs them and closes the connection.
    """

    def __init__(self, replier: Replier | None = None) -> None:
        self.replier = replier or StaticReply()
        self._logger = logging.getLogger("core.responder")

    async def __call__(self, receive: ReceiveMessage, send: SendMessage) -> None:
        request = await receive()
        self._logger.info(f"Received from client: {request!r}")

        reply = self.replier.compute_reply(request)
        await send(reply)
        self._logger.info(f"Replied: {reply!r}")
