from typing import Awaitable, Callable


ReceiveMessage = Callable[[], Awaitable[str]]
"""
Coroutine provided to the application for receiving the request line.
It suspends until a complete message is available and raises
ConnectionClosedError if the peer closes first.
"""


SendMessage = Callable[[str], Awaitable[None]]
"""
Coroutine provided to the application for sending the reply line.
"""
