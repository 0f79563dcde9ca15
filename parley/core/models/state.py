import asyncio
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from parley.core.errors import InvalidTransitionError

if TYPE_CHECKING:
    from parley.core.transport.session import ResponderSession


class SessionState(StrEnum):
    unconnected = "UNCONNECTED"
    connected = "CONNECTED"
    sent = "SENT"
    received = "RECEIVED"
    closed = "CLOSED"
    terminated = "TERMINATED"


_ALLOWED: dict[SessionState, frozenset[SessionState]] = {
    SessionState.unconnected: frozenset({SessionState.connected}),
    SessionState.connected: frozenset({
        SessionState.sent, SessionState.received, SessionState.closed
    }),
    SessionState.sent: frozenset({SessionState.received, SessionState.closed}),
    SessionState.received: frozenset({SessionState.sent, SessionState.closed}),
    SessionState.closed: frozenset(),
    SessionState.terminated: frozenset(),
}


class SessionTracker:
    """
    Tracks the lifecycle of one side of a single exchange.

    Both the Responder session and the Initiator walk the same machine:

        UNCONNECTED -> CONNECTED -> SENT/RECEIVED -> CLOSED -> TERMINATED

    Each state is entered at most once, which limits a connection to one
    request and one reply. TERMINATED is reachable from every state and is
    final; it is entered by an explicit close, whatever failed before.
    """
    def __init__(self) -> None:
        self._state = SessionState.unconnected
        self._visited: set[SessionState] = {SessionState.unconnected}

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def terminated(self) -> bool:
        return self._state is SessionState.terminated

    def advance(self, target: SessionState) -> None:
        if self._state is SessionState.terminated:
            raise InvalidTransitionError(f"Session already terminated, cannot enter {target}")

        if target is SessionState.terminated:
            self._state = target
            self._visited.add(target)
            return

        if target is SessionState.closed and target not in self._visited:
            self._state = target
            self._visited.add(target)
            return

        if target in self._visited or target not in _ALLOWED[self._state]:
            raise InvalidTransitionError(f"Illegal transition {self._state} -> {target}")

        self._state = target
        self._visited.add(target)

    def visited(self, state: SessionState) -> bool:
        return state in self._visited


@dataclass
class ServerState:
    """
    Shared runtime state for a Listener.

    This object is mutated by:
    - Protocol: adds/removes live sessions and counts accepted connections
    - Listener.shutdown(): waits for sessions and their tasks to complete
    """
    sessions: set["ResponderSession"] = field(default_factory=set)
    """
    Live Responder sessions, one per accepted connection.
    """

    tasks: set[asyncio.Task[None]] = field(default_factory=set)
    """
    Tasks running the responder application. Each task removes itself via
    task.add_done_callback(tasks.discard).
    """

    accepted: int = 0
    """
    Number of connections admitted since the Listener was bound.
    """

    rejected: int = 0
    """
    Number of connections aborted on admission (single-shot already used,
    or concurrency limit reached).
    """
