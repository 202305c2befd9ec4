"""Connection state machine model."""

from enum import Enum
from typing import Dict, FrozenSet


class ConnectionState(str, Enum):
    """Lifecycle state of the connection manager."""

    IDLE = "idle"
    DIALING = "dialing"
    CONNECTED = "connected"
    SUBSCRIPTIONS_SENT = "subscriptions_sent"
    LISTENING = "listening"
    FAILED = "failed"


# Transitions back to IDLE from a connected state only happen on shutdown.
ALLOWED_TRANSITIONS: Dict[ConnectionState, FrozenSet[ConnectionState]] = {
    ConnectionState.IDLE: frozenset({ConnectionState.DIALING}),
    ConnectionState.DIALING: frozenset({ConnectionState.CONNECTED, ConnectionState.FAILED}),
    ConnectionState.CONNECTED: frozenset(
        {ConnectionState.SUBSCRIPTIONS_SENT, ConnectionState.FAILED, ConnectionState.IDLE}
    ),
    ConnectionState.SUBSCRIPTIONS_SENT: frozenset(
        {ConnectionState.LISTENING, ConnectionState.IDLE}
    ),
    ConnectionState.LISTENING: frozenset({ConnectionState.FAILED, ConnectionState.IDLE}),
    ConnectionState.FAILED: frozenset({ConnectionState.IDLE}),
}


def can_transition(current: ConnectionState, target: ConnectionState) -> bool:
    return target in ALLOWED_TRANSITIONS[current]
