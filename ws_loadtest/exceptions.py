"""Error handling and exception classes."""


class LoadTestError(Exception):
    """Base exception for the load-test client."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(LoadTestError):
    """Raised when startup configuration is invalid or missing."""

    pass


class WebSocketConnectionError(LoadTestError):
    """Raised when dialing the WebSocket endpoint fails."""

    pass


class FrameDecodeError(LoadTestError):
    """Raised when an inbound frame cannot be decoded into a JSON object."""

    pass


class SubscriptionError(LoadTestError):
    """Raised when a single subscription request cannot be serialized or sent."""

    pass


class StateTransitionError(LoadTestError):
    """Raised on an illegal connection state transition."""

    pass
