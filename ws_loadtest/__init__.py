"""WebSocket subscription load-testing client."""

__version__ = "0.1.0"
