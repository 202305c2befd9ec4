"""Data models."""

from .config import LoadTestConfig
from .connection_state import ConnectionState
from .frames import (
    Confirmation,
    ErrorFrame,
    Frame,
    Notification,
    SubscribeRequest,
    UnclassifiedFrame,
)
from .stats import ConnectionRecord, FinalMetrics, LiveMetrics, StatsSnapshot

__all__ = [
    "LoadTestConfig",
    "ConnectionState",
    "Confirmation",
    "ErrorFrame",
    "Frame",
    "Notification",
    "SubscribeRequest",
    "UnclassifiedFrame",
    "ConnectionRecord",
    "FinalMetrics",
    "LiveMetrics",
    "StatsSnapshot",
]
