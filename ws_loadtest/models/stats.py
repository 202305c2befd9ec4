"""Statistics data model: connection history, snapshots and derived metrics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class ConnectionRecord:
    """One finished connection epoch."""

    connection_num: int
    start_time: datetime
    end_time: datetime
    duration: timedelta
    messages: int


@dataclass(frozen=True)
class StatsSnapshot:
    """Read-only copy of the aggregate taken under the aggregator lock."""

    client_start_time: datetime
    taken_at: datetime
    connection_attempts: int = 0
    total_connections: int = 0
    total_reconnections: int = 0
    events_received: int = 0
    subscription_events: int = 0
    confirmation_events: int = 0
    error_events: int = 0
    current_conn_start: Optional[datetime] = None
    current_conn_messages: int = 0
    connection_open: bool = False
    total_uptime: timedelta = timedelta(0)
    longest_connection: timedelta = timedelta(0)
    shortest_connection: timedelta = timedelta(0)
    last_event_time: Optional[datetime] = None
    history: Tuple[ConnectionRecord, ...] = ()
    messages_by_type: Dict[str, int] = field(default_factory=dict)
    latest_message: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class LiveMetrics:
    """Derived values shown on the live dashboard."""

    current_conn_duration: timedelta
    total_runtime: timedelta
    messages_per_second: float
    overall_rate: float
    time_since_last_event: Optional[timedelta]
    average_connection_duration: Optional[timedelta]
    longest_connection: timedelta
    shortest_connection: timedelta
    success_rate: float
    events_per_subscription: float


@dataclass(frozen=True)
class FinalMetrics:
    """Derived values shown in the end-of-session summary."""

    total_uptime: timedelta
    total_runtime: timedelta
    connection_event_rate: float
    overall_rate: float
    reliability: float
    success_rate: float
    events_per_subscription: float
    average_connection_duration: Optional[timedelta]
    longest_connection: timedelta
    shortest_connection: timedelta
