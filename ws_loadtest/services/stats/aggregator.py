"""Thread-safe statistics aggregator for the load-test session."""

from __future__ import annotations

import threading
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from ...config.logging import get_logger
from ...models.frames import Confirmation, ErrorFrame, Frame, Notification
from ...models.stats import ConnectionRecord, FinalMetrics, LiveMetrics, StatsSnapshot
from ..websocket.registry import SubscriptionRegistry
from .metrics import compute_final_metrics, compute_live_metrics

logger = get_logger(__name__)

UNKNOWN_SUBSCRIPTION_TYPE = "unknown"


class StatsAggregator:
    """Owns every counter, timer and the connection history.

    The connection manager writes through the ``record_*``/``begin``/``end``/
    ``handle_event`` operations and the display driver reads snapshots; each
    operation holds the lock for its whole duration.
    """

    def __init__(
        self,
        registry: Optional[SubscriptionRegistry] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._lock = threading.Lock()
        self._clock = clock
        self._registry = registry if registry is not None else SubscriptionRegistry()

        self._client_start_time: datetime = clock()
        self._connection_attempts = 0
        self._total_connections = 0
        self._total_reconnections = 0
        self._events_received = 0
        self._subscription_events = 0
        self._confirmation_events = 0
        self._error_events = 0

        self._current_conn_start: Optional[datetime] = None
        self._current_conn_messages = 0
        self._connection_open = False

        self._total_uptime = timedelta(0)
        self._longest_connection = timedelta(0)
        self._shortest_connection = timedelta(0)
        self._has_duration = False
        self._last_event_time: Optional[datetime] = None

        self._history: List[ConnectionRecord] = []
        self._messages_by_type: Counter = Counter()

        self._capture_messages = False
        self._latest_message: Optional[Dict[str, Any]] = None
        self._final_flushed = False

    @property
    def registry(self) -> SubscriptionRegistry:
        return self._registry

    def enable_message_capture(self) -> None:
        """Keep the most recent raw frame for display."""
        with self._lock:
            self._capture_messages = True

    def record_connection_attempt(self) -> None:
        """Count a dial attempt, successful or not."""
        with self._lock:
            self._connection_attempts += 1

    def begin_connection(self) -> None:
        """Start a new connection epoch after a successful handshake."""
        with self._lock:
            self._total_connections += 1
            self._current_conn_start = self._clock()
            self._current_conn_messages = 0
            self._connection_open = True
            logger.debug(
                "stats_connection_started",
                connection_num=self._total_connections,
            )

    def record_reconnection(self) -> None:
        """Count a reconnection, but only once a connection has ever begun."""
        with self._lock:
            if self._total_connections > 0:
                self._total_reconnections += 1

    def end_connection(self) -> None:
        """Close the current epoch: accumulate uptime, append history, update extrema.

        No-op before the first connection.
        """
        with self._lock:
            if self._total_connections == 0 or self._current_conn_start is None:
                return

            end_time = self._clock()
            duration = end_time - self._current_conn_start
            self._total_uptime += duration
            self._history.append(
                ConnectionRecord(
                    connection_num=self._total_connections,
                    start_time=self._current_conn_start,
                    end_time=end_time,
                    duration=duration,
                    messages=self._current_conn_messages,
                )
            )

            if not self._has_duration or duration > self._longest_connection:
                self._longest_connection = duration
            if not self._has_duration or duration < self._shortest_connection:
                self._shortest_connection = duration
            self._has_duration = True
            self._connection_open = False

            logger.debug(
                "stats_connection_ended",
                connection_num=self._total_connections,
                duration_seconds=duration.total_seconds(),
                messages=self._current_conn_messages,
            )

    def handle_event(self, frame: Frame) -> None:
        """Count one inbound frame and bucket it by its classification."""
        with self._lock:
            self._events_received += 1
            self._current_conn_messages += 1
            self._last_event_time = self._clock()
            if self._capture_messages:
                self._latest_message = frame.raw

            if isinstance(frame, Notification):
                self._subscription_events += 1
                if frame.handle is not None:
                    subscription_type = self._registry.lookup(frame.handle)
                    self._messages_by_type[subscription_type or UNKNOWN_SUBSCRIPTION_TYPE] += 1
            elif isinstance(frame, Confirmation):
                self._confirmation_events += 1
            elif isinstance(frame, ErrorFrame):
                self._error_events += 1

    def map_subscription(self, handle: str, subscription_type: str) -> None:
        """Attribute future notifications for ``handle`` to ``subscription_type``."""
        with self._lock:
            self._registry.register(handle, subscription_type)

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def history(self) -> List[ConnectionRecord]:
        with self._lock:
            return list(self._history)

    def messages_by_type(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._messages_by_type)

    def live_metrics(
        self, total_subscriptions: int, snapshot: Optional[StatsSnapshot] = None
    ) -> LiveMetrics:
        """Derived metrics for the live dashboard, from ``snapshot`` when given."""
        if snapshot is None:
            snapshot = self.snapshot()
        return compute_live_metrics(snapshot, total_subscriptions)

    def final_metrics(self, total_subscriptions: int) -> FinalMetrics:
        """Flush the open connection into uptime, then derive the final summary.

        Flushing happens at most once, so repeated calls report the same uptime.
        """
        return compute_final_metrics(self.finalize(), total_subscriptions)

    def finalize(self) -> StatsSnapshot:
        """Flush the still-open connection's elapsed time and return a snapshot."""
        with self._lock:
            if not self._final_flushed:
                if self._connection_open and self._current_conn_start is not None:
                    self._total_uptime += self._clock() - self._current_conn_start
                    self._connection_open = False
                self._final_flushed = True
            return self._snapshot_locked()

    def _snapshot_locked(self) -> StatsSnapshot:
        return StatsSnapshot(
            client_start_time=self._client_start_time,
            taken_at=self._clock(),
            connection_attempts=self._connection_attempts,
            total_connections=self._total_connections,
            total_reconnections=self._total_reconnections,
            events_received=self._events_received,
            subscription_events=self._subscription_events,
            confirmation_events=self._confirmation_events,
            error_events=self._error_events,
            current_conn_start=self._current_conn_start,
            current_conn_messages=self._current_conn_messages,
            connection_open=self._connection_open,
            total_uptime=self._total_uptime,
            longest_connection=self._longest_connection,
            shortest_connection=self._shortest_connection,
            last_event_time=self._last_event_time,
            history=tuple(self._history),
            messages_by_type=dict(self._messages_by_type),
            latest_message=self._latest_message,
        )
