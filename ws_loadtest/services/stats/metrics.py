"""Derived metrics computed from a statistics snapshot.

These are pure functions of a snapshot so they can be evaluated outside the
aggregator lock and tested with fixed timestamps.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional, Sequence

from ...models.stats import ConnectionRecord, FinalMetrics, LiveMetrics, StatsSnapshot


def rate(count: int, elapsed: timedelta) -> float:
    """Events per second over ``elapsed``; 0 when no time has elapsed."""
    seconds = elapsed.total_seconds()
    if seconds <= 0:
        return 0.0
    return count / seconds


def success_rate(events_received: int, error_events: int) -> float:
    """Percentage of received frames that were not error frames.

    Every frame counts towards ``events_received``, including error frames.
    """
    if events_received <= 0:
        return 0.0
    return (events_received - error_events) / events_received * 100


def events_per_subscription(subscription_events: int, total_subscriptions: int) -> float:
    if total_subscriptions <= 0:
        return 0.0
    return subscription_events / total_subscriptions


def average_duration(history: Sequence[ConnectionRecord]) -> Optional[timedelta]:
    if not history:
        return None
    total = sum((record.duration for record in history), timedelta(0))
    return total / len(history)


def compute_live_metrics(snapshot: StatsSnapshot, total_subscriptions: int) -> LiveMetrics:
    """Metrics for the live dashboard as of ``snapshot.taken_at``."""
    now = snapshot.taken_at
    current_duration = (
        now - snapshot.current_conn_start if snapshot.current_conn_start else timedelta(0)
    )
    total_runtime = now - snapshot.client_start_time
    since_last_event = now - snapshot.last_event_time if snapshot.last_event_time else None

    return LiveMetrics(
        current_conn_duration=current_duration,
        total_runtime=total_runtime,
        messages_per_second=rate(snapshot.current_conn_messages, current_duration),
        overall_rate=rate(snapshot.events_received, total_runtime),
        time_since_last_event=since_last_event,
        average_connection_duration=average_duration(snapshot.history),
        longest_connection=snapshot.longest_connection,
        shortest_connection=snapshot.shortest_connection,
        success_rate=success_rate(snapshot.events_received, snapshot.error_events),
        events_per_subscription=events_per_subscription(
            snapshot.subscription_events, total_subscriptions
        ),
    )


def compute_final_metrics(snapshot: StatsSnapshot, total_subscriptions: int) -> FinalMetrics:
    """Metrics for the end-of-session summary.

    Expects a snapshot taken after the open connection (if any) was flushed
    into ``total_uptime``.
    """
    total_runtime = snapshot.taken_at - snapshot.client_start_time
    runtime_seconds = total_runtime.total_seconds()
    reliability = 0.0
    if runtime_seconds > 0:
        reliability = snapshot.total_uptime.total_seconds() / runtime_seconds * 100

    average = None
    if snapshot.total_connections > 0:
        average = snapshot.total_uptime / snapshot.total_connections

    return FinalMetrics(
        total_uptime=snapshot.total_uptime,
        total_runtime=total_runtime,
        connection_event_rate=rate(snapshot.events_received, snapshot.total_uptime),
        overall_rate=rate(snapshot.events_received, total_runtime),
        reliability=reliability,
        success_rate=success_rate(snapshot.events_received, snapshot.error_events),
        events_per_subscription=events_per_subscription(
            snapshot.subscription_events, total_subscriptions
        ),
        average_connection_duration=average,
        longest_connection=snapshot.longest_connection,
        shortest_connection=snapshot.shortest_connection,
    )
