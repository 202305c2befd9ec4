"""Unit tests for derived metric helpers."""

from datetime import datetime, timedelta

import pytest

from ws_loadtest.models.stats import ConnectionRecord, StatsSnapshot
from ws_loadtest.services.stats.metrics import (
    average_duration,
    compute_final_metrics,
    compute_live_metrics,
    events_per_subscription,
    rate,
    success_rate,
)

START = datetime(2025, 1, 1, 12, 0, 0)


def _record(num, seconds):
    start = START + timedelta(minutes=num)
    return ConnectionRecord(
        connection_num=num,
        start_time=start,
        end_time=start + timedelta(seconds=seconds),
        duration=timedelta(seconds=seconds),
        messages=num * 10,
    )


def test_rate_guards_against_zero_elapsed():
    assert rate(10, timedelta(0)) == 0.0
    assert rate(10, timedelta(seconds=4)) == pytest.approx(2.5)


@pytest.mark.parametrize(
    "received, errors, expected",
    [(0, 0, 0.0), (10, 0, 100.0), (10, 10, 0.0), (8, 2, 75.0)],
)
def test_success_rate(received, errors, expected):
    assert success_rate(received, errors) == pytest.approx(expected)


def test_events_per_subscription_guards_against_zero():
    assert events_per_subscription(10, 0) == 0.0
    assert events_per_subscription(10, 4) == pytest.approx(2.5)


def test_average_duration():
    assert average_duration([]) is None
    assert average_duration([_record(1, 4), _record(2, 8)]) == timedelta(seconds=6)


def test_live_metrics_average_uses_history():
    snapshot = StatsSnapshot(
        client_start_time=START,
        taken_at=START + timedelta(seconds=60),
        total_connections=3,
        current_conn_start=START + timedelta(seconds=50),
        current_conn_messages=20,
        events_received=120,
        history=(_record(1, 10), _record(2, 30)),
    )

    metrics = compute_live_metrics(snapshot, total_subscriptions=2)

    assert metrics.average_connection_duration == timedelta(seconds=20)
    assert metrics.messages_per_second == pytest.approx(2.0)
    assert metrics.overall_rate == pytest.approx(2.0)
    assert metrics.time_since_last_event is None


def test_live_metrics_before_first_connection():
    snapshot = StatsSnapshot(client_start_time=START, taken_at=START + timedelta(seconds=3))

    metrics = compute_live_metrics(snapshot, total_subscriptions=0)

    assert metrics.current_conn_duration == timedelta(0)
    assert metrics.messages_per_second == 0.0
    assert metrics.average_connection_duration is None


def test_final_metrics():
    snapshot = StatsSnapshot(
        client_start_time=START,
        taken_at=START + timedelta(seconds=100),
        total_connections=2,
        events_received=160,
        subscription_events=150,
        error_events=16,
        total_uptime=timedelta(seconds=80),
    )

    metrics = compute_final_metrics(snapshot, total_subscriptions=3)

    assert metrics.connection_event_rate == pytest.approx(2.0)
    assert metrics.overall_rate == pytest.approx(1.6)
    assert metrics.reliability == pytest.approx(80.0)
    assert metrics.success_rate == pytest.approx(90.0)
    assert metrics.events_per_subscription == pytest.approx(50.0)
    assert metrics.average_connection_duration == timedelta(seconds=40)
