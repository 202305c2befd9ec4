"""Unit tests for the terminal dashboard renderer."""

import io
from datetime import datetime, timedelta

import pytest

from ws_loadtest.models.stats import ConnectionRecord, StatsSnapshot
from ws_loadtest.services.display.dashboard import (
    CLEAR_FROM_TOP,
    CLEAR_SCREEN,
    DashboardRenderer,
    format_duration,
    separator_width,
    subscription_emoji,
)
from ws_loadtest.services.stats.metrics import compute_final_metrics, compute_live_metrics

START = datetime(2025, 1, 1, 12, 0, 0)


def _snapshot(**overrides):
    values = {
        "client_start_time": START,
        "taken_at": START + timedelta(seconds=90),
        "connection_attempts": 2,
        "total_connections": 2,
        "total_reconnections": 1,
        "events_received": 50,
        "subscription_events": 45,
        "confirmation_events": 4,
        "error_events": 1,
        "current_conn_start": START + timedelta(seconds=60),
        "current_conn_messages": 30,
        "connection_open": True,
        "total_uptime": timedelta(seconds=55),
        "longest_connection": timedelta(seconds=55),
        "shortest_connection": timedelta(seconds=55),
        "last_event_time": START + timedelta(seconds=88),
        "history": (
            ConnectionRecord(
                connection_num=1,
                start_time=START,
                end_time=START + timedelta(seconds=55),
                duration=timedelta(seconds=55),
                messages=20,
            ),
        ),
        "messages_by_type": {"newHeads": 30, "logs": 15},
    }
    values.update(overrides)
    return StatsSnapshot(**values)


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def renderer(stream):
    return DashboardRenderer(stream=stream, width=80)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, "0s"),
        (timedelta(0), "0s"),
        (timedelta(seconds=0.4), "0s"),
        (timedelta(seconds=42), "42s"),
        (timedelta(minutes=2, seconds=5), "2m5s"),
        (timedelta(hours=1, minutes=2, seconds=3), "1h2m3s"),
    ],
)
def test_format_duration(value, expected):
    assert format_duration(value) == expected


def test_separator_width_is_clamped():
    assert separator_width(5) == 20
    assert separator_width(80) == 80
    assert separator_width(300) == 100


def test_subscription_emoji_has_default():
    assert subscription_emoji("newHeads") == "🧊"
    assert subscription_emoji("somethingElse") == "📡"


def test_live_lines_contain_sections(renderer):
    snapshot = _snapshot()
    metrics = compute_live_metrics(snapshot, total_subscriptions=4)

    text = "\n".join(renderer.live_lines(snapshot, metrics, total_subscriptions=4))

    assert "Live Stats" in text
    assert "Total Connections:     2" in text
    assert "Reconnections:         1" in text
    assert "Current Conn Duration: 30s" in text
    assert "Messages/Second:       1.00" in text
    assert "newHeads: 30 msgs" in text
    assert "logs: 15 msgs" in text
    assert "Connection #1: 20 msgs in 55s (12:00:00 to 12:00:55)" in text
    assert "Success Rate:          98.0%" in text
    assert "Events/Subscription:   11.2" in text
    assert "LATEST MESSAGE" not in text


def test_live_lines_hide_optional_sections_before_traffic(renderer):
    snapshot = _snapshot(
        events_received=0,
        subscription_events=0,
        confirmation_events=0,
        error_events=0,
        history=(),
        messages_by_type={},
        last_event_time=None,
        total_connections=1,
    )
    metrics = compute_live_metrics(snapshot, total_subscriptions=0)

    text = "\n".join(renderer.live_lines(snapshot, metrics, total_subscriptions=0))

    assert "Success Rate" not in text
    assert "Events/Subscription" not in text
    assert "CONNECTION HISTORY" not in text
    assert "MESSAGES BY TYPE" not in text
    assert "Avg Connection Time" not in text


def test_history_is_limited_to_most_recent(renderer):
    history = tuple(
        ConnectionRecord(
            connection_num=num,
            start_time=START,
            end_time=START + timedelta(seconds=1),
            duration=timedelta(seconds=1),
            messages=num,
        )
        for num in range(1, 9)
    )
    snapshot = _snapshot(history=history, total_connections=9)
    metrics = compute_live_metrics(snapshot, total_subscriptions=1)

    text = "\n".join(renderer.live_lines(snapshot, metrics, total_subscriptions=1))

    assert "Connection #3:" not in text
    assert "Connection #4:" in text
    assert "Connection #8:" in text


def test_latest_message_is_pretty_printed(renderer):
    snapshot = _snapshot(latest_message={"jsonrpc": "2.0", "id": 1})
    metrics = compute_live_metrics(snapshot, total_subscriptions=1)

    lines = renderer.live_lines(snapshot, metrics, total_subscriptions=1)

    assert '  "jsonrpc": "2.0",' in lines
    assert '  "id": 1' in lines


def test_render_live_clears_fully_only_on_layout_change(stream):
    renderer = DashboardRenderer(stream=stream, width=80, color=True)
    snapshot = _snapshot()
    metrics = compute_live_metrics(snapshot, total_subscriptions=4)

    renderer.render_live(snapshot, metrics, 4)
    first = stream.getvalue()
    renderer.render_live(snapshot, metrics, 4)
    second = stream.getvalue()[len(first):]
    changed = _snapshot(total_connections=3)
    renderer.render_live(changed, compute_live_metrics(changed, 4), 4)
    third = stream.getvalue()[len(first) + len(second):]

    assert first.startswith(CLEAR_SCREEN)
    assert second.startswith(CLEAR_FROM_TOP)
    assert third.startswith(CLEAR_SCREEN)


def test_final_lines(renderer):
    snapshot = _snapshot(total_uptime=timedelta(seconds=45))
    metrics = compute_final_metrics(snapshot, total_subscriptions=4)

    text = "\n".join(renderer.final_lines(snapshot, metrics, total_subscriptions=4))

    assert "FINAL SESSION SUMMARY" in text
    assert "Total Subscriptions:   4" in text
    assert "Total Uptime:         45s" in text
    assert "Total Runtime:         1m30s" in text
    assert "Connection Event Rate: 1.11 events/sec" in text
    assert "Connection Reliability: 50.0%" in text
    assert "Success Rate:          98.0%" in text
    assert "Avg Connection Time:   22s" in text
    assert "Session Complete" in text


def test_final_lines_omit_average_for_single_connection(renderer):
    snapshot = _snapshot(total_connections=1)
    metrics = compute_final_metrics(snapshot, total_subscriptions=4)

    text = "\n".join(renderer.final_lines(snapshot, metrics, total_subscriptions=4))

    assert "Avg Connection Time" not in text


def test_render_startup(renderer, stream, config):
    renderer.render_startup(config)

    text = stream.getvalue()
    assert "Target: https://xrplevm.example.test/v1/app" in text
    assert "2 types × 2 instances = 4 total" in text
    assert "newHeads (×2)" in text
    assert "logs (×2)" in text
    assert "Auth: secret-key..." in text


def test_escape_sequences_stripped_on_plain_stream(renderer, stream):
    snapshot = _snapshot()
    renderer.render_live(snapshot, compute_live_metrics(snapshot, 4), 4)

    assert "\033[" not in stream.getvalue()
