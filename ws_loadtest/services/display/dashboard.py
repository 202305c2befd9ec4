"""Terminal dashboard rendering for live and final statistics."""

from __future__ import annotations

import json
import shutil
from datetime import timedelta
from typing import IO, List, Optional

import click

from ...config.settings import settings
from ...models.config import LoadTestConfig
from ...models.stats import FinalMetrics, LiveMetrics, StatsSnapshot

CLEAR_SCREEN = "\033[2J\033[H"
CLEAR_FROM_TOP = "\033[H\033[0J"

SPINNER_FRAMES = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]

SUBSCRIPTION_EMOJIS = {
    "newHeads": "🧊",
    "newPendingTransactions": "⚡",
    "logs": "📄",
    "syncing": "🔄",
}
DEFAULT_SUBSCRIPTION_EMOJI = "📡"


def subscription_emoji(subscription_type: str) -> str:
    return SUBSCRIPTION_EMOJIS.get(subscription_type, DEFAULT_SUBSCRIPTION_EMOJI)


def format_duration(value: Optional[timedelta]) -> str:
    """Render a duration rounded to whole seconds, e.g. ``1h2m3s``."""
    if value is None:
        return "0s"
    total = int(round(value.total_seconds()))
    if total <= 0:
        return "0s"
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{minutes}m{seconds}s"
    return f"{seconds}s"


def _green(text: str) -> str:
    return click.style(text, fg="green", bold=True)


def separator_width(terminal_width: int) -> int:
    return max(20, min(terminal_width, 100))


class DashboardRenderer:
    """Renders statistics to a terminal stream.

    A full clear is issued only when the connection count or history changes;
    other refreshes redraw in place to avoid flicker.
    """

    def __init__(
        self,
        stream: Optional[IO[str]] = None,
        width: Optional[int] = None,
        color: Optional[bool] = None,
    ):
        self._stream = stream
        self._width = width
        # None lets click strip escape sequences on non-terminal streams
        self._color = color
        self._spinner_index = 0
        self._last_layout_key: Optional[tuple] = None

    def _terminal_width(self) -> int:
        if self._width is not None:
            return self._width
        return shutil.get_terminal_size(fallback=(80, 24)).columns

    def _emit(self, lines: List[str], prefix: str = "") -> None:
        click.echo(prefix + "\n".join(lines), file=self._stream, color=self._color)

    def render_startup(self, config: LoadTestConfig) -> None:
        """Print the target and the subscription plan before connecting."""
        types = config.subscription_types()
        lines = [
            _green("🚀 Starting WebSocket Load Test..."),
            _green(f"📊 Target: {config.url}"),
            _green(f"🎯 Service: {config.service_id}"),
            _green(
                f"📡 Subscriptions ({len(types)} types × {config.sub_count} instances"
                f" = {config.total_planned_subscriptions()} total):"
            ),
        ]
        for subscription_type in types:
            lines.append(
                _green(f"  {subscription_emoji(subscription_type)} {subscription_type} (×{config.sub_count})")
            )
        if config.auth_header:
            lines.append(_green(f"🔐 Auth: {config.auth_header[:20]}..."))
        lines.append("")
        self._emit(lines)

    def render_live(
        self, snapshot: StatsSnapshot, metrics: LiveMetrics, total_subscriptions: int
    ) -> None:
        """Redraw the live dashboard."""
        layout_key = (snapshot.total_connections, len(snapshot.history))
        prefix = CLEAR_SCREEN if layout_key != self._last_layout_key else CLEAR_FROM_TOP
        self._last_layout_key = layout_key
        self._spinner_index = (self._spinner_index + 1) % len(SPINNER_FRAMES)
        self._emit(self.live_lines(snapshot, metrics, total_subscriptions), prefix=prefix)

    def live_lines(
        self, snapshot: StatsSnapshot, metrics: LiveMetrics, total_subscriptions: int
    ) -> List[str]:
        width = self._terminal_width()
        rule = "═" * separator_width(width)

        header = f"{SPINNER_FRAMES[self._spinner_index]} WebSocket Client Dashboard - Live Stats"
        if len(header) > width:
            header = header[: max(width - 3, 0)] + "..."

        lines = [click.style(header, fg="green", bold=True), rule]

        lines.append(click.style("📡 CONNECTION METRICS", fg="cyan", bold=True))
        lines.append(f"🔗 Total Connections:     {snapshot.total_connections}")
        lines.append(f"🔄 Reconnections:         {snapshot.total_reconnections}")
        lines.append(f"🎯 Connection Attempts:   {snapshot.connection_attempts}")
        lines.append(f"⏱️  Current Conn Duration: {format_duration(metrics.current_conn_duration)}")
        lines.append(f"🏃 Total Runtime:         {format_duration(metrics.total_runtime)}")
        if metrics.average_connection_duration is not None:
            lines.append(
                f"📊 Avg Connection Time:   {format_duration(metrics.average_connection_duration)}"
            )

        lines.append("")
        lines.append(click.style("📡 SUBSCRIPTION METRICS", fg="magenta", bold=True))
        lines.append(f"📊 Total Subscriptions:   {total_subscriptions}")
        lines.append(f"✅ Confirmations:         {snapshot.confirmation_events}")
        lines.append(f"🧊 Subscription Events:   {snapshot.subscription_events}")
        lines.append(f"❌ Error Events:          {snapshot.error_events}")

        if snapshot.messages_by_type:
            lines.append("")
            lines.append(click.style("📊 MESSAGES BY TYPE", fg="blue", bold=True))
            for subscription_type, count in sorted(snapshot.messages_by_type.items()):
                lines.append(
                    f"{subscription_emoji(subscription_type)} {subscription_type}: {count} msgs"
                )

        lines.append("")
        lines.append(click.style("📨 MESSAGE METRICS", fg="blue", bold=True))
        lines.append(f"📈 Total Messages:        {snapshot.events_received}")
        lines.append(f"📨 Current Conn Messages: {snapshot.current_conn_messages}")
        lines.append(f"⚡ Messages/Second:       {metrics.messages_per_second:.2f}")
        lines.append(f"📊 Overall Rate:          {metrics.overall_rate:.2f}/sec")
        lines.append(f"⏰ Last Event:            {format_duration(metrics.time_since_last_event)} ago")

        lines.append("")
        lines.append(click.style("⚡ PERFORMANCE METRICS", fg="yellow", bold=True))
        if snapshot.events_received > 0:
            lines.append(f"✅ Success Rate:          {metrics.success_rate:.1f}%")
        if total_subscriptions > 0:
            lines.append(f"📊 Events/Subscription:   {metrics.events_per_subscription:.1f}")
        if snapshot.history:
            lines.append(f"🏆 Longest Connection:    {format_duration(metrics.longest_connection)}")
            lines.append(f"⚡ Shortest Connection:   {format_duration(metrics.shortest_connection)}")

        if snapshot.history:
            lines.append("")
            lines.append(click.style("📋 CONNECTION HISTORY", fg="yellow", bold=True))
            for record in snapshot.history[-settings.loadtest_history_display_limit:]:
                lines.append(
                    f"🔗 Connection #{record.connection_num}: {record.messages} msgs in "
                    f"{format_duration(record.duration)} "
                    f"({record.start_time:%H:%M:%S} to {record.end_time:%H:%M:%S})"
                )

        if snapshot.latest_message is not None:
            lines.append("")
            lines.append(click.style("📝 LATEST MESSAGE", fg="cyan", bold=True))
            lines.extend(self._latest_message_lines(snapshot.latest_message))

        lines.append("")
        lines.append(rule)
        lines.append(f"🕐 Last Updated: {snapshot.taken_at:%H:%M:%S}")
        return lines

    def _latest_message_lines(self, message: dict) -> List[str]:
        formatted = json.dumps(message, indent=2, default=str).splitlines()
        limit = settings.loadtest_latest_message_max_lines
        if len(formatted) > limit:
            hidden = len(formatted) - limit
            formatted = formatted[:limit] + [f"... ({hidden} more lines)"]
        return formatted

    def render_final(
        self, snapshot: StatsSnapshot, metrics: FinalMetrics, total_subscriptions: int
    ) -> None:
        """Clear the screen and print the end-of-session summary."""
        self._emit(self.final_lines(snapshot, metrics, total_subscriptions), prefix=CLEAR_SCREEN)

    def final_lines(
        self, snapshot: StatsSnapshot, metrics: FinalMetrics, total_subscriptions: int
    ) -> List[str]:
        rule = "═" * 60
        lines = [click.style("🏁 FINAL SESSION SUMMARY", fg="cyan", bold=True), rule]

        lines.append(click.style("📡 CONNECTION SUMMARY", fg="cyan", bold=True))
        lines.append(f"🔗 Total Connections:     {snapshot.total_connections}")
        lines.append(f"🔄 Total Reconnections:   {snapshot.total_reconnections}")
        lines.append(f"🎯 Connection Attempts:   {snapshot.connection_attempts}")
        lines.append(f"📡 Total Subscriptions:   {total_subscriptions}")
        lines.append(f"⏱️  Total Uptime:         {format_duration(metrics.total_uptime)}")
        lines.append(f"🏃 Total Runtime:         {format_duration(metrics.total_runtime)}")

        lines.append("")
        lines.append(click.style("📨 MESSAGE SUMMARY", fg="blue", bold=True))
        lines.append(f"📈 Total Messages:        {snapshot.events_received}")
        lines.append(f"🧊 Subscription Events:   {snapshot.subscription_events}")
        lines.append(f"✅ Confirmations:         {snapshot.confirmation_events}")
        lines.append(f"❌ Error Events:          {snapshot.error_events}")

        lines.append("")
        lines.append(click.style("⚡ PERFORMANCE SUMMARY", fg="yellow", bold=True))
        if snapshot.events_received > 0 and metrics.total_uptime > timedelta(0):
            lines.append(
                f"📈 Connection Event Rate: {metrics.connection_event_rate:.2f} events/sec"
            )
        if snapshot.events_received > 0 and metrics.total_runtime > timedelta(0):
            lines.append(f"📊 Overall Event Rate:    {metrics.overall_rate:.2f} events/sec")
        if metrics.total_runtime > timedelta(0):
            lines.append(f"📡 Connection Reliability: {metrics.reliability:.1f}%")
        if snapshot.events_received > 0:
            lines.append(f"✅ Success Rate:          {metrics.success_rate:.1f}%")
        if snapshot.total_connections > 1 and metrics.average_connection_duration is not None:
            lines.append(
                f"⏳ Avg Connection Time:   {format_duration(metrics.average_connection_duration)}"
            )

        lines.append("")
        lines.append(rule)
        lines.append(
            click.style("👋 Session Complete - Thanks for using WebSocket Client!", fg="green", bold=True)
        )
        return lines

    def render_error(self, message: str) -> None:
        click.echo(click.style(f"❌ Error: {message}", fg="red", bold=True), err=True)

    def render_notice(self, message: str) -> None:
        click.echo(
            click.style(message, fg="cyan", bold=True), file=self._stream, color=self._color
        )

