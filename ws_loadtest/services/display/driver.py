"""Periodic dashboard refresh driven by a shared shutdown event."""

import asyncio
from typing import Callable, Optional

from ...config.logging import get_logger
from ...config.settings import settings
from ...models.stats import StatsSnapshot
from ..stats.aggregator import StatsAggregator
from .dashboard import DashboardRenderer

logger = get_logger(__name__)


class DisplayDriver:
    """Refreshes the live dashboard on a fixed interval.

    Only reads aggregator snapshots; nothing is rendered until the first
    connection has begun.
    """

    def __init__(
        self,
        stats: StatsAggregator,
        renderer: DashboardRenderer,
        subscription_count: Callable[[], int],
        interval: Optional[float] = None,
    ):
        """
        Initialize the display driver.

        Args:
            stats: Aggregator to read from.
            renderer: Dashboard renderer.
            subscription_count: Returns the current total subscription count.
            interval: Seconds between refreshes.
        """
        self._stats = stats
        self._renderer = renderer
        self._subscription_count = subscription_count
        self._interval = settings.loadtest_display_interval if interval is None else interval
        self._renders = 0

    @property
    def renders(self) -> int:
        return self._renders

    async def run(self, stop_event: asyncio.Event) -> None:
        """Tick until ``stop_event`` is set."""
        logger.info("display_driver_started", interval=self._interval)
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                self.tick()
        logger.info("display_driver_stopped", renders=self._renders)

    def tick(self) -> None:
        """Render once if at least one connection has begun."""
        snapshot = self._stats.snapshot()
        if snapshot.total_connections > 0:
            self._render(snapshot)

    def render_now(self) -> None:
        """Render immediately, regardless of the tick schedule."""
        self._render(self._stats.snapshot())

    def _render(self, snapshot: StatsSnapshot) -> None:
        total_subscriptions = self._subscription_count()
        metrics = self._stats.live_metrics(total_subscriptions, snapshot)
        self._renderer.render_live(snapshot, metrics, total_subscriptions)
        self._renders += 1
