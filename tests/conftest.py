"""
Pytest configuration and fixtures.
"""

from datetime import datetime, timedelta

import pytest

from ws_loadtest.models.config import LoadTestConfig
from ws_loadtest.services.stats.aggregator import StatsAggregator


class FakeClock:
    """Manually advanced clock for deterministic timing."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    """Fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def stats(clock):
    """Aggregator driven by the fake clock."""
    return StatsAggregator(clock=clock)


@pytest.fixture
def config():
    """Two types with two instances each, credential set."""
    return LoadTestConfig(
        url="https://xrplevm.example.test/v1/app",
        service_id="xrplevm",
        auth_header="secret-key",
        subscriptions="newHeads,logs",
        sub_count=2,
    )
