"""Shared fixtures for the Axion test suite."""

import pytest

from axion.cache import TieredCache
from axion.config import reset_settings


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> TieredCache:
    """Cache with 60s / 300s / 3600s tiers on a fake clock."""
    return TieredCache(l1_ttl=60, l2_ttl=300, l3_ttl=3600, clock=clock)


@pytest.fixture(autouse=True)
def _clean_settings():
    """Reset the settings singleton around every test."""
    reset_settings()
    yield
    reset_settings()
