"""Global pytest configuration and fixtures."""

from __future__ import annotations

import pytest


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: needs Docker for a PostgreSQL container"
    )


@pytest.fixture
def clock() -> FakeClock:
    """A clock starting at t=0."""
    return FakeClock()
