"""Pytest configuration for sessionmenu tests."""

import os
from datetime import datetime, timedelta, timezone

import pytest

# Keep the user's config file and .env out of the test run.
os.environ["SESSIONMENU_CONFIG"] = os.path.join(os.path.dirname(__file__), "missing-sessionmenu.yml")
os.environ["SESSIONMENU_ENV_PATH"] = os.path.join(os.path.dirname(__file__), "missing.env")

from sessionmenu.core.models import ConnectionState  # noqa: E402

T0 = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def pytest_collection_modifyitems(config, items):
    """Set per-marker timeouts: unit=1s, integration=5s."""
    for item in items:
        if "unit" in item.keywords:
            item.add_marker(pytest.mark.timeout(1))
        elif "integration" in item.keywords:
            item.add_marker(pytest.mark.timeout(5))


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeConnection:
    def __init__(self, state: ConnectionState = ConnectionState.CONNECTED) -> None:
        self.state = state


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def connection() -> FakeConnection:
    return FakeConnection()
