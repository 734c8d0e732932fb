"""Shared fixtures for nudger tests."""
from datetime import datetime, timedelta

import pytest

from nudger.services.registry import UserRegistry


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingDispatcher:
    """Dispatcher stand-in that remembers what it was asked to send."""

    def __init__(self):
        self.sent = []

    async def send(self, notification) -> bool:
        self.sent.append(notification)
        return True


@pytest.fixture
def clock():
    # A Monday, 11:00 local time
    return FakeClock(datetime(2026, 3, 2, 11, 0))


@pytest.fixture
def registry(clock):
    return UserRegistry(clock=clock)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()
