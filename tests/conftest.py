"""Shared test fixtures."""

from datetime import UTC, date, datetime, timedelta

import pytest

from optin_manager import ConfirmationService
from optin_manager.notifiers import OutboxNotifier
from optin_manager.stores import InMemorySubscriptionStore


class FakeClock:
    def __init__(self, start: datetime = datetime(2015, 1, 20, 12, 0, tzinfo=UTC)):
        self._now = start

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.date()

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemorySubscriptionStore(clock=clock)


@pytest.fixture
def notifier():
    return OutboxNotifier(confirm_url_template="https://example.tld/subscriptions/{token}/confirm")


@pytest.fixture
def service(store, notifier, clock):
    return ConfirmationService(store, notifier, clock=clock)
