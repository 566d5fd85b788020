"""Shared fixtures for payload and job tests."""

from datetime import datetime, timezone

import pytest


class Order:
    def __init__(self) -> None:
        self.code = 123

    @property
    def total_price(self) -> int:
        return 42


class FakePublisher:
    def __init__(self, fail: bool = False) -> None:
        self.published: list = []
        self.fail = fail
        self.is_connected = True
        self.exchange_name = "jobs"

    async def publish(self, job) -> None:
        if self.fail:
            raise ConnectionError("broker unavailable")
        self.published.append(job)


@pytest.fixture
def order() -> Order:
    return Order()


@pytest.fixture
def march_first() -> datetime:
    return datetime(2020, 3, 1, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fake_publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def failing_publisher() -> FakePublisher:
    return FakePublisher(fail=True)
