import asyncio
from typing import Any

import pytest

from weathercard.settings import get_settings


class FakeLookup:
    """Async weather lookup that records calls.

    ``results`` maps a city to a payload or an exception instance; ``gates``
    maps a city to an ``asyncio.Event`` the call waits on before settling.
    """

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.results: dict[str, Any] = {}
        self.gates: dict[str, asyncio.Event] = {}

    async def __call__(self, city: str) -> dict[str, Any]:
        self.calls.append(city)
        gate = self.gates.get(city)
        if gate is not None:
            await gate.wait()
        result = self.results.get(city, {"name": city, "weather": [{"description": "clear sky"}]})
        if isinstance(result, BaseException):
            raise result
        return result


class FakeSubscription:
    def __init__(self, records: "FakeRecords") -> None:
        self._records = records
        self.active = True

    def unsubscribe(self) -> None:
        self.active = False


class FakeRecords:
    """In-memory record source; tests push deliveries explicitly."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self.initial = initial
        self.subscriptions: list[tuple[str, list[str], Any, Any, FakeSubscription]] = []

    def subscribe(self, record_id, fields, on_data, on_error):
        subscription = FakeSubscription(self)
        self.subscriptions.append((record_id, list(fields), on_data, on_error, subscription))
        if self.initial is not None:
            on_data(dict(self.initial))
        return subscription

    def deliver(self, snapshot: dict[str, Any]) -> None:
        for _, _, on_data, _, subscription in self.subscriptions:
            if subscription.active:
                on_data(snapshot)

    def fail(self, exc: Exception) -> None:
        for _, _, _, on_error, subscription in self.subscriptions:
            if subscription.active:
                on_error(exc)


@pytest.fixture
def lookup() -> FakeLookup:
    return FakeLookup()


@pytest.fixture
def records() -> FakeRecords:
    return FakeRecords()


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("WEATHERCARD_DATA_DIR", str(tmp_path))
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()
