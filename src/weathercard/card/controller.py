from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Protocol

from weathercard.card.gate import AutoFetchGate
from weathercard.card.resolver import CityResolver
from weathercard.card.state import (
    EMPTY_CITY_MESSAGE,
    NO_DESCRIPTION,
    UNEXPECTED_ERROR,
    CardState,
    CardView,
    ErrorKind,
    RecordContext,
)

logger = logging.getLogger(__name__)

WeatherLookup = Callable[[str], Awaitable[Mapping[str, Any]]]
Listener = Callable[[CardView], None]

SUBMIT_KEY = "Enter"


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class RecordSource(Protocol):
    def subscribe(
        self,
        record_id: str,
        fields: Sequence[str],
        on_data: Callable[[Mapping[str, Any]], None],
        on_error: Callable[[Exception], None],
    ) -> Subscription: ...


class WeatherCard:
    """City resolution, auto-fetch gating and the weather fetch pipeline.

    Overlapping fetches are resolved by generation: every attempt (and every
    clear) bumps ``_generation`` and a settling attempt only touches display
    state if it is still the newest one.
    """

    def __init__(
        self,
        lookup: WeatherLookup,
        record: RecordContext | None = None,
        records: RecordSource | None = None,
    ) -> None:
        self._lookup = lookup
        self._records = records
        self._state = CardState()
        self._resolver = CityResolver(self._state, record)
        self._gate = AutoFetchGate(self._state)
        self._listeners: list[Listener] = []
        self._subscription: Subscription | None = None
        self._pending: set[asyncio.Task[None]] = set()
        self._generation = 0
        self._intent = 0

    @property
    def state(self) -> CardState:
        return self._state

    @property
    def city(self) -> str:
        return self._state.city

    @property
    def record_note(self) -> str | None:
        record = self._resolver.record
        state = self._state
        if record is None or not self._resolver.inference_enabled or state.override:
            return None
        if not state.city or state.city != self._resolver.inferred_city:
            return None
        return f"City from the linked {record.record_type} record."

    def view(self) -> CardView:
        state = self._state
        return CardView(
            city=state.city,
            loading=state.loading,
            weather=state.weather,
            error=state.error,
            error_kind=state.error_kind,
            description=state.description,
            record_note=self.record_note,
        )

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def connect(self) -> None:
        """Subscribe to the linked record.

        Must be called from a running event loop: the record source may deliver
        immediately and an automatic fetch is scheduled on that loop.
        """
        record = self._resolver.record
        if self._subscription is not None:
            return
        if self._records is None or record is None or not record.supports_inference:
            return
        logger.debug("Subscribing to record %s (%s)", record.record_id, record.city_field)
        self._subscription = self._records.subscribe(
            record.record_id,
            [record.city_field],
            self._on_record_data,
            self._on_record_error,
        )

    def disconnect(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        for task in list(self._pending):
            task.cancel()

    async def drain(self) -> None:
        """Wait until every scheduled automatic fetch has settled."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def handle_city_change(self, value: str) -> None:
        self._intent += 1
        self._resolver.type_city(value)
        self._notify()

    async def handle_key(self, key: str) -> None:
        if key == SUBMIT_KEY:
            await self.fetch_weather()

    async def search(self) -> None:
        await self.fetch_weather()

    def clear(self) -> None:
        self._intent += 1
        self._generation += 1
        self._resolver.clear()
        self._state.loading = False
        self._notify()

    async def fetch_weather(self) -> None:
        self._generation += 1
        generation = self._generation
        state = self._state
        state.clear_display()

        if not state.city:
            state.set_error(EMPTY_CITY_MESSAGE, ErrorKind.VALIDATION)
            state.loading = False
            self._notify()
            return

        city = state.city
        state.loading = True
        self._notify()
        logger.info("Fetching weather for %r", city)
        try:
            payload = await self._lookup(city)
        except Exception as exc:
            if generation == self._generation:
                logger.info("Weather lookup for %r failed: %s", city, exc)
                state.set_error(error_message(exc), ErrorKind.FETCH)
        else:
            if generation == self._generation:
                state.clear_error()
                state.weather = dict(payload)
                state.description = describe_weather(payload)
        finally:
            if generation == self._generation:
                state.loading = False
                self._notify()
            else:
                logger.debug("Discarding stale weather result for %r", city)

    def _on_record_data(self, snapshot: Mapping[str, Any]) -> None:
        record = self._resolver.record
        field = record.city_field if record is not None else None
        value = snapshot.get(field) if field else None
        resolution = self._resolver.apply_inferred(value)
        if self._gate.consider(resolution):
            self._schedule_fetch(resolution.city)
        self._notify()

    def _on_record_error(self, exc: Exception) -> None:
        self._resolver.apply_unreadable(str(exc))
        self._notify()

    def _schedule_fetch(self, city: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise RuntimeError("WeatherCard.connect() needs a running event loop") from exc
        logger.debug("Scheduling automatic fetch for %r", city)
        task = loop.create_task(self._auto_fetch(city, self._intent))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _auto_fetch(self, city: str, intent: int) -> None:
        state = self._state
        # a keystroke or clear since scheduling owns the city now
        if intent != self._intent or state.override or state.city != city:
            logger.debug("Skipping automatic fetch for %r", city)
            return
        await self.fetch_weather()

    def _notify(self) -> None:
        view = self.view()
        for listener in list(self._listeners):
            listener(view)


def describe_weather(payload: Mapping[str, Any]) -> str:
    conditions = payload.get("weather") or []
    if not conditions:
        return NO_DESCRIPTION
    first = conditions[0]
    description = first.get("description") if isinstance(first, Mapping) else None
    return str(description) if description else NO_DESCRIPTION


def error_message(exc: BaseException) -> str:
    body = getattr(exc, "body", None)
    if isinstance(body, Mapping) and body.get("message"):
        return str(body["message"])
    message = str(exc)
    return message or UNEXPECTED_ERROR
