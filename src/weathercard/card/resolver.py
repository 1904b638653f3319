from __future__ import annotations

import logging
from dataclasses import dataclass

from weathercard.card.state import (
    NO_RECORD_CITY_MESSAGE,
    RECORD_UNREADABLE_MESSAGE,
    CardState,
    ErrorKind,
    RecordContext,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    city: str
    inferred_city_changed: bool
    has_value: bool


class CityResolver:
    """Merge typed and record-inferred city values into ``CardState.city``."""

    def __init__(self, state: CardState, record: RecordContext | None = None) -> None:
        self._state = state
        self._record = record
        self._inferred_city: str | None = None

    @property
    def record(self) -> RecordContext | None:
        return self._record

    @property
    def inference_enabled(self) -> bool:
        return self._record is not None and self._record.supports_inference

    @property
    def inferred_city(self) -> str | None:
        return self._inferred_city

    def apply_inferred(self, value: object) -> Resolution:
        state = self._state
        if not self.inference_enabled:
            return Resolution(city=state.city, inferred_city_changed=False, has_value=False)

        inferred = _normalize(value)
        self._observe(inferred)

        if state.override:
            return Resolution(
                city=state.city, inferred_city_changed=False, has_value=inferred is not None
            )

        if inferred is None:
            self._hint(NO_RECORD_CITY_MESSAGE)
            return Resolution(city=state.city, inferred_city_changed=False, has_value=False)

        if state.error_kind is ErrorKind.HINT:
            state.clear_error()

        changed = inferred != state.city
        if changed:
            logger.debug("Adopting inferred city %r (was %r)", inferred, state.city)
            state.city = inferred
        return Resolution(city=state.city, inferred_city_changed=changed, has_value=True)

    def apply_unreadable(self, reason: str | None = None) -> None:
        if not self.inference_enabled:
            return
        logger.info("Linked record unreadable: %s", reason or "unknown error")
        self._observe(None)
        if not self._state.override:
            self._hint(RECORD_UNREADABLE_MESSAGE)

    def type_city(self, value: str) -> None:
        state = self._state
        state.city = value
        state.override = True
        state.auto_fetch_done = False
        if state.error_kind is ErrorKind.HINT:
            state.clear_error()

    def clear(self) -> None:
        state = self._state
        state.clear_display()
        state.override = False
        state.auto_fetch_done = False
        if not self.inference_enabled:
            state.city = ""

    def _observe(self, inferred: str | None) -> None:
        if inferred != self._inferred_city:
            self._inferred_city = inferred
            self._state.auto_fetch_done = False

    def _hint(self, message: str) -> None:
        state = self._state
        # validation and fetch errors outrank record hints
        if state.error is None or state.error_kind is ErrorKind.HINT:
            state.weather = None
            state.description = None
            state.set_error(message, ErrorKind.HINT)


def _normalize(value: object) -> str | None:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None
