from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

EMPTY_CITY_MESSAGE = "Please enter a city name."
NO_DESCRIPTION = "No description available"
UNEXPECTED_ERROR = "An unexpected error occurred."
NO_RECORD_CITY_MESSAGE = "No city on this record. Enter a city manually."
RECORD_UNREADABLE_MESSAGE = "Could not read the linked record. Enter a city manually."


class RecordType(StrEnum):
    ACCOUNT = "Account"
    CONTACT = "Contact"


CITY_FIELDS: dict[RecordType, str] = {
    RecordType.ACCOUNT: "BillingCity",
    RecordType.CONTACT: "MailingCity",
}


class ErrorKind(StrEnum):
    VALIDATION = "validation"
    HINT = "hint"
    FETCH = "fetch"


@dataclass(frozen=True)
class RecordContext:
    record_id: str | None = None
    record_type: str | None = None

    @property
    def city_field(self) -> str | None:
        try:
            return CITY_FIELDS[RecordType(self.record_type)]
        except ValueError:
            return None

    @property
    def supports_inference(self) -> bool:
        return bool(self.record_id) and self.city_field is not None


@dataclass
class CardState:
    city: str = ""
    override: bool = False
    auto_fetch_done: bool = False
    loading: bool = False
    weather: dict[str, Any] | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    description: str | None = None

    def set_error(self, message: str, kind: ErrorKind) -> None:
        self.error = message
        self.error_kind = kind

    def clear_error(self) -> None:
        self.error = None
        self.error_kind = None

    def clear_display(self) -> None:
        self.weather = None
        self.description = None
        self.clear_error()


@dataclass(frozen=True)
class CardView:
    """Immutable snapshot of everything the card renders."""

    city: str
    loading: bool
    weather: dict[str, Any] | None
    error: str | None
    error_kind: ErrorKind | None
    description: str | None
    record_note: str | None
