from __future__ import annotations

import json
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from weathercard.settings import get_settings

RECORDS_FILE_NAME = "records.json"

DataCallback = Callable[[Mapping[str, Any]], None]
ErrorCallback = Callable[[Exception], None]


class RecordStoreError(RuntimeError):
    """Raised when a record cannot be read or written."""


class StoredRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: str
    fields: dict[str, str | None] = {}

    @field_validator("type")
    @classmethod
    def _validate_type(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("type must be a non-empty string")
        return value


@dataclass(eq=False)
class Subscription:
    store: "RecordStore"
    record_id: str
    fields: tuple[str, ...]
    on_data: DataCallback
    on_error: ErrorCallback
    active: bool = field(default=True)

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self.store._remove(self)


def records_path(base_dir: Path | None = None) -> Path:
    base = base_dir or get_settings().data_dir
    return base / RECORDS_FILE_NAME


class RecordStore:
    """JSON-backed records with field-level subscriptions."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or records_path()
        self._subscriptions: list[Subscription] = []

    @property
    def path(self) -> Path:
        return self._path

    def get(self, record_id: str) -> StoredRecord:
        records = self._load()
        record = records.get(record_id)
        if record is None:
            raise RecordStoreError(f"No record found with id {record_id}.")
        return record

    def put(
        self,
        record_id: str,
        record_type: str,
        fields: Mapping[str, str | None],
    ) -> StoredRecord:
        if not record_id or not record_id.strip():
            raise RecordStoreError("Record id is empty")
        records = self._load()
        try:
            record = StoredRecord(type=record_type, fields=dict(fields))
        except ValidationError as exc:
            raise RecordStoreError(str(exc)) from exc

        records[record_id.strip()] = record
        self._write(records)
        self._publish(record_id.strip())
        return record

    def subscribe(
        self,
        record_id: str,
        fields: Sequence[str],
        on_data: DataCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        subscription = Subscription(
            store=self,
            record_id=record_id,
            fields=tuple(fields),
            on_data=on_data,
            on_error=on_error,
        )
        self._subscriptions.append(subscription)
        self._deliver(subscription)
        return subscription

    def refresh(self) -> None:
        """Re-read the backing file and push a snapshot to every subscriber."""
        for subscription in list(self._subscriptions):
            self._deliver(subscription)

    def _publish(self, record_id: str) -> None:
        for subscription in list(self._subscriptions):
            if subscription.record_id == record_id:
                self._deliver(subscription)

    def _deliver(self, subscription: Subscription) -> None:
        if not subscription.active:
            return
        try:
            record = self.get(subscription.record_id)
        except RecordStoreError as exc:
            subscription.on_error(exc)
            return
        snapshot = {name: record.fields.get(name) for name in subscription.fields}
        subscription.on_data(snapshot)

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def _load(self) -> dict[str, StoredRecord]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text())
        except json.JSONDecodeError as exc:
            raise RecordStoreError("Record file is not valid JSON") from exc
        if not isinstance(data, dict):
            raise RecordStoreError("Record file must contain a JSON object")

        records: dict[str, StoredRecord] = {}
        for record_id, payload in data.items():
            try:
                records[record_id] = StoredRecord.model_validate(payload)
            except ValidationError as exc:
                raise RecordStoreError(f"Record {record_id} is invalid: {exc}") from exc
        return records

    def _write(self, records: dict[str, StoredRecord]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {record_id: record.model_dump() for record_id, record in records.items()}
        self._path.write_text(json.dumps(payload, indent=2, ensure_ascii=False))
