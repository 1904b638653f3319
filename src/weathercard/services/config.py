from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from weathercard.settings import get_settings

CONFIG_FILE_NAME = "config.json"


class ConfigError(RuntimeError):
    """Raised when config cannot be loaded or parsed."""


class ConfigMissingError(ConfigError):
    """Raised when required config is missing."""


@dataclass(frozen=True)
class LinkedRecordConfig:
    record_id: str
    record_type: str


@dataclass(frozen=True)
class AppConfig:
    linked_record: LinkedRecordConfig | None = None


def config_path(base_dir: Path | None = None) -> Path:
    base = base_dir or get_settings().data_dir
    return base / CONFIG_FILE_NAME


def config_exists(base_dir: Path | None = None) -> bool:
    return config_path(base_dir).exists()


def ensure_config_dir(base_dir: Path | None = None) -> Path:
    path = config_path(base_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def load_config(base_dir: Path | None = None) -> AppConfig:
    path = config_path(base_dir)
    if not path.exists():
        raise ConfigMissingError("Config not found. Run `weathercard link` to link a record.")

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigError("Config file is not valid JSON") from exc
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object")

    return AppConfig(linked_record=_parse_linked_record(data.get("linked_record")))


def write_config(config: AppConfig, base_dir: Path | None = None) -> None:
    path = ensure_config_dir(base_dir)
    payload: dict[str, Any] = {}
    if config.linked_record:
        payload["linked_record"] = {
            "record_id": config.linked_record.record_id,
            "record_type": config.linked_record.record_type,
        }
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False))


def update_config(update: dict[str, Any], base_dir: Path | None = None) -> AppConfig:
    path = config_path(base_dir)
    current: dict[str, Any] = {}
    if path.exists():
        try:
            current = json.loads(path.read_text())
        except json.JSONDecodeError:
            current = {}

    merged = _merge_dicts(current, update)
    config = AppConfig(linked_record=_parse_linked_record(merged.get("linked_record")))
    write_config(config, base_dir)
    return config


def _parse_linked_record(data: Any) -> LinkedRecordConfig | None:
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ConfigError("Linked record payload is invalid")

    return LinkedRecordConfig(
        record_id=_required_str(data, "record_id"),
        record_type=_required_str(data, "record_type"),
    )


def _required_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigMissingError(
            f"Linked record is missing `{key}`. Run `weathercard link` to link a record."
        )
    return value.strip()


def _merge_dicts(base: dict[str, Any], update: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in update.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged
