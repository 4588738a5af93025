"""
Configuration Loader (``billing_config.loader``).

Responsibility
--------------
Loads a YAML file and parses it into the frozen dataclasses of
``billing_config.schema``.  Runtime callers go through
``billing_config.get_active_config()``.

Invariants enforced
-------------------
* Unknown sections or keys raise ``KeyError``; a typo never silently
  falls back to a default.
* Values of the wrong type or out of range raise ``ValueError``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from billing_config.schema import (
    BillingConfig,
    DatabaseConfig,
    ReminderConfig,
    ScheduleConfig,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def _check_keys(section: str, data: dict[str, Any], cls: type) -> None:
    allowed = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise KeyError(f"Unknown key(s) in '{section}': {', '.join(unknown)}")


def _int(section: str, key: str, value: Any, minimum: int) -> int:
    # bool is an int subclass; "true" is not a pool size
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{section}.{key} must be an integer, got {value!r}")
    if value < minimum:
        raise ValueError(f"{section}.{key} must be >= {minimum}, got {value}")
    return value


def _bool(section: str, key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{section}.{key} must be true or false, got {value!r}")
    return value


def _str(section: str, key: str, value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{section}.{key} must be a non-empty string, got {value!r}")
    return value


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    """Parse the ``database`` section."""
    _check_keys("database", data, DatabaseConfig)
    default = DatabaseConfig()
    return DatabaseConfig(
        url=_str("database", "url", data.get("url", default.url)),
        echo=_bool("database", "echo", data.get("echo", default.echo)),
        pool_size=_int("database", "pool_size", data.get("pool_size", default.pool_size), 1),
        max_overflow=_int(
            "database", "max_overflow", data.get("max_overflow", default.max_overflow), 0,
        ),
        pool_timeout=_int(
            "database", "pool_timeout", data.get("pool_timeout", default.pool_timeout), 1,
        ),
        busy_timeout=_int(
            "database", "busy_timeout", data.get("busy_timeout", default.busy_timeout), 0,
        ),
    )


def parse_schedule(data: dict[str, Any]) -> ScheduleConfig:
    """Parse the ``schedule`` section."""
    _check_keys("schedule", data, ScheduleConfig)
    default = ScheduleConfig()
    return ScheduleConfig(
        deposit_label=_str(
            "schedule", "deposit_label", data.get("deposit_label", default.deposit_label),
        ),
        sweep_on_record=_bool(
            "schedule", "sweep_on_record", data.get("sweep_on_record", default.sweep_on_record),
        ),
        max_installments=_int(
            "schedule", "max_installments",
            data.get("max_installments", default.max_installments), 1,
        ),
    )


def parse_reminders(data: dict[str, Any]) -> ReminderConfig:
    """Parse the ``reminders`` section."""
    _check_keys("reminders", data, ReminderConfig)
    default = ReminderConfig()
    return ReminderConfig(
        window_days=_int(
            "reminders", "window_days", data.get("window_days", default.window_days), 0,
        ),
        dedupe_hours=_int(
            "reminders", "dedupe_hours", data.get("dedupe_hours", default.dedupe_hours), 0,
        ),
        batch_limit=_int(
            "reminders", "batch_limit", data.get("batch_limit", default.batch_limit), 1,
        ),
    )


_SECTIONS = {
    "database": parse_database,
    "schedule": parse_schedule,
    "reminders": parse_reminders,
}


def parse_config(data: dict[str, Any], source: str | None = None) -> BillingConfig:
    """
    Parse a full ``BillingConfig`` from a dict.

    Raises:
        KeyError: on unknown sections or keys.
        ValueError: on invalid values.
    """
    unknown = sorted(set(data) - set(_SECTIONS))
    if unknown:
        raise KeyError(f"Unknown configuration section(s): {', '.join(unknown)}")

    parsed = {}
    for section, parser in _SECTIONS.items():
        raw = data.get(section) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Section '{section}' must be a mapping, got {raw!r}")
        parsed[section] = parser(raw)

    return BillingConfig(source=source, **parsed)


def load_config(path: Path) -> BillingConfig:
    """Load and parse a configuration file."""
    return parse_config(load_yaml_file(path), source=str(path))
