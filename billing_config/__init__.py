"""
billing_config -- single public entrypoint for billing configuration.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains settings.
    It reads the YAML file named by ``BILLING_CONFIG`` (or the bundled
    ``defaults.yaml``) and applies the ``DATABASE_URL`` override.

Architecture position:
    Configuration.  Sits beside ``billing_kernel``; the kernel never
    imports from here.  Entry points (scripts, application wiring) read
    the config and pass plain values into services.

Failure modes:
    - ``FileNotFoundError`` -- ``BILLING_CONFIG`` names a missing file.
    - ``KeyError`` / ``ValueError`` -- malformed configuration.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path

from billing_config.loader import load_config, parse_config
from billing_config.schema import (
    BillingConfig,
    DatabaseConfig,
    ReminderConfig,
    ScheduleConfig,
)

_logger = logging.getLogger("billing_kernel.config")

CONFIG_ENV_VAR = "BILLING_CONFIG"
DATABASE_URL_ENV_VAR = "DATABASE_URL"

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

_active: BillingConfig | None = None


def get_active_config(path: Path | str | None = None) -> BillingConfig:
    """
    Return the active configuration, loading it on first use.

    Args:
        path: Explicit file to load.  Overrides ``BILLING_CONFIG`` and
            replaces any cached configuration.
    """
    global _active

    if path is None and _active is not None:
        return _active

    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH
    config = load_config(Path(path))

    url_override = os.environ.get(DATABASE_URL_ENV_VAR)
    if url_override:
        config = replace(config, database=replace(config.database, url=url_override))

    _logger.info(
        "billing_config_loaded",
        extra={
            "source": config.source,
            "deposit_label": config.schedule.deposit_label,
            "database_url_overridden": bool(url_override),
        },
    )
    _active = config
    return config


def reset_active_config() -> None:
    """Forget the cached configuration.  Test helper."""
    global _active
    _active = None


__all__ = [
    "BillingConfig",
    "DatabaseConfig",
    "ReminderConfig",
    "ScheduleConfig",
    "get_active_config",
    "load_config",
    "parse_config",
    "reset_active_config",
]
