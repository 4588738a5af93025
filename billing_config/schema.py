"""
Configuration schema (``billing_config.schema``).

Frozen dataclasses describing one billing configuration.  Every field has
a default so an empty YAML document yields a usable configuration; the
loader validates anything that *is* present.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection and pool settings passed to ``init_engine_from_url``."""

    url: str = "sqlite:///billing.db"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    busy_timeout: int = 30


@dataclass(frozen=True)
class ScheduleConfig:
    """
    Payment plan and payment recording settings.

    deposit_label:
        Exact, case-sensitive label of the deposit installment.
    sweep_on_record:
        Run the project's overdue sweep inside every recorded payment.
    max_installments:
        Hard guard on the number of monthly lines one plan may hold.
    """

    deposit_label: str = "Deposit"
    sweep_on_record: bool = True
    max_installments: int = 600


@dataclass(frozen=True)
class ReminderConfig:
    """Reminder queue settings."""

    window_days: int = 7
    dedupe_hours: int = 24
    batch_limit: int = 200


@dataclass(frozen=True)
class BillingConfig:
    """Root configuration object."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    reminders: ReminderConfig = field(default_factory=ReminderConfig)
    source: str | None = None
