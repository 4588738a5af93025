"""
Config -> Kernel Bridges.

Functions that build kernel services from a BillingConfig.  These live in
billing_config (the producer) because the kernel never imports
billing_config.

Usage:
    from billing_config import get_active_config
    from billing_config.bridges import build_payment_service

    config = get_active_config()
    payments = build_payment_service(config, clock=clock)
"""

from __future__ import annotations

from sqlalchemy.orm import Session, sessionmaker

from billing_config.schema import BillingConfig
from billing_kernel.db.engine import create_tables, init_engine_from_url
from billing_kernel.db.immutability import register_immutability_listeners
from billing_kernel.domain.clock import Clock
from billing_kernel.services.locks import ProjectLockRegistry
from billing_kernel.services.payment_service import PaymentService
from billing_kernel.services.reminder_service import ReminderService
from billing_kernel.services.schedule_service import ScheduleService


def build_payment_service(
    config: BillingConfig,
    session_factory: sessionmaker[Session] | None = None,
    clock: Clock | None = None,
    *,
    locks: ProjectLockRegistry | None = None,
) -> PaymentService:
    """PaymentService using the configured deposit label and sweep switch."""
    return PaymentService(
        session_factory,
        clock,
        deposit_label=config.schedule.deposit_label,
        sweep_on_record=config.schedule.sweep_on_record,
        locks=locks,
    )


def build_schedule_service(
    config: BillingConfig,
    session_factory: sessionmaker[Session] | None = None,
    clock: Clock | None = None,
    *,
    locks: ProjectLockRegistry | None = None,
) -> ScheduleService:
    """ScheduleService using the configured deposit label and month guard."""
    return ScheduleService(
        session_factory,
        clock,
        deposit_label=config.schedule.deposit_label,
        max_installments=config.schedule.max_installments,
        locks=locks,
    )


def build_reminder_service(
    config: BillingConfig,
    session_factory: sessionmaker[Session] | None = None,
    clock: Clock | None = None,
) -> ReminderService:
    reminders = config.reminders
    return ReminderService(
        session_factory,
        clock,
        window_days=reminders.window_days,
        dedupe_hours=reminders.dedupe_hours,
        batch_limit=reminders.batch_limit,
    )


def init_database(
    config: BillingConfig,
    database_url: str | None = None,
    *,
    create: bool = False,
) -> None:
    """
    Initialize the kernel engine from ``config.database``.

    Also registers the append-only listeners.  ``database_url`` overrides
    the configured url; ``create`` creates missing tables.
    """
    db = config.database
    init_engine_from_url(
        database_url or db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        busy_timeout=db.busy_timeout,
    )
    register_immutability_listeners()
    if create:
        create_tables()
