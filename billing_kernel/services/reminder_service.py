"""
ReminderService -- queue reminders for unsettled installments.

Responsibility:
    Finds installments that are not PAID and fall due within the look-ahead
    window (overdue ones included) and queues one PaymentReminderModel row
    per installment.  Delivering reminders is somebody else's job.

Invariants enforced:
    - Kind is OVERDUE when the installment is OVERDUE or its due date has
      passed, UPCOMING otherwise.
    - An installment that already had a reminder of the same kind queued
      within the dedupe window is skipped.
    - At most ``batch_limit`` reminders per run, oldest due date first.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from billing_kernel.db.engine import session_scope
from billing_kernel.domain.clock import Clock
from billing_kernel.domain.dtos import InstallmentSnapshot, ReminderRecord
from billing_kernel.domain.statuses import InstallmentStatus, ReminderKind
from billing_kernel.logging_config import get_logger
from billing_kernel.models.installment import InstallmentModel
from billing_kernel.models.reminder import PaymentReminderModel
from billing_kernel.services.base import BaseService, translate_storage_errors

logger = get_logger("services.reminders")

DEFAULT_WINDOW_DAYS = 7
DEFAULT_DEDUPE_HOURS = 24
DEFAULT_BATCH_LIMIT = 200


def reminder_kind(installment: InstallmentSnapshot, as_of: date) -> ReminderKind:
    if installment.status is InstallmentStatus.OVERDUE or installment.due_on < as_of:
        return ReminderKind.OVERDUE
    return ReminderKind.UPCOMING


@dataclass(frozen=True)
class ReminderRunResult:
    as_of: date
    queued: tuple[ReminderRecord, ...]
    skipped_duplicates: int

    @property
    def count(self) -> int:
        return len(self.queued)


class ReminderService(BaseService):
    """Queues payment reminders."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        *,
        window_days: int = DEFAULT_WINDOW_DAYS,
        dedupe_hours: int = DEFAULT_DEDUPE_HOURS,
        batch_limit: int = DEFAULT_BATCH_LIMIT,
    ):
        super().__init__(session_factory, clock)
        self._window = timedelta(days=window_days)
        self._dedupe = timedelta(hours=dedupe_hours)
        self._batch_limit = batch_limit

    def queue_reminders(self) -> ReminderRunResult:
        """Queue one run of reminders as of the clock's current time."""
        now = self._clock.now_utc()
        as_of = self._clock.today()
        horizon = as_of + self._window

        with translate_storage_errors("queue_reminders"):
            with session_scope(self._session_factory) as session:
                candidates = session.execute(
                    select(InstallmentModel)
                    .where(
                        InstallmentModel.status != InstallmentStatus.PAID,
                        InstallmentModel.due_on <= horizon,
                    )
                    .order_by(
                        InstallmentModel.due_on,
                        InstallmentModel.project_id,
                        InstallmentModel.sequence,
                    )
                ).scalars().all()

                recent = {
                    (installment_id, kind)
                    for installment_id, kind in session.execute(
                        select(PaymentReminderModel.installment_id, PaymentReminderModel.kind)
                        .where(PaymentReminderModel.queued_at >= now - self._dedupe)
                    )
                }

                queued: list[PaymentReminderModel] = []
                skipped = 0
                for row in candidates:
                    if len(queued) >= self._batch_limit:
                        break
                    kind = reminder_kind(row.to_snapshot(), as_of)
                    if (row.id, kind) in recent:
                        skipped += 1
                        continue
                    queued.append(PaymentReminderModel(
                        project_id=row.project_id,
                        installment_id=row.id,
                        kind=kind,
                        queued_at=now,
                    ))

                session.add_all(queued)
                session.flush()
                records = tuple(reminder.to_dto() for reminder in queued)

        logger.info("reminders_queued", extra={
            "as_of": as_of,
            "queued": len(records),
            "skipped_duplicates": skipped,
            "batch_limit": self._batch_limit,
        })
        return ReminderRunResult(as_of=as_of, queued=records, skipped_duplicates=skipped)
