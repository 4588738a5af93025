"""
Payment reminder ORM model (``billing_kernel.models.reminder``).

A queued reminder for an unsettled installment.  Rows are only queued
here; whatever delivers them lives outside this package.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import Base
from billing_kernel.domain.dtos import ReminderRecord
from billing_kernel.domain.statuses import ReminderKind


class PaymentReminderModel(Base):
    """ORM model for queued payment reminders."""

    __tablename__ = "payment_reminders"

    __table_args__ = (
        Index("idx_payment_reminders_dedupe", "installment_id", "kind", "queued_at"),
    )

    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id"), nullable=False)
    installment_id: Mapped[UUID] = mapped_column(ForeignKey("installments.id"), nullable=False)
    kind: Mapped[ReminderKind] = mapped_column(
        Enum(ReminderKind, native_enum=False, length=20),
        nullable=False,
    )
    queued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def to_dto(self) -> ReminderRecord:
        """Convert ORM model to frozen dataclass."""
        return ReminderRecord(
            reminder_id=self.id,
            installment_id=self.installment_id,
            kind=self.kind,
            queued_at=self.queued_at,
        )
