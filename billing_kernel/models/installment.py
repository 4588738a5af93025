"""
Installment ORM model (``billing_kernel.models.installment``).

One line of a project's payment plan.

Invariants enforced:
    - ``0 <= amount_paid <= amount_due`` (CHECK constraints).
    - ``amount_due`` never changes and ``amount_paid`` never decreases
      after insert (ORM listeners in ``billing_kernel.db.immutability``).
    - ``(project_id, sequence)`` is unique; installments of a project are
      totally ordered by ``(due_on, sequence)``.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billing_kernel.db.base import TrackedBase
from billing_kernel.domain.dtos import InstallmentSnapshot
from billing_kernel.domain.statuses import InstallmentStatus


class InstallmentModel(TrackedBase):
    """
    ORM model for scheduled installments.

    Maps to the ``InstallmentSnapshot`` frozen dataclass.
    """

    __tablename__ = "installments"

    __table_args__ = (
        UniqueConstraint("project_id", "sequence", name="uq_installments_project_sequence"),
        CheckConstraint("amount_due >= 0", name="ck_installments_amount_due_non_negative"),
        CheckConstraint("amount_paid >= 0", name="ck_installments_amount_paid_non_negative"),
        CheckConstraint("amount_paid <= amount_due", name="ck_installments_paid_within_due"),
        Index("idx_installments_project_ledger", "project_id", "due_on", "sequence"),
        Index("idx_installments_status_due_on", "status", "due_on"),
    )

    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id"), nullable=False)
    sequence: Mapped[int] = mapped_column(nullable=False)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    due_on: Mapped[date] = mapped_column(nullable=False)
    amount_due: Mapped[int] = mapped_column(nullable=False)
    amount_paid: Mapped[int] = mapped_column(default=0, nullable=False)
    status: Mapped[InstallmentStatus] = mapped_column(
        Enum(InstallmentStatus, native_enum=False, length=20),
        default=InstallmentStatus.DUE,
        nullable=False,
    )

    project = relationship("ProjectModel", back_populates="installments")

    def to_snapshot(self) -> InstallmentSnapshot:
        """Convert ORM model to frozen dataclass."""
        return InstallmentSnapshot(
            installment_id=self.id,
            sequence=self.sequence,
            due_on=self.due_on,
            label=self.label,
            amount_due=self.amount_due,
            amount_paid=self.amount_paid,
            status=self.status,
        )

    def __repr__(self) -> str:
        return (
            f"<InstallmentModel #{self.sequence} {self.label}: "
            f"{self.amount_paid}/{self.amount_due} {self.status.value}>"
        )
