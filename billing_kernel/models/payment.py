"""
Payment ORM models (``billing_kernel.models.payment``).

``ClientPaymentModel`` records money received; ``AllocationEventModel``
records which installment each part of it settled.

Invariants enforced:
    - Payment amount is strictly positive (CHECK constraint).
    - Allocation event amount is strictly positive (CHECK constraint).
    - Both are append-only: UPDATE and DELETE are refused by ORM listeners
      in ``billing_kernel.db.immutability``.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import TrackedBase
from billing_kernel.domain.dtos import AllocationEventRecord, PaymentRecord
from billing_kernel.domain.statuses import PaymentKind


class ClientPaymentModel(TrackedBase):
    """
    ORM model for client payments.

    ``created_by_id`` is the actor who recorded the payment.
    """

    __tablename__ = "client_payments"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_client_payments_amount_positive"),
        Index("idx_client_payments_project_received", "project_id", "received_on"),
    )

    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id"), nullable=False)
    kind: Mapped[PaymentKind] = mapped_column(
        Enum(PaymentKind, native_enum=False, length=20),
        nullable=False,
    )
    amount: Mapped[int] = mapped_column(nullable=False)
    received_on: Mapped[date] = mapped_column(nullable=False)
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self) -> PaymentRecord:
        """Convert ORM model to frozen dataclass."""
        return PaymentRecord(
            payment_id=self.id,
            project_id=self.project_id,
            kind=self.kind,
            amount=self.amount,
            received_on=self.received_on,
            reference=self.reference,
            method=self.method,
            description=self.description,
            recorded_by_id=self.created_by_id,
        )

    def __repr__(self) -> str:
        return f"<ClientPaymentModel {self.kind.value} {self.amount} on {self.received_on}>"


class AllocationEventModel(TrackedBase):
    """ORM model for one application of a payment to an installment."""

    __tablename__ = "allocation_events"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_allocation_events_amount_positive"),
        Index("idx_allocation_events_payment", "payment_id"),
        Index("idx_allocation_events_project", "project_id"),
        Index("idx_allocation_events_installment", "installment_id"),
    )

    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id"), nullable=False)
    payment_id: Mapped[UUID] = mapped_column(ForeignKey("client_payments.id"), nullable=False)
    installment_id: Mapped[UUID] = mapped_column(ForeignKey("installments.id"), nullable=False)
    amount: Mapped[int] = mapped_column(nullable=False)

    def to_dto(self) -> AllocationEventRecord:
        """Convert ORM model to frozen dataclass."""
        return AllocationEventRecord(
            event_id=self.id,
            project_id=self.project_id,
            payment_id=self.payment_id,
            installment_id=self.installment_id,
            amount=self.amount,
        )
