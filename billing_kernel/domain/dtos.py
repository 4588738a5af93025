"""
DTOs -- frozen value objects exchanged between services, engines and selectors.

Architecture position:
    Kernel > Domain -- pure data definitions, zero I/O.  Engines compute on
    these; services build them from ORM rows and write results back;
    selectors return them to callers.

Invariants enforced:
    - ``InstallmentSnapshot`` validates ``0 <= amount_paid <= amount_due``.
    - All amounts are ``int`` minor units.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from billing_kernel.domain.statuses import (
    InstallmentStatus,
    PaymentKind,
    ProjectStatus,
    ReminderKind,
)


@dataclass(frozen=True)
class InstallmentSnapshot:
    """
    Point-in-time view of one installment.

    Contract:
        Frozen dataclass; engines return new snapshots instead of mutating.
    Guarantees:
        - ``0 <= amount_paid <= amount_due``.
    """

    installment_id: UUID
    sequence: int
    due_on: date
    label: str
    amount_due: int
    amount_paid: int
    status: InstallmentStatus

    def __post_init__(self) -> None:
        if self.amount_due < 0:
            raise ValueError(f"amount_due cannot be negative: {self.amount_due}")
        if not 0 <= self.amount_paid <= self.amount_due:
            raise ValueError(
                f"amount_paid {self.amount_paid} outside [0, {self.amount_due}]"
            )

    @property
    def need(self) -> int:
        """Minor units still owed."""
        return self.amount_due - self.amount_paid

    @property
    def ledger_key(self) -> tuple[date, int]:
        """Total order of installments within a project."""
        return (self.due_on, self.sequence)

    @property
    def is_settled(self) -> bool:
        return self.amount_paid >= self.amount_due


@dataclass(frozen=True)
class PaymentRecord:
    """A client payment as stored."""

    payment_id: UUID
    project_id: UUID
    kind: PaymentKind
    amount: int
    received_on: date
    reference: str | None
    method: str | None
    description: str | None
    recorded_by_id: UUID


@dataclass(frozen=True)
class AllocationEventRecord:
    """One application of a payment to an installment."""

    event_id: UUID
    project_id: UUID
    payment_id: UUID
    installment_id: UUID
    amount: int


@dataclass(frozen=True)
class RecordPaymentResult:
    """
    Outcome of recording one payment.

    Callers do not need any of this to refresh their views; it exists for
    logging, tests and the command line.
    """

    payment_id: UUID
    project_id: UUID
    amount: int
    applied: int
    absorbed: int
    installments_touched: int
    overdue_flipped: int
    gate_fired: bool
    project_status: ProjectStatus


@dataclass(frozen=True)
class ScheduleSummary:
    """Aggregate position of a project's installment ledger."""

    project_id: UUID
    project_status: ProjectStatus
    installment_count: int
    total_due: int
    total_paid: int
    overdue_count: int
    deposit_settled: bool | None

    @property
    def outstanding(self) -> int:
        return self.total_due - self.total_paid


@dataclass(frozen=True)
class PrematureAdvance:
    """A project past the deposit gate whose deposit line is not fully paid."""

    project_id: UUID
    project_status: ProjectStatus
    deposit_due: int
    deposit_paid: int


@dataclass(frozen=True)
class ReminderRecord:
    """A queued payment reminder."""

    reminder_id: UUID
    installment_id: UUID
    kind: ReminderKind
    queued_at: datetime
