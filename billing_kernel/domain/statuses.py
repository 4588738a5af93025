"""
Statuses -- closed enumerations for every state field the engine reads or writes.

Architecture position:
    Kernel > Domain -- pure definitions, zero I/O.

Invariants enforced:
    - Installment settlement status is one of DUE, PARTIAL, PAID, OVERDUE.
    - Project lifecycle status is one of the ten workflow states below.  The
      payment engine only ever produces CREATED|DEPOSIT_PENDING -> PLANNED;
      every other transition belongs to workflows outside this package.
    - Values are persisted as their string value.
"""

from enum import Enum


class InstallmentStatus(str, Enum):
    """Settlement state of one scheduled installment."""

    DUE = "DUE"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class ProjectStatus(str, Enum):
    """Project workflow state."""

    CREATED = "CREATED"
    DEPOSIT_PENDING = "DEPOSIT_PENDING"
    PLANNED = "PLANNED"
    SCHEDULING_PENDING = "SCHEDULING_PENDING"
    PREPARING = "PREPARING"
    READY = "READY"
    ONGOING = "ONGOING"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    CLOSED = "CLOSED"


class PaymentKind(str, Enum):
    """What the client said the money was for."""

    DEPOSIT = "DEPOSIT"
    INSTALLMENT = "INSTALLMENT"
    ADJUSTMENT = "ADJUSTMENT"


class ReminderKind(str, Enum):
    """Reminder queued for an unsettled installment."""

    UPCOMING = "UPCOMING"
    OVERDUE = "OVERDUE"


# Installments the allocation engine may still pay into.
OUTSTANDING_STATUSES: frozenset[InstallmentStatus] = frozenset({
    InstallmentStatus.OVERDUE,
    InstallmentStatus.DUE,
    InstallmentStatus.PARTIAL,
})

# Installments the overdue sweep may flip.
SWEEPABLE_STATUSES: frozenset[InstallmentStatus] = frozenset({
    InstallmentStatus.DUE,
    InstallmentStatus.PARTIAL,
})
