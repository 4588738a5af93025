"""
Module: billing_engines.overdue
Responsibility:
    Decide which installments have gone overdue as of a given date.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The as-of date is an
    explicit argument; the caller reads it from an injected Clock.

Invariants enforced:
    - Only DUE and PARTIAL installments are flipped.
    - An installment is overdue when its due date is strictly before the
      as-of date; an installment due today is not overdue.
    - PAID installments are never touched.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import date

from billing_engines.tracer import traced_engine
from billing_kernel.domain.dtos import InstallmentSnapshot
from billing_kernel.domain.statuses import SWEEPABLE_STATUSES, InstallmentStatus


@dataclass(frozen=True)
class OverdueSweepResult:
    """Installments flipped to OVERDUE by one sweep."""

    as_of: date
    flipped: tuple[InstallmentSnapshot, ...]

    @property
    def count(self) -> int:
        return len(self.flipped)


def is_overdue(installment: InstallmentSnapshot, as_of: date) -> bool:
    """True if the sweep should flip ``installment`` on ``as_of``."""
    return installment.status in SWEEPABLE_STATUSES and installment.due_on < as_of


@traced_engine("overdue_sweep", "1.0", fingerprint_fields=("as_of",))
def sweep_overdue(
    *,
    installments: Sequence[InstallmentSnapshot],
    as_of: date,
) -> OverdueSweepResult:
    """Return OVERDUE snapshots for every installment past due on ``as_of``."""
    flipped = tuple(
        replace(i, status=InstallmentStatus.OVERDUE)
        for i in sorted(installments, key=lambda i: i.ledger_key)
        if is_overdue(i, as_of)
    )
    return OverdueSweepResult(as_of=as_of, flipped=flipped)
