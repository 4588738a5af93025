"""
Module: billing_engines.allocation
Responsibility:
    Distribute a received payment across a project's outstanding
    installments, oldest first.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import billing_kernel/domain.

Invariants enforced:
    - Conservation: ``applied + remainder == amount``.
    - No installment is paid beyond its amount due.
    - Strict ledger order: installments are settled in ``(due_on, sequence)``
      order regardless of the order they are passed in.  No later
      installment receives money while an earlier one still has need.
    - PAID installments are never selected.

Failure modes:
    - ValueError on a non-positive payment amount.
    - ValueError from InstallmentSnapshot on inconsistent amounts.

Usage:
    from billing_engines.allocation import AllocationEngine

    result = AllocationEngine().allocate(amount=600, installments=snapshots)
    for line in result.lines:
        ...  # write line.paid_after / line.status_after back to storage
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from uuid import UUID

from billing_engines.settlement import derive_status
from billing_engines.tracer import traced_engine
from billing_kernel.domain.dtos import InstallmentSnapshot
from billing_kernel.domain.statuses import OUTSTANDING_STATUSES, InstallmentStatus
from billing_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")


@dataclass(frozen=True)
class AllocationLine:
    """
    Money applied to a single installment.

    Guarantees:
        - ``applied > 0``.
        - ``paid_after == paid_before + applied <= amount_due``.
    """

    installment_id: UUID
    applied: int
    paid_before: int
    paid_after: int
    status_before: InstallmentStatus
    status_after: InstallmentStatus


@dataclass(frozen=True)
class AllocationResult:
    """
    Complete allocation of one payment.

    Guarantees:
        - ``applied + remainder == amount``.
        - ``lines`` are in the order money was applied.
        - ``installments`` holds the post-allocation snapshot of every
          touched installment, in the same order as ``lines``.
    """

    amount: int
    lines: tuple[AllocationLine, ...]
    installments: tuple[InstallmentSnapshot, ...]
    applied: int
    remainder: int

    @property
    def is_fully_applied(self) -> bool:
        return self.remainder == 0


def ledger_order(installments: Sequence[InstallmentSnapshot]) -> list[InstallmentSnapshot]:
    """Sort installments by ``(due_on, sequence)``."""
    return sorted(installments, key=lambda i: i.ledger_key)


class AllocationEngine:
    """
    Greedy oldest-first allocator.

    Contract:
        Pure function of the payment amount and the installment snapshots.
        No I/O, no database access, no clock.
    Non-goals:
        - Does not decide what happens to an unapplied remainder; the
          caller hands ``remainder`` to an overpayment policy.
    """

    @traced_engine("installment_allocation", "1.0", fingerprint_fields=("amount",))
    def allocate(
        self,
        *,
        amount: int,
        installments: Sequence[InstallmentSnapshot],
    ) -> AllocationResult:
        """
        Apply ``amount`` minor units to outstanding installments.

        Preconditions:
            ``amount > 0``.
        Postconditions:
            Every returned snapshot satisfies ``0 <= paid <= due``.
        """
        if amount <= 0:
            raise ValueError(f"Allocation amount must be positive: {amount}")

        outstanding = ledger_order(
            [i for i in installments if i.status in OUTSTANDING_STATUSES]
        )

        logger.debug("allocation_started", extra={
            "amount": amount,
            "outstanding_count": len(outstanding),
        })

        remaining = amount
        lines: list[AllocationLine] = []
        updated: list[InstallmentSnapshot] = []

        for installment in outstanding:
            if remaining == 0:
                break
            use = min(remaining, installment.need)
            if use <= 0:
                continue

            paid_after = installment.amount_paid + use
            status_after = derive_status(
                amount_due=installment.amount_due,
                amount_paid=paid_after,
                current=installment.status,
            )
            lines.append(AllocationLine(
                installment_id=installment.installment_id,
                applied=use,
                paid_before=installment.amount_paid,
                paid_after=paid_after,
                status_before=installment.status,
                status_after=status_after,
            ))
            updated.append(
                replace(installment, amount_paid=paid_after, status=status_after)
            )
            remaining -= use

        applied = amount - remaining

        # Conservation: applied + remainder == amount
        assert applied + remaining == amount and remaining >= 0, (
            f"Allocation conservation violated: {applied} + {remaining} != {amount}"
        )

        logger.info("allocation_completed", extra={
            "amount": amount,
            "applied": applied,
            "remainder": remaining,
            "line_count": len(lines),
        })

        return AllocationResult(
            amount=amount,
            lines=tuple(lines),
            installments=tuple(updated),
            applied=applied,
            remainder=remaining,
        )
