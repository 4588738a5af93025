"""
Module: billing_engines.payment_plan
Responsibility:
    Build a project's installment ledger from its commercial terms: an
    optional deposit followed by monthly installments (or one balance line)
    covering the rest of the contract total.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Sum of ``amount_due`` over the plan equals
      ``max(contract_total, deposit)`` (the deposit is never trimmed).
    - Sequence numbers run 1..n in generation order (deposit first).
    - Monthly due dates keep the first due date's day of month, clamped to
      the last day of shorter months.
    - At most ``max_installments`` monthly lines.
    - A plan with nothing owed is a single zero line already PAID.

Failure modes:
    - PlanInputError (a ValueError) for negative amounts or a plan that
      would need more monthly lines than allowed.

Usage:
    terms = PaymentPlanTerms(
        contract_total=1_000_000, deposit=300_000, installment=100_000,
        commence_on=date(2024, 1, 15),
    )
    lines = PaymentPlanBuilder().build(terms=terms)
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date

from billing_engines.lifecycle_gate import DEFAULT_DEPOSIT_LABEL
from billing_engines.tracer import traced_engine
from billing_kernel.domain.statuses import InstallmentStatus
from billing_kernel.logging_config import get_logger

logger = get_logger("engines.payment_plan")

BALANCE_LABEL = "Balance"
SETTLED_LABEL = "Fully paid on endorsement"
DEFAULT_MAX_INSTALLMENTS = 600


class PlanInputError(ValueError):
    """Plan terms that cannot produce a schedule."""

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"{field}={value}: {reason}")


@dataclass(frozen=True)
class PaymentPlanTerms:
    """
    Commercial terms agreed for a project, in minor units.

    ``first_due_on`` defaults to ``commence_on``.  ``installment == 0``
    means "no monthly plan": the balance is due in one line.
    """

    contract_total: int
    deposit: int
    installment: int
    commence_on: date
    first_due_on: date | None = None

    def __post_init__(self) -> None:
        for name in ("contract_total", "deposit", "installment"):
            value = getattr(self, name)
            if value < 0:
                raise PlanInputError(name, value, "cannot be negative")

    @property
    def balance(self) -> int:
        return max(self.contract_total - self.deposit, 0)


@dataclass(frozen=True)
class PlannedInstallment:
    """One line of a generated plan, before it is persisted."""

    sequence: int
    label: str
    due_on: date
    amount_due: int
    status: InstallmentStatus = InstallmentStatus.DUE


def add_months(start: date, months: int) -> date:
    """``start`` moved by whole months, day clamped to the month's end."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


class PaymentPlanBuilder:
    """Turns PaymentPlanTerms into an ordered tuple of PlannedInstallment."""

    @traced_engine("payment_plan", "1.0", fingerprint_fields=("terms",))
    def build(
        self,
        *,
        terms: PaymentPlanTerms,
        deposit_label: str = DEFAULT_DEPOSIT_LABEL,
        max_installments: int = DEFAULT_MAX_INSTALLMENTS,
    ) -> tuple[PlannedInstallment, ...]:
        lines: list[PlannedInstallment] = []
        first_due_on = terms.first_due_on or terms.commence_on

        if terms.deposit > 0:
            lines.append(PlannedInstallment(
                sequence=len(lines) + 1,
                label=deposit_label,
                due_on=terms.commence_on,
                amount_due=terms.deposit,
            ))

        remaining = terms.balance
        if remaining > 0 and terms.installment == 0:
            lines.append(PlannedInstallment(
                sequence=len(lines) + 1,
                label=BALANCE_LABEL,
                due_on=first_due_on,
                amount_due=remaining,
            ))
        elif remaining > 0:
            needed = -(-remaining // terms.installment)
            if needed > max_installments:
                raise PlanInputError(
                    "installment",
                    terms.installment,
                    f"balance needs {needed} monthly lines, limit is {max_installments}",
                )
            for month in range(needed):
                amount = min(terms.installment, remaining)
                lines.append(PlannedInstallment(
                    sequence=len(lines) + 1,
                    label=f"Installment {month + 1}",
                    due_on=add_months(first_due_on, month),
                    amount_due=amount,
                ))
                remaining -= amount

        if not lines:
            lines.append(PlannedInstallment(
                sequence=1,
                label=SETTLED_LABEL,
                due_on=terms.commence_on,
                amount_due=0,
                status=InstallmentStatus.PAID,
            ))

        logger.info("payment_plan_built", extra={
            "line_count": len(lines),
            "contract_total": terms.contract_total,
            "deposit": terms.deposit,
            "installment": terms.installment,
        })
        return tuple(lines)
