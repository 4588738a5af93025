"""
Module: billing_engines.lifecycle_gate
Responsibility:
    Decide whether a project leaves the awaiting-deposit states once its
    deposit installment is settled.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - The gate only considers projects in CREATED or DEPOSIT_PENDING.
      Any other status yields "not applicable", which makes the gate
      one-way and idempotent: once advanced, re-evaluation is a no-op.
    - The only transition produced is -> PLANNED.
    - The deposit line is the first installment, in ledger order, whose
      label equals the configured deposit label exactly.
    - A project without a deposit line passes the gate.
    - Every ProjectStatus member is matched explicitly.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from billing_engines.tracer import traced_engine
from billing_kernel.domain.dtos import InstallmentSnapshot
from billing_kernel.domain.statuses import ProjectStatus

DEFAULT_DEPOSIT_LABEL = "Deposit"

AWAITING_DEPOSIT_STATUSES: frozenset[ProjectStatus] = frozenset({
    ProjectStatus.CREATED,
    ProjectStatus.DEPOSIT_PENDING,
})

GATE_TARGET_STATUS = ProjectStatus.PLANNED


class GateReason(str, Enum):
    """Why the gate did or did not fire."""

    DEPOSIT_SETTLED = "deposit_settled"
    NO_DEPOSIT_LINE = "no_deposit_line"
    DEPOSIT_OUTSTANDING = "deposit_outstanding"
    NOT_AWAITING_DEPOSIT = "not_awaiting_deposit"


@dataclass(frozen=True)
class GateDecision:
    """Result of evaluating the deposit gate for one project."""

    fires: bool
    from_status: ProjectStatus
    to_status: ProjectStatus
    reason: GateReason
    deposit: InstallmentSnapshot | None = None


def find_deposit_line(
    installments: Sequence[InstallmentSnapshot],
    deposit_label: str = DEFAULT_DEPOSIT_LABEL,
) -> InstallmentSnapshot | None:
    """First installment in ledger order labeled as the deposit."""
    for installment in sorted(installments, key=lambda i: i.ledger_key):
        if installment.label == deposit_label:
            return installment
    return None


@traced_engine("deposit_gate", "1.0", fingerprint_fields=("project_status", "deposit_label"))
def evaluate_deposit_gate(
    *,
    project_status: ProjectStatus,
    installments: Sequence[InstallmentSnapshot],
    deposit_label: str = DEFAULT_DEPOSIT_LABEL,
) -> GateDecision:
    """
    Evaluate the deposit gate against post-allocation installment state.

    Postconditions:
        ``fires`` implies ``from_status`` is awaiting deposit and
        ``to_status`` is PLANNED; otherwise ``to_status == from_status``.
    """
    match project_status:
        case ProjectStatus.CREATED | ProjectStatus.DEPOSIT_PENDING:
            pass
        case (
            ProjectStatus.PLANNED
            | ProjectStatus.SCHEDULING_PENDING
            | ProjectStatus.PREPARING
            | ProjectStatus.READY
            | ProjectStatus.ONGOING
            | ProjectStatus.ON_HOLD
            | ProjectStatus.COMPLETED
            | ProjectStatus.CLOSED
        ):
            return GateDecision(
                fires=False,
                from_status=project_status,
                to_status=project_status,
                reason=GateReason.NOT_AWAITING_DEPOSIT,
            )
        case _:
            raise ValueError(f"Unknown project status: {project_status!r}")

    deposit = find_deposit_line(installments, deposit_label)
    if deposit is None:
        return GateDecision(
            fires=True,
            from_status=project_status,
            to_status=GATE_TARGET_STATUS,
            reason=GateReason.NO_DEPOSIT_LINE,
        )
    if deposit.amount_paid >= deposit.amount_due:
        return GateDecision(
            fires=True,
            from_status=project_status,
            to_status=GATE_TARGET_STATUS,
            reason=GateReason.DEPOSIT_SETTLED,
            deposit=deposit,
        )
    return GateDecision(
        fires=False,
        from_status=project_status,
        to_status=project_status,
        reason=GateReason.DEPOSIT_OUTSTANDING,
        deposit=deposit,
    )
