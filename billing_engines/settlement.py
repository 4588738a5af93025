"""
Module: billing_engines.settlement
Responsibility:
    Derive an installment's settlement status from its paid and due amounts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - PAID is terminal: once an installment is PAID, derivation returns PAID.
    - ``paid == due`` -> PAID; ``0 < paid < due`` -> PARTIAL;
      ``paid == 0`` -> DUE, or OVERDUE if it already was.  Only the overdue
      sweep ever sets OVERDUE; derivation merely preserves it while nothing
      has been paid.
    - Every InstallmentStatus member is matched explicitly.

Failure modes:
    - ValueError when ``paid`` lies outside ``[0, due]``.
    - ValueError on a status outside the enumeration.
"""

from __future__ import annotations

from billing_kernel.domain.statuses import InstallmentStatus


def derive_status(
    *,
    amount_due: int,
    amount_paid: int,
    current: InstallmentStatus,
) -> InstallmentStatus:
    """
    Settlement status after a change to ``amount_paid``.

    Preconditions:
        ``0 <= amount_paid <= amount_due``.
    Postconditions:
        Returns one of DUE, PARTIAL, PAID, OVERDUE.
    """
    if not 0 <= amount_paid <= amount_due:
        raise ValueError(
            f"amount_paid {amount_paid} outside [0, {amount_due}]"
        )

    match current:
        case InstallmentStatus.PAID:
            return InstallmentStatus.PAID
        case InstallmentStatus.DUE | InstallmentStatus.PARTIAL | InstallmentStatus.OVERDUE:
            pass
        case _:
            raise ValueError(f"Unknown installment status: {current!r}")

    if amount_paid == amount_due:
        return InstallmentStatus.PAID
    if amount_paid > 0:
        return InstallmentStatus.PARTIAL

    match current:
        case InstallmentStatus.OVERDUE:
            return InstallmentStatus.OVERDUE
        case InstallmentStatus.DUE | InstallmentStatus.PARTIAL:
            return InstallmentStatus.DUE
        case _:
            raise ValueError(f"Unknown installment status: {current!r}")
