"""
Module: billing_engines.overpayment
Responsibility:
    Decide what happens to the part of a payment left over once every
    outstanding installment is settled.

Architecture position:
    Engines -- policy hook.  The payment service receives an
    ``OverpaymentPolicy`` callable (``absorb_overpayment`` by default) and
    hands it the remainder after allocation; the allocation loop itself
    never looks at the remainder.

Current policy:
    The remainder is absorbed: it is not refunded, no credit or extra
    installment is created, and nothing is persisted for it.  The policy
    logs a warning so the absorbed amount is visible in the logs.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from billing_kernel.logging_config import get_logger

logger = get_logger("engines.overpayment")


class RemainderDisposition(str, Enum):
    """What a policy did with an unapplied remainder."""

    NONE = "none"
    ABSORBED = "absorbed"


@dataclass(frozen=True)
class RemainderOutcome:
    """Result of applying an overpayment policy."""

    amount: int
    disposition: RemainderDisposition


OverpaymentPolicy = Callable[[UUID, UUID, int], RemainderOutcome]


def absorb_overpayment(project_id: UUID, payment_id: UUID, remainder: int) -> RemainderOutcome:
    """Absorb any unapplied remainder without recording it."""
    if remainder < 0:
        raise ValueError(f"Remainder cannot be negative: {remainder}")
    if remainder == 0:
        return RemainderOutcome(amount=0, disposition=RemainderDisposition.NONE)

    logger.warning("overpayment_absorbed", extra={
        "project_id": str(project_id),
        "payment_id": str(payment_id),
        "absorbed": remainder,
    })
    return RemainderOutcome(amount=remainder, disposition=RemainderDisposition.ABSORBED)
