"""
Billing engines -- pure calculation layer.

Allocation, settlement status, overdue sweep, deposit gate, overpayment
policy and payment plan generation.  Engines take frozen DTOs and return
frozen results; they never touch the database or read the system clock.
"""

from billing_engines.allocation import AllocationEngine, AllocationLine, AllocationResult
from billing_engines.lifecycle_gate import GateDecision, GateReason, evaluate_deposit_gate
from billing_engines.overdue import OverdueSweepResult, sweep_overdue
from billing_engines.overpayment import RemainderOutcome, absorb_overpayment
from billing_engines.payment_plan import PaymentPlanBuilder, PaymentPlanTerms
from billing_engines.settlement import derive_status

__all__ = [
    "AllocationEngine",
    "AllocationLine",
    "AllocationResult",
    "GateDecision",
    "GateReason",
    "OverdueSweepResult",
    "PaymentPlanBuilder",
    "PaymentPlanTerms",
    "RemainderOutcome",
    "absorb_overpayment",
    "derive_status",
    "evaluate_deposit_gate",
    "sweep_overdue",
]
