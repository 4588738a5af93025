"""
ORM-level append-only enforcement for the billing ledger.

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database.  The listeners here inspect attribute history and raise
ImmutabilityViolationError, which aborts the flush and the enclosing
transaction:

    session.flush()
         |
         v
    [before_update] --> _check_*_update() --> ImmutabilityViolationError
         |
    [before_delete] --> _check_*_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity               | Rule
---------------------|-----------------------------------------------------
ClientPaymentModel   | No UPDATE, no DELETE
AllocationEventModel | No UPDATE, no DELETE
InstallmentModel     | amount_due fixed; amount_paid never decreases;
                     | no DELETE

updated_at / updated_by_id are audit metadata and may always change.

Usage:

    from billing_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

Tests that need to violate the rules on purpose call
``unregister_immutability_listeners()`` and register again afterwards.
"""

from sqlalchemy import event, inspect

from billing_kernel.exceptions import ImmutabilityViolationError
from billing_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _block(entity_type: str, target, operation: str, reason: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "reason": reason,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_payment_update(mapper, connection, target):
    """Client payments are immutable from creation."""
    _block("ClientPayment", target, "UPDATE", "Payments cannot be modified")


def _check_payment_delete(mapper, connection, target):
    _block("ClientPayment", target, "DELETE", "Payments cannot be deleted")


def _check_allocation_event_update(mapper, connection, target):
    _block(
        "AllocationEvent", target, "UPDATE",
        "Allocation events cannot be modified",
    )


def _check_allocation_event_delete(mapper, connection, target):
    _block(
        "AllocationEvent", target, "DELETE",
        "Allocation events cannot be deleted",
    )


def _check_installment_update(mapper, connection, target):
    """
    Installments accept payment, nothing else about their money moves.

    ``history.deleted`` holds the value loaded from the database and
    ``history.added`` the value about to be written.
    """
    attrs = inspect(target).attrs

    due_history = attrs.amount_due.history
    if due_history.deleted and due_history.added:
        if due_history.deleted[0] != due_history.added[0]:
            _block(
                "Installment", target, "UPDATE",
                f"amount_due is fixed at {due_history.deleted[0]}",
            )

    paid_history = attrs.amount_paid.history
    if paid_history.deleted and paid_history.added:
        before, after = paid_history.deleted[0], paid_history.added[0]
        if after < before:
            _block(
                "Installment", target, "UPDATE",
                f"amount_paid cannot decrease ({before} -> {after})",
            )


def _check_installment_delete(mapper, connection, target):
    _block("Installment", target, "DELETE", "Installments cannot be deleted")


def _listener_table():
    from billing_kernel.models.installment import InstallmentModel
    from billing_kernel.models.payment import AllocationEventModel, ClientPaymentModel

    return (
        (ClientPaymentModel, "before_update", _check_payment_update),
        (ClientPaymentModel, "before_delete", _check_payment_delete),
        (AllocationEventModel, "before_update", _check_allocation_event_update),
        (AllocationEventModel, "before_delete", _check_allocation_event_delete),
        (InstallmentModel, "before_update", _check_installment_update),
        (InstallmentModel, "before_delete", _check_installment_delete),
    )


def register_immutability_listeners() -> None:
    """
    Register all append-only event listeners.

    Idempotent: listeners already attached are not attached twice.
    """
    for target, event_name, listener_fn in _listener_table():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove the append-only event listeners.

    WARNING: Only use this in tests.
    """
    for target, event_name, listener_fn in _listener_table():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
