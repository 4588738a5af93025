"""
Typed Exception Hierarchy for the Billing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the payment engine (forms, role-checking middleware, scheduled
jobs) must react to failures precisely.  Every error therefore:

  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

Example - RIGHT way to handle errors:
    try:
        service.record_payment(...)
    except InvalidAmountError as e:
        reprompt(field="amount", code=e.code)
    except ConcurrencyConflictError as e:
        retry_whole_operation(e.project_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from BillingError:

    BillingError (base)
    |
    +-- PaymentError
    |   +-- InvalidAmountError
    |
    +-- ProjectError
    |   +-- ProjectNotFoundError
    |
    +-- ScheduleError
    |   +-- InvalidScheduleError
    |
    +-- ConcurrencyError
    |   +-- ConcurrencyConflictError
    |
    +-- PersistenceError
    |   +-- PersistenceFailureError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                  | When Raised
----------------|-----------------------|-----------------------------------------
Payment         | INVALID_AMOUNT        | Amount <= 0 minor units, or not a number
----------------|-----------------------|-----------------------------------------
Project         | PROJECT_NOT_FOUND     | Project ID doesn't resolve
----------------|-----------------------|-----------------------------------------
Schedule        | INVALID_SCHEDULE      | Negative plan inputs
----------------|-----------------------|-----------------------------------------
Concurrency     | CONCURRENCY_CONFLICT  | Overlapping mutation of one project
----------------|-----------------------|-----------------------------------------
Persistence     | PERSISTENCE_FAILURE   | Storage error inside the atomic unit
----------------|-----------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION| Editing a payment or allocation event,
                |                       | lowering paid, changing amount due

InvalidAmountError and ProjectNotFoundError are raised before anything is
written.  ConcurrencyConflictError and PersistenceFailureError are raised
after the whole unit has been rolled back: nothing was recorded.  No error
is ever retried internally.
"""


class BillingError(Exception):
    """
    Base exception for all billing kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BILLING_ERROR"


# Payment-related exceptions


class PaymentError(BillingError):
    """Base exception for payment-related errors."""

    code: str = "PAYMENT_ERROR"


class InvalidAmountError(PaymentError):
    """Payment amount is not strictly positive after minor-unit conversion."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: str, reason: str = "amount must be positive"):
        self.amount = amount
        self.reason = reason
        super().__init__(f"Invalid amount {amount}: {reason}")


# Project-related exceptions


class ProjectError(BillingError):
    """Base exception for project-related errors."""

    code: str = "PROJECT_ERROR"


class ProjectNotFoundError(ProjectError):
    """Project with given ID was not found."""

    code: str = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


# Schedule-related exceptions


class ScheduleError(BillingError):
    """Base exception for payment schedule errors."""

    code: str = "SCHEDULE_ERROR"


class InvalidScheduleError(ScheduleError):
    """Payment plan inputs cannot produce a valid schedule."""

    code: str = "INVALID_SCHEDULE"

    def __init__(self, field: str, value: str, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid schedule input {field}={value}: {reason}")


# Concurrency-related exceptions


class ConcurrencyError(BillingError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class ConcurrencyConflictError(ConcurrencyError):
    """
    Another transaction mutated the same project's installment set.

    The caller should retry the whole operation from scratch (re-read the
    installment state and re-allocate), never just part of it.
    """

    code: str = "CONCURRENCY_CONFLICT"

    def __init__(self, project_id: str, reason: str = "concurrent modification"):
        self.project_id = project_id
        self.reason = reason
        super().__init__(
            f"Concurrency conflict on project {project_id}: {reason}"
        )


# Persistence-related exceptions


class PersistenceError(BillingError):
    """Base exception for storage errors."""

    code: str = "PERSISTENCE_ERROR"


class PersistenceFailureError(PersistenceError):
    """
    The storage layer failed inside the atomic unit.

    The whole operation has been rolled back: no payment record and no
    installment mutation survive.
    """

    code: str = "PERSISTENCE_FAILURE"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Persistence failure during {operation}: {detail}")


# Immutability-related exceptions


class ImmutabilityError(BillingError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an append-only record.

    Payments and allocation events are immutable from creation.
    Installments may only gain paid amount; their amount due is fixed.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )
