"""
BaseService -- common constructor and storage-error boundary for services.

Responsibility:
    Every write service in the billing kernel owns its transaction: it opens
    one session per call from a ``sessionmaker`` and commits or rolls back
    the whole unit via ``session_scope``.  ``translate_storage_errors`` is
    the one place SQLAlchemy exceptions become typed billing errors.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - One session per call.  Services never share a session between
      threads or between calls.
    - Billing errors raised inside the unit pass through unchanged.
    - StaleDataError, lock timeouts, serialization failures and deadlocks
      become ConcurrencyConflictError; every other SQLAlchemyError becomes
      PersistenceFailureError.  The original is chained as ``__cause__``.

Failure modes:
    - ConcurrencyConflictError / PersistenceFailureError as above, always
      after the session has been rolled back.
"""

from __future__ import annotations

from abc import ABC
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from billing_kernel.db.engine import get_session_factory
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.exceptions import ConcurrencyConflictError, PersistenceFailureError
from billing_kernel.logging_config import get_logger

logger = get_logger("services.base")

# PostgreSQL SQLSTATEs that mean "another transaction got there first".
CONFLICT_SQLSTATES = frozenset({
    "40001",  # serialization_failure
    "40P01",  # deadlock_detected
    "55P03",  # lock_not_available
})

_SQLITE_LOCKED_MESSAGES = ("database is locked", "database table is locked")


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_conflict(exc: SQLAlchemyError) -> bool:
    """True if ``exc`` reports a lost race rather than a broken store."""
    if isinstance(exc, StaleDataError):
        return True
    if isinstance(exc, DBAPIError):
        if _sqlstate(exc) in CONFLICT_SQLSTATES:
            return True
        message = str(exc.orig).lower()
        return any(m in message for m in _SQLITE_LOCKED_MESSAGES)
    return False


@contextmanager
def translate_storage_errors(operation: str, project_id: object = None) -> Generator[None, None, None]:
    """
    Re-raise SQLAlchemy errors from the enclosed block as billing errors.

    Wrap this around ``session_scope`` so that failures at commit time are
    translated too.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        if is_conflict(exc):
            logger.warning(
                "concurrency_conflict",
                extra={"operation": operation, "error_type": type(exc).__name__},
            )
            raise ConcurrencyConflictError(
                str(project_id), reason=f"{operation}: {type(exc).__name__}",
            ) from exc
        logger.error(
            "persistence_failure",
            extra={"operation": operation, "error_type": type(exc).__name__},
        )
        raise PersistenceFailureError(operation, str(exc)) from exc


class BaseService(ABC):
    """
    Abstract base class for billing services.

    Contract:
        Holds a ``sessionmaker`` and a ``Clock``.  Subclasses open a fresh
        session per public call.

    Non-goals:
        - Read-only queries belong in ``billing_kernel/selectors/``.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
    ):
        """
        Args:
            session_factory: Defaults to the module-level factory from
                ``billing_kernel.db.engine``.
            clock: Defaults to ``SystemClock``.
        """
        self._session_factory = session_factory or get_session_factory()
        self._clock = clock or SystemClock()
