"""
Pytest fixtures for the billing kernel test suite.

Provides:
- A fresh SQLite database file per test (tables created, append-only
  listeners registered)
- Deterministic clock, actor id and per-test project lock registry
- Project / installment factories and a read-back helper
- Structured log capture

Environment Variables:
- BILLING_TEST_DATABASE_URL: run the database tests against another
  backend (e.g. PostgreSQL).  The schema is dropped and recreated around
  every test, so never point this at a database you care about.
"""

import json
import logging
import os
from datetime import date
from io import StringIO
from uuid import UUID, uuid4

import pytest

from billing_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from billing_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from billing_kernel.domain.clock import DeterministicClock
from billing_kernel.domain.statuses import InstallmentStatus, ProjectStatus
from billing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from billing_kernel.models.installment import InstallmentModel
from billing_kernel.models.project import ProjectModel
from billing_kernel.selectors.schedule_selector import ScheduleSelector
from billing_kernel.services.locks import ProjectLockRegistry
from billing_kernel.services.payment_service import PaymentService
from billing_kernel.services.reminder_service import ReminderService
from billing_kernel.services.schedule_service import ScheduleService
from billing_kernel.services.sweep_service import OverdueSweepService


# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

# "Today" for every test that does not move the clock
TODAY = date(2024, 3, 1)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture billing_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, payment_service):
            payment_service.record_payment(...)
            logs = captured_logs()
            assert any(r["message"] == "payment_recorded" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("billing_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "concurrency: mark test as starting real threads"
    )


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _immutability_listeners():
    register_immutability_listeners()
    yield
    unregister_immutability_listeners()


@pytest.fixture
def db_engine(tmp_path):
    """Initialize the module-level engine on a fresh database for one test."""
    url = os.environ.get("BILLING_TEST_DATABASE_URL") or f"sqlite:///{tmp_path / 'billing.db'}"
    engine = init_engine_from_url(url, pool_size=5, max_overflow=5, busy_timeout=10)
    drop_tables()
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session_factory(db_engine):
    return get_session_factory()


@pytest.fixture
def session(session_factory):
    """A committing session for arranging and inspecting test data."""
    sess = session_factory()
    try:
        yield sess
        sess.commit()
    except Exception:
        sess.rollback()
        raise
    finally:
        sess.close()


@pytest.fixture
def test_actor_id() -> UUID:
    """Provide a consistent test actor ID."""
    return TEST_ACTOR_ID


@pytest.fixture
def deterministic_clock():
    """Clock pinned to TODAY."""
    return DeterministicClock.on(TODAY)


@pytest.fixture
def lock_registry():
    """Fresh per-project locks so tests never share lock state."""
    return ProjectLockRegistry(timeout=10.0)


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def payment_service(session_factory, deterministic_clock, lock_registry):
    return PaymentService(session_factory, deterministic_clock, locks=lock_registry)


@pytest.fixture
def sweep_service(session_factory, deterministic_clock, lock_registry):
    return OverdueSweepService(session_factory, deterministic_clock, locks=lock_registry)


@pytest.fixture
def schedule_service(session_factory, deterministic_clock, lock_registry):
    return ScheduleService(session_factory, deterministic_clock, locks=lock_registry)


@pytest.fixture
def reminder_service(session_factory, deterministic_clock):
    return ReminderService(session_factory, deterministic_clock)


# =============================================================================
# Data factories
# =============================================================================


@pytest.fixture
def create_project(session_factory, test_actor_id):
    """Factory: insert and commit a project, return its id."""
    counter = iter(range(1, 10_000))

    def _create(status: ProjectStatus = ProjectStatus.CREATED, name: str = "Test House") -> UUID:
        project_id = uuid4()
        with session_scope(session_factory) as s:
            s.add(ProjectModel(
                id=project_id,
                project_number=f"PRJ-{next(counter):04d}",
                name=name,
                status=status,
                created_by_id=test_actor_id,
            ))
        return project_id

    return _create


@pytest.fixture
def add_installments(session_factory, test_actor_id):
    """
    Factory: insert installments for a project, return their ids in order.

    Each line is ``(label, due_on, amount_due)`` or
    ``(label, due_on, amount_due, amount_paid, status)``.  Sequence numbers
    follow the order given.
    """

    def _add(project_id: UUID, lines: list[tuple]) -> list[UUID]:
        ids = []
        with session_scope(session_factory) as s:
            for sequence, line in enumerate(lines, start=1):
                label, due_on, amount_due, *rest = line
                amount_paid = rest[0] if rest else 0
                status = rest[1] if len(rest) > 1 else InstallmentStatus.DUE
                installment_id = uuid4()
                s.add(InstallmentModel(
                    id=installment_id,
                    project_id=project_id,
                    sequence=sequence,
                    label=label,
                    due_on=due_on,
                    amount_due=amount_due,
                    amount_paid=amount_paid,
                    status=status,
                    created_by_id=test_actor_id,
                ))
                ids.append(installment_id)
        return ids

    return _add


@pytest.fixture
def read_schedule(session_factory):
    """Read a project's installments back in ledger order, from a fresh session."""

    def _read(project_id: UUID):
        with session_scope(session_factory) as s:
            return ScheduleSelector(s).schedule(project_id)

    return _read


@pytest.fixture
def read_project_status(session_factory):
    def _read(project_id: UUID) -> ProjectStatus:
        with session_scope(session_factory) as s:
            return s.get(ProjectModel, project_id).status

    return _read
