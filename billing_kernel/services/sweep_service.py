"""
OverdueSweepService -- flip past-due installments to OVERDUE outside a payment.

Responsibility:
    ``sweep_project`` runs the overdue sweep for one project without
    recording a payment.  ``sweep_all`` is the scheduled batch: it finds
    every project with a DUE or PARTIAL installment due before today and
    sweeps each in its own transaction.

Architecture position:
    Kernel > Services -- imperative shell over ``billing_engines.overdue``.

Invariants enforced:
    - Same locking order as PaymentService: project lock, project row,
      installment rows.  A sweep and a payment on one project never
      interleave.
    - PAID installments are never touched; the as-of date is the injected
      clock's ``today()``.

Failure modes:
    - ProjectNotFoundError from ``sweep_project`` for an unknown project.
    - ``sweep_all`` logs and skips projects that hit a
      ConcurrencyConflictError; any other error aborts the batch.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from billing_engines.overdue import OverdueSweepResult
from billing_kernel.db.engine import session_scope
from billing_kernel.domain.clock import Clock
from billing_kernel.domain.statuses import SWEEPABLE_STATUSES
from billing_kernel.exceptions import ConcurrencyConflictError
from billing_kernel.logging_config import LogContext, get_logger
from billing_kernel.models.installment import InstallmentModel
from billing_kernel.services.base import BaseService, translate_storage_errors
from billing_kernel.services.locks import ProjectLockRegistry, default_lock_registry
from billing_kernel.services.payment_service import (
    apply_overdue_sweep,
    load_installments_for_update,
    load_project_for_update,
)

logger = get_logger("services.sweep")


@dataclass(frozen=True)
class SweepRunResult:
    """Outcome of one system-wide sweep."""

    as_of: date
    projects_swept: int
    installments_flipped: int
    conflicted_projects: tuple[UUID, ...] = ()


class OverdueSweepService(BaseService):
    """Runs the overdue sweep for one project or for all of them."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        *,
        locks: ProjectLockRegistry | None = None,
    ):
        super().__init__(session_factory, clock)
        self._locks = locks or default_lock_registry

    def sweep_project(self, project_id: UUID, actor_id: UUID | None = None) -> OverdueSweepResult:
        """Flip every DUE / PARTIAL installment of one project due before today."""
        as_of = self._clock.today()
        with LogContext.bind(project_id=project_id, actor_id=actor_id):
            with self._locks.hold(project_id):
                with translate_storage_errors("sweep_project", project_id):
                    with session_scope(self._session_factory) as session:
                        load_project_for_update(session, project_id)
                        rows = load_installments_for_update(session, project_id)
                        result = apply_overdue_sweep(rows, as_of, actor_id)

            logger.info("overdue_sweep_completed", extra={
                "as_of": as_of,
                "flipped": result.count,
            })
            return result

    def find_projects_to_sweep(self, as_of: date) -> list[UUID]:
        """Projects holding at least one installment the sweep would flip."""
        with session_scope(self._session_factory) as session:
            return list(session.execute(
                select(InstallmentModel.project_id)
                .where(
                    InstallmentModel.status.in_(SWEEPABLE_STATUSES),
                    InstallmentModel.due_on < as_of,
                )
                .distinct()
                .order_by(InstallmentModel.project_id)
            ).scalars())

    def sweep_all(self, actor_id: UUID | None = None) -> SweepRunResult:
        """
        Sweep every project with something past due.

        Each project is swept in its own transaction, so one conflicting
        project does not hold back the rest.
        """
        as_of = self._clock.today()
        with translate_storage_errors("find_projects_to_sweep"):
            project_ids = self.find_projects_to_sweep(as_of)

        logger.info("overdue_sweep_batch_started", extra={
            "as_of": as_of,
            "project_count": len(project_ids),
        })

        flipped = 0
        swept = 0
        conflicted: list[UUID] = []
        for project_id in project_ids:
            try:
                result = self.sweep_project(project_id, actor_id)
            except ConcurrencyConflictError:
                logger.warning("overdue_sweep_project_skipped", extra={
                    "project_id": str(project_id),
                    "reason": "concurrency_conflict",
                })
                conflicted.append(project_id)
                continue
            swept += 1
            flipped += result.count

        logger.info("overdue_sweep_batch_completed", extra={
            "as_of": as_of,
            "projects_swept": swept,
            "installments_flipped": flipped,
            "conflicted": len(conflicted),
        })
        return SweepRunResult(
            as_of=as_of,
            projects_swept=swept,
            installments_flipped=flipped,
            conflicted_projects=tuple(conflicted),
        )
