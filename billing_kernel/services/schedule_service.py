"""
ScheduleService -- generate a project's installment ledger from its terms.

Responsibility:
    Validates the commercial terms, builds the plan with
    ``PaymentPlanBuilder`` and persists it as InstallmentModel rows.

Invariants enforced:
    - Idempotent: a project that already has installments is left as it
      is and its existing ledger is returned.
    - Sequence numbers are 1..n in generation order.

Failure modes:
    - InvalidScheduleError: negative inputs, or a plan that needs more
      monthly lines than ``max_installments``.  Raised before any
      database access.
    - ProjectNotFoundError: unknown project.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from billing_engines.lifecycle_gate import DEFAULT_DEPOSIT_LABEL
from billing_engines.payment_plan import (
    DEFAULT_MAX_INSTALLMENTS,
    PaymentPlanBuilder,
    PaymentPlanTerms,
    PlanInputError,
)
from billing_kernel.db.engine import session_scope
from billing_kernel.domain.clock import Clock
from billing_kernel.domain.dtos import InstallmentSnapshot
from billing_kernel.exceptions import InvalidScheduleError
from billing_kernel.logging_config import LogContext, get_logger
from billing_kernel.models.installment import InstallmentModel
from billing_kernel.services.base import BaseService, translate_storage_errors
from billing_kernel.services.locks import ProjectLockRegistry, default_lock_registry
from billing_kernel.services.payment_service import (
    load_installments_for_update,
    load_project_for_update,
)

logger = get_logger("services.schedule")


@dataclass(frozen=True)
class ScheduleGenerationResult:
    """The project's ledger after generation, and whether this call created it."""

    project_id: UUID
    created: bool
    installments: tuple[InstallmentSnapshot, ...]


class ScheduleService(BaseService):
    """Creates payment plans."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        *,
        deposit_label: str = DEFAULT_DEPOSIT_LABEL,
        max_installments: int = DEFAULT_MAX_INSTALLMENTS,
        locks: ProjectLockRegistry | None = None,
        builder: PaymentPlanBuilder | None = None,
    ):
        super().__init__(session_factory, clock)
        self._deposit_label = deposit_label
        self._max_installments = max_installments
        self._locks = locks or default_lock_registry
        self._builder = builder or PaymentPlanBuilder()

    def generate_schedule(
        self,
        project_id: UUID,
        *,
        contract_total: int,
        deposit: int,
        installment: int,
        commence_on: date,
        actor_id: UUID,
        first_due_on: date | None = None,
    ) -> ScheduleGenerationResult:
        """
        Build and persist the payment plan for ``project_id``.

        Amounts are minor units.
        """
        try:
            terms = PaymentPlanTerms(
                contract_total=contract_total,
                deposit=deposit,
                installment=installment,
                commence_on=commence_on,
                first_due_on=first_due_on,
            )
            planned = self._builder.build(
                terms=terms,
                deposit_label=self._deposit_label,
                max_installments=self._max_installments,
            )
        except PlanInputError as exc:
            raise InvalidScheduleError(exc.field, str(exc.value), exc.reason) from exc

        with LogContext.bind(project_id=str(project_id), actor_id=str(actor_id)):
            with self._locks.hold(project_id):
                with translate_storage_errors("generate_schedule", project_id):
                    with session_scope(self._session_factory) as session:
                        load_project_for_update(session, project_id)
                        existing = load_installments_for_update(session, project_id)
                        if existing:
                            logger.info("schedule_already_exists", extra={
                                "installment_count": len(existing),
                            })
                            return ScheduleGenerationResult(
                                project_id=project_id,
                                created=False,
                                installments=tuple(row.to_snapshot() for row in existing),
                            )

                        rows = [
                            InstallmentModel(
                                project_id=project_id,
                                sequence=line.sequence,
                                label=line.label,
                                due_on=line.due_on,
                                amount_due=line.amount_due,
                                amount_paid=0,
                                status=line.status,
                                created_by_id=actor_id,
                            )
                            for line in planned
                        ]
                        session.add_all(rows)
                        session.flush()
                        snapshots = tuple(row.to_snapshot() for row in rows)

            logger.info("schedule_generated", extra={
                "installment_count": len(snapshots),
                "total_due": sum(s.amount_due for s in snapshots),
            })
            return ScheduleGenerationResult(
                project_id=project_id,
                created=True,
                installments=snapshots,
            )
