"""
PaymentService -- record a client payment and settle the installment ledger.

Responsibility:
    The single write entry point for money received.  One call persists the
    payment, allocates it oldest-first across the project's outstanding
    installments, records one allocation event per touched installment,
    hands any remainder to the overpayment policy, sweeps the project's
    overdue installments and evaluates the deposit gate.  All of it commits
    or none of it does.

Architecture position:
    Kernel > Services -- imperative shell.  Calls the pure engines in
    ``billing_engines`` and writes their results back through the ORM.

Invariants enforced:
    - Atomicity: payment row, installment mutations, allocation events and
      project status change share one transaction (``session_scope``).
    - Per-project serialization: the in-process project lock, then
      ``SELECT ... FOR UPDATE`` on the project row and its installments,
      then the project row's version counter.  Different projects never
      contend.
    - ``0 <= amount_paid <= amount_due`` for every installment (allocation
      engine, CHECK constraints, ORM listeners).
    - The deposit gate only moves CREATED | DEPOSIT_PENDING -> PLANNED.

Failure modes:
    - InvalidAmountError: amount does not convert to a positive number of
      minor units.  Raised before any database access.
    - ProjectNotFoundError: unknown project.  Raised before anything is
      written.
    - ConcurrencyConflictError / PersistenceFailureError: the unit was
      rolled back; nothing was recorded.  Callers retry the whole call.

Audit relevance:
    ``payment_recorded``, ``installment_allocated``, ``deposit_gate_fired``
    and ``overpayment_absorbed`` log records carry the payment and project
    ids, and every application of money is persisted as an allocation event.
"""

from __future__ import annotations

import time
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from billing_engines.allocation import AllocationEngine
from billing_engines.lifecycle_gate import DEFAULT_DEPOSIT_LABEL, evaluate_deposit_gate
from billing_engines.overdue import OverdueSweepResult, sweep_overdue
from billing_engines.overpayment import OverpaymentPolicy, absorb_overpayment
from billing_kernel.db.engine import session_scope
from billing_kernel.domain.clock import Clock
from billing_kernel.domain.dtos import RecordPaymentResult
from billing_kernel.domain.money import MAX_MINOR, to_minor
from billing_kernel.domain.statuses import PaymentKind
from billing_kernel.exceptions import InvalidAmountError, ProjectNotFoundError
from billing_kernel.logging_config import LogContext, get_logger
from billing_kernel.models.installment import InstallmentModel
from billing_kernel.models.payment import AllocationEventModel, ClientPaymentModel
from billing_kernel.models.project import ProjectModel
from billing_kernel.services.base import BaseService, translate_storage_errors
from billing_kernel.services.locks import ProjectLockRegistry, default_lock_registry

logger = get_logger("services.payment")


def to_payment_minor(amount: Decimal | int | float | str) -> int:
    """
    Convert a major-unit payment amount to minor units.

    Raises:
        InvalidAmountError: if the amount is not a finite number, rounds
            to zero or less, or does not fit a BIGINT column.
    """
    try:
        minor = to_minor(amount)
    except ValueError as exc:
        raise InvalidAmountError(repr(amount), reason=str(exc)) from exc
    if minor <= 0:
        raise InvalidAmountError(str(amount))
    if minor > MAX_MINOR:
        raise InvalidAmountError(str(amount), reason=f"exceeds {MAX_MINOR} minor units")
    return minor


def load_project_for_update(session: Session, project_id: UUID) -> ProjectModel:
    """Lock and return the project row, or raise ProjectNotFoundError."""
    project = session.execute(
        select(ProjectModel).where(ProjectModel.id == project_id).with_for_update()
    ).scalar_one_or_none()
    if project is None:
        raise ProjectNotFoundError(str(project_id))
    return project


def load_installments_for_update(session: Session, project_id: UUID) -> list[InstallmentModel]:
    """Lock and return a project's installments in ledger order."""
    return list(session.execute(
        select(InstallmentModel)
        .where(InstallmentModel.project_id == project_id)
        .order_by(InstallmentModel.due_on, InstallmentModel.sequence)
        .with_for_update()
    ).scalars())


def apply_overdue_sweep(
    rows: list[InstallmentModel],
    as_of: date,
    actor_id: UUID | None,
) -> OverdueSweepResult:
    """Run the overdue sweep over loaded rows and write the flips back."""
    by_id = {row.id: row for row in rows}
    result = sweep_overdue(installments=[row.to_snapshot() for row in rows], as_of=as_of)
    for snapshot in result.flipped:
        row = by_id[snapshot.installment_id]
        row.status = snapshot.status
        if actor_id is not None:
            row.updated_by_id = actor_id
    return result


class PaymentService(BaseService):
    """
    Records client payments.

    Contract:
        ``record_payment`` is safe to call from many threads at once.  Calls
        for the same project run one after another; calls for different
        projects run in parallel.

    Non-goals:
        - Does not retry on conflict.
        - Does not authorize the actor.
        - Does not refund or credit an overpayment; that is the injected
          ``overpayment_policy``'s decision.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        *,
        deposit_label: str = DEFAULT_DEPOSIT_LABEL,
        sweep_on_record: bool = True,
        locks: ProjectLockRegistry | None = None,
        overpayment_policy: OverpaymentPolicy = absorb_overpayment,
        allocator: AllocationEngine | None = None,
    ):
        super().__init__(session_factory, clock)
        self._deposit_label = deposit_label
        self._sweep_on_record = sweep_on_record
        self._locks = locks or default_lock_registry
        self._overpayment_policy = overpayment_policy
        self._allocator = allocator or AllocationEngine()

    def record_payment(
        self,
        project_id: UUID,
        kind: PaymentKind,
        amount: Decimal | int | float | str,
        received_on: date,
        actor_id: UUID,
        reference: str | None = None,
        method: str | None = None,
        description: str | None = None,
    ) -> RecordPaymentResult:
        """
        Record one payment and settle it against the project's ledger.

        Args:
            project_id: Project the money was received for.
            kind: DEPOSIT, INSTALLMENT or ADJUSTMENT.  Informational only;
                allocation always runs oldest-first.
            amount: Major units, e.g. ``Decimal("6.00")``.
            received_on: Date the money was received.
            actor_id: Who recorded the payment.

        Returns:
            RecordPaymentResult.  Callers need nothing from it to refresh
            their views.
        """
        minor = to_payment_minor(amount)
        payment_id = uuid4()

        with LogContext.bind(
            correlation_id=str(uuid4()),
            actor_id=str(actor_id),
            project_id=str(project_id),
            payment_id=str(payment_id),
        ):
            logger.info("payment_recording_started", extra={
                "kind": kind.value,
                "amount": minor,
                "received_on": received_on,
            })
            t0 = time.monotonic()

            with self._locks.hold(project_id):
                with translate_storage_errors("record_payment", project_id):
                    with session_scope(self._session_factory) as session:
                        result = self._record(
                            session,
                            payment_id=payment_id,
                            project_id=project_id,
                            kind=kind,
                            amount=minor,
                            received_on=received_on,
                            actor_id=actor_id,
                            reference=reference,
                            method=method,
                            description=description,
                        )

            logger.info("payment_recorded", extra={
                "amount": result.amount,
                "applied": result.applied,
                "absorbed": result.absorbed,
                "installments_touched": result.installments_touched,
                "overdue_flipped": result.overdue_flipped,
                "gate_fired": result.gate_fired,
                "project_status": result.project_status,
                "duration_ms": round((time.monotonic() - t0) * 1000, 2),
            })
            return result

    def _record(
        self,
        session: Session,
        *,
        payment_id: UUID,
        project_id: UUID,
        kind: PaymentKind,
        amount: int,
        received_on: date,
        actor_id: UUID,
        reference: str | None,
        method: str | None,
        description: str | None,
    ) -> RecordPaymentResult:
        """The atomic unit.  Runs inside the caller's session and lock."""
        project = load_project_for_update(session, project_id)

        session.add(ClientPaymentModel(
            id=payment_id,
            project_id=project_id,
            kind=kind,
            amount=amount,
            received_on=received_on,
            reference=reference,
            method=method,
            description=description,
            created_by_id=actor_id,
        ))

        rows = load_installments_for_update(session, project_id)
        by_id = {row.id: row for row in rows}

        allocation = self._allocator.allocate(
            amount=amount,
            installments=[row.to_snapshot() for row in rows],
        )
        for line in allocation.lines:
            row = by_id[line.installment_id]
            row.amount_paid = line.paid_after
            row.status = line.status_after
            row.updated_by_id = actor_id
            session.add(AllocationEventModel(
                project_id=project_id,
                payment_id=payment_id,
                installment_id=line.installment_id,
                amount=line.applied,
                created_by_id=actor_id,
            ))
            logger.info("installment_allocated", extra={
                "installment_id": str(line.installment_id),
                "applied": line.applied,
                "paid_after": line.paid_after,
                "status_before": line.status_before,
                "status_after": line.status_after,
            })

        remainder = self._overpayment_policy(project_id, payment_id, allocation.remainder)

        flipped = 0
        if self._sweep_on_record:
            sweep = apply_overdue_sweep(rows, self._clock.today(), actor_id)
            flipped = sweep.count

        gate = evaluate_deposit_gate(
            project_status=project.status,
            installments=[row.to_snapshot() for row in rows],
            deposit_label=self._deposit_label,
        )
        if gate.fires:
            project.status = gate.to_status
            logger.info("deposit_gate_fired", extra={
                "from_status": gate.from_status,
                "to_status": gate.to_status,
                "reason": gate.reason,
            })

        # Always bump: the versioned UPDATE must run even without a status change.
        project.payment_count += 1
        if project.last_payment_on is None or received_on > project.last_payment_on:
            project.last_payment_on = received_on
        project.updated_by_id = actor_id

        session.flush()

        return RecordPaymentResult(
            payment_id=payment_id,
            project_id=project_id,
            amount=amount,
            applied=allocation.applied,
            absorbed=remainder.amount,
            installments_touched=len(allocation.lines),
            overdue_flipped=flipped,
            gate_fired=gate.fires,
            project_status=project.status,
        )
