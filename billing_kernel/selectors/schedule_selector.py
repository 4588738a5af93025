"""
Module: billing_kernel.selectors.schedule_selector
Responsibility: Read side of a project's billing position: the ordered
    installment schedule, payment history, allocation events, a summary,
    and a consistency check on the deposit gate.
Architecture position: Kernel > Selectors.

Failure modes:
    - ProjectNotFoundError from ``summary`` for an unknown project.
"""

from uuid import UUID

from sqlalchemy import select

from billing_engines.lifecycle_gate import DEFAULT_DEPOSIT_LABEL, find_deposit_line
from billing_kernel.domain.dtos import (
    AllocationEventRecord,
    InstallmentSnapshot,
    PaymentRecord,
    PrematureAdvance,
    ScheduleSummary,
)
from billing_kernel.domain.statuses import InstallmentStatus, ProjectStatus
from billing_kernel.exceptions import ProjectNotFoundError
from billing_kernel.models.installment import InstallmentModel
from billing_kernel.models.payment import AllocationEventModel, ClientPaymentModel
from billing_kernel.models.project import ProjectModel
from billing_kernel.selectors.base import BaseSelector


class ScheduleSelector(BaseSelector):
    """Read-only queries over projects, installments and payments."""

    def schedule(self, project_id: UUID) -> list[InstallmentSnapshot]:
        """Installments of a project in ledger order ``(due_on, sequence)``."""
        rows = self.session.execute(
            select(InstallmentModel)
            .where(InstallmentModel.project_id == project_id)
            .order_by(InstallmentModel.due_on, InstallmentModel.sequence)
        ).scalars()
        return [row.to_snapshot() for row in rows]

    def payments(self, project_id: UUID) -> list[PaymentRecord]:
        """Payment history, newest received first."""
        rows = self.session.execute(
            select(ClientPaymentModel)
            .where(ClientPaymentModel.project_id == project_id)
            .order_by(
                ClientPaymentModel.received_on.desc(),
                ClientPaymentModel.created_at.desc(),
            )
        ).scalars()
        return [row.to_dto() for row in rows]

    def allocations_for_payment(self, payment_id: UUID) -> list[AllocationEventRecord]:
        """Allocation events of one payment, in the ledger order of their installments."""
        rows = self.session.execute(
            select(AllocationEventModel)
            .join(InstallmentModel, AllocationEventModel.installment_id == InstallmentModel.id)
            .where(AllocationEventModel.payment_id == payment_id)
            .order_by(InstallmentModel.due_on, InstallmentModel.sequence)
        ).scalars()
        return [row.to_dto() for row in rows]

    def allocations_for_project(self, project_id: UUID) -> list[AllocationEventRecord]:
        rows = self.session.execute(
            select(AllocationEventModel)
            .where(AllocationEventModel.project_id == project_id)
            .order_by(AllocationEventModel.created_at)
        ).scalars()
        return [row.to_dto() for row in rows]

    def summary(
        self,
        project_id: UUID,
        deposit_label: str = DEFAULT_DEPOSIT_LABEL,
    ) -> ScheduleSummary:
        """
        Aggregate position of a project's ledger.

        ``deposit_settled`` is None when the project has no deposit line.
        """
        project = self.session.get(ProjectModel, project_id)
        if project is None:
            raise ProjectNotFoundError(str(project_id))

        installments = self.schedule(project_id)
        deposit = find_deposit_line(installments, deposit_label)
        return ScheduleSummary(
            project_id=project_id,
            project_status=project.status,
            installment_count=len(installments),
            total_due=sum(i.amount_due for i in installments),
            total_paid=sum(i.amount_paid for i in installments),
            overdue_count=sum(
                1 for i in installments if i.status is InstallmentStatus.OVERDUE
            ),
            deposit_settled=None if deposit is None else deposit.is_settled,
        )

    def find_premature_planned(
        self,
        deposit_label: str = DEFAULT_DEPOSIT_LABEL,
    ) -> list[PrematureAdvance]:
        """
        PLANNED projects whose deposit line is not fully paid.

        The deposit gate never produces these; they come from status
        changes made outside the payment flow.
        """
        rows = self.session.execute(
            select(ProjectModel.id, InstallmentModel)
            .join(InstallmentModel, InstallmentModel.project_id == ProjectModel.id)
            .where(
                ProjectModel.status == ProjectStatus.PLANNED,
                InstallmentModel.label == deposit_label,
            )
            .order_by(ProjectModel.id, InstallmentModel.due_on, InstallmentModel.sequence)
        ).all()

        found: list[PrematureAdvance] = []
        seen: set[UUID] = set()
        for project_id, installment in rows:
            # first deposit line in ledger order decides
            if project_id in seen:
                continue
            seen.add(project_id)
            if installment.amount_paid < installment.amount_due:
                found.append(PrematureAdvance(
                    project_id=project_id,
                    project_status=ProjectStatus.PLANNED,
                    deposit_due=installment.amount_due,
                    deposit_paid=installment.amount_paid,
                ))
        return found
