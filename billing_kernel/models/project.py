"""
Project ORM model (``billing_kernel.models.project``).

The billing subject.  Owns one installment ledger and many payments.

Invariants enforced:
    - ``status`` is a ProjectStatus member (stored as its string value).
    - ``version`` is SQLAlchemy's optimistic version counter: every UPDATE
      of the row checks and bumps it, so two transactions that both
      recorded a payment against the same project cannot both commit.
    - ``payment_count`` is bumped by every recorded payment, which forces
      the versioned UPDATE even when the status does not change.
"""

from datetime import date

from sqlalchemy import BigInteger, Enum, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billing_kernel.db.base import TrackedBase
from billing_kernel.domain.statuses import ProjectStatus


class ProjectModel(TrackedBase):
    """
    ORM model for projects.

    Guarantees:
        - project_number is unique (uq_projects_project_number).
        - installments are loaded in ledger order (due_on, sequence).
    """

    __tablename__ = "projects"

    __table_args__ = (
        UniqueConstraint("project_number", name="uq_projects_project_number"),
        Index("idx_projects_status", "status"),
    )

    project_number: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, native_enum=False, length=30),
        default=ProjectStatus.CREATED,
        nullable=False,
    )
    payment_count: Mapped[int] = mapped_column(default=0, nullable=False)
    last_payment_on: Mapped[date | None] = mapped_column(nullable=True)
    version: Mapped[int] = mapped_column(BigInteger, nullable=False)

    installments = relationship(
        "InstallmentModel",
        back_populates="project",
        order_by="(InstallmentModel.due_on, InstallmentModel.sequence)",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<ProjectModel {self.project_number}: {self.status.value}>"
