"""ORM models for the billing kernel."""

from billing_kernel.models.installment import InstallmentModel
from billing_kernel.models.payment import AllocationEventModel, ClientPaymentModel
from billing_kernel.models.project import ProjectModel
from billing_kernel.models.reminder import PaymentReminderModel

__all__ = [
    "ProjectModel",
    "InstallmentModel",
    "ClientPaymentModel",
    "AllocationEventModel",
    "PaymentReminderModel",
]
