"""Services for the billing kernel (write side)."""

from billing_kernel.services.locks import ProjectLockRegistry
from billing_kernel.services.payment_service import PaymentService
from billing_kernel.services.reminder_service import ReminderRunResult, ReminderService
from billing_kernel.services.schedule_service import ScheduleGenerationResult, ScheduleService
from billing_kernel.services.sweep_service import OverdueSweepService, SweepRunResult

__all__ = [
    "OverdueSweepService",
    "PaymentService",
    "ProjectLockRegistry",
    "ReminderRunResult",
    "ReminderService",
    "ScheduleGenerationResult",
    "ScheduleService",
    "SweepRunResult",
]
