"""Selectors for the billing kernel (read side)."""

from billing_kernel.selectors.schedule_selector import ScheduleSelector

__all__ = ["ScheduleSelector"]
