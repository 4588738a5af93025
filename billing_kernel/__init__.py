"""
Billing Kernel

Payment allocation and schedule reconciliation for construction projects:
- Integer minor-unit money
- Oldest-first allocation of client payments across installments
- Overdue sweep against an injected clock
- Deposit gate advancing a project to PLANNED exactly once
- Atomic, per-project serialized payment recording
"""

__version__ = "0.1.0"
