"""Tests for domain value objects."""

from dataclasses import FrozenInstanceError
from datetime import date
from uuid import uuid4

import pytest

from billing_kernel.domain.dtos import InstallmentSnapshot, ScheduleSummary
from billing_kernel.domain.statuses import InstallmentStatus, ProjectStatus


def snapshot(amount_due=1000, amount_paid=0):
    return InstallmentSnapshot(
        installment_id=uuid4(),
        sequence=1,
        due_on=date(2024, 1, 1),
        label="Deposit",
        amount_due=amount_due,
        amount_paid=amount_paid,
        status=InstallmentStatus.DUE,
    )


class TestInstallmentSnapshot:

    def test_need_and_settled(self):
        item = snapshot(1000, 600)
        assert item.need == 400
        assert not item.is_settled
        assert snapshot(1000, 1000).is_settled

    def test_ledger_key(self):
        assert snapshot().ledger_key == (date(2024, 1, 1), 1)

    @pytest.mark.parametrize("due, paid", [(1000, -1), (1000, 1001), (-1, 0)])
    def test_rejects_inconsistent_amounts(self, due, paid):
        with pytest.raises(ValueError):
            snapshot(due, paid)

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            snapshot().amount_paid = 5


class TestScheduleSummary:

    def test_outstanding(self):
        summary = ScheduleSummary(
            project_id=uuid4(),
            project_status=ProjectStatus.CREATED,
            installment_count=2,
            total_due=3000,
            total_paid=1000,
            overdue_count=0,
            deposit_settled=True,
        )
        assert summary.outstanding == 2000
