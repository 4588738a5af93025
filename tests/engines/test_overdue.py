"""Tests for the overdue sweep engine."""

from datetime import date
from uuid import uuid4

from billing_engines.overdue import is_overdue, sweep_overdue
from billing_kernel.domain.dtos import InstallmentSnapshot
from billing_kernel.domain.statuses import InstallmentStatus

AS_OF = date(2024, 3, 1)


def snap(sequence, due_on, status=InstallmentStatus.DUE, amount_due=1000, amount_paid=0):
    return InstallmentSnapshot(
        installment_id=uuid4(),
        sequence=sequence,
        due_on=due_on,
        label=f"Installment {sequence}",
        amount_due=amount_due,
        amount_paid=amount_paid,
        status=status,
    )


class TestIsOverdue:

    def test_due_before_as_of(self):
        assert is_overdue(snap(1, date(2024, 2, 29)), AS_OF)

    def test_due_today_is_not_overdue(self):
        assert not is_overdue(snap(1, AS_OF), AS_OF)

    def test_future_is_not_overdue(self):
        assert not is_overdue(snap(1, date(2024, 4, 1)), AS_OF)

    def test_partial_past_due(self):
        item = snap(1, date(2024, 1, 1), InstallmentStatus.PARTIAL, amount_paid=10)
        assert is_overdue(item, AS_OF)

    def test_paid_never_overdue(self):
        item = snap(1, date(2020, 1, 1), InstallmentStatus.PAID, amount_paid=1000)
        assert not is_overdue(item, AS_OF)

    def test_already_overdue_not_flipped_again(self):
        assert not is_overdue(snap(1, date(2024, 1, 1), InstallmentStatus.OVERDUE), AS_OF)


class TestSweepOverdue:

    def test_flips_only_past_due_unsettled(self):
        past_due = snap(1, date(2024, 1, 1))
        past_partial = snap(2, date(2024, 2, 1), InstallmentStatus.PARTIAL, amount_paid=300)
        past_paid = snap(3, date(2024, 2, 15), InstallmentStatus.PAID, amount_paid=1000)
        today = snap(4, AS_OF)
        future = snap(5, date(2024, 4, 1))

        result = sweep_overdue(
            installments=[future, today, past_paid, past_partial, past_due],
            as_of=AS_OF,
        )

        assert result.as_of == AS_OF
        assert result.count == 2
        assert [s.installment_id for s in result.flipped] == [
            past_due.installment_id,
            past_partial.installment_id,
        ]
        assert all(s.status == InstallmentStatus.OVERDUE for s in result.flipped)
        # amounts are untouched
        assert result.flipped[1].amount_paid == 300

    def test_empty_ledger(self):
        assert sweep_overdue(installments=[], as_of=AS_OF).count == 0
