"""
Tests for the installment status deriver.

Every (current status, paid/due) combination the allocation step can
produce, plus property tests over the whole input space.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from billing_engines.settlement import derive_status
from billing_kernel.domain.statuses import InstallmentStatus

DUE = InstallmentStatus.DUE
PARTIAL = InstallmentStatus.PARTIAL
PAID = InstallmentStatus.PAID
OVERDUE = InstallmentStatus.OVERDUE


class TestDeriveStatus:

    @pytest.mark.parametrize(
        "current, due, paid, expected",
        [
            (DUE, 1000, 1000, PAID),
            (PARTIAL, 1000, 1000, PAID),
            (OVERDUE, 1000, 1000, PAID),
            (DUE, 1000, 600, PARTIAL),
            (PARTIAL, 1000, 999, PARTIAL),
            (OVERDUE, 1000, 1, PARTIAL),
            (DUE, 1000, 0, DUE),
            (PARTIAL, 1000, 0, DUE),
            (OVERDUE, 1000, 0, OVERDUE),
        ],
    )
    def test_transition_table(self, current, due, paid, expected):
        assert derive_status(amount_due=due, amount_paid=paid, current=current) == expected

    def test_paid_is_terminal(self):
        assert derive_status(amount_due=1000, amount_paid=0, current=PAID) == PAID

    def test_zero_amount_line_is_paid(self):
        assert derive_status(amount_due=0, amount_paid=0, current=DUE) == PAID

    @pytest.mark.parametrize("paid", [-1, 1001])
    def test_paid_out_of_range(self, paid):
        with pytest.raises(ValueError, match="outside"):
            derive_status(amount_due=1000, amount_paid=paid, current=DUE)

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError, match="Unknown installment status"):
            derive_status(amount_due=1000, amount_paid=10, current="SETTLED")


class TestDeriveStatusProperties:

    @given(
        due=st.integers(min_value=1, max_value=10**9),
        data=st.data(),
        current=st.sampled_from([DUE, PARTIAL, OVERDUE]),
    )
    def test_result_matches_amounts(self, due, data, current):
        paid = data.draw(st.integers(min_value=0, max_value=due))
        status = derive_status(amount_due=due, amount_paid=paid, current=current)

        if paid == due:
            assert status == PAID
        elif paid > 0:
            assert status == PARTIAL
        else:
            assert status in (DUE, OVERDUE)
            assert (status == OVERDUE) == (current == OVERDUE)
