"""
Tests for payment plan generation.

Covers:
- Deposit plus monthly installments, last one holding the remainder
- Single balance line when no installment amount is set
- Month-end day clamping
- Nothing owed -> one PAID zero line
- Input validation and the monthly line guard
"""

from datetime import date

import pytest

from billing_engines.payment_plan import (
    BALANCE_LABEL,
    SETTLED_LABEL,
    PaymentPlanBuilder,
    PaymentPlanTerms,
    PlanInputError,
    add_months,
)
from billing_kernel.domain.statuses import InstallmentStatus


def build(**kwargs):
    builder_kwargs = {
        k: kwargs.pop(k) for k in ("deposit_label", "max_installments") if k in kwargs
    }
    return PaymentPlanBuilder().build(terms=PaymentPlanTerms(**kwargs), **builder_kwargs)


class TestMonthlyPlan:

    def test_deposit_then_installments(self):
        lines = build(
            contract_total=1_000_000,
            deposit=300_000,
            installment=250_000,
            commence_on=date(2024, 1, 15),
            first_due_on=date(2024, 2, 15),
        )

        assert [l.label for l in lines] == [
            "Deposit", "Installment 1", "Installment 2", "Installment 3",
        ]
        assert [l.sequence for l in lines] == [1, 2, 3, 4]
        assert [l.amount_due for l in lines] == [300_000, 250_000, 250_000, 200_000]
        assert [l.due_on for l in lines] == [
            date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15), date(2024, 4, 15),
        ]
        assert all(l.status == InstallmentStatus.DUE for l in lines)
        assert sum(l.amount_due for l in lines) == 1_000_000

    def test_first_due_defaults_to_commencement(self):
        lines = build(
            contract_total=200, deposit=0, installment=100, commence_on=date(2024, 5, 10),
        )
        assert [l.due_on for l in lines] == [date(2024, 5, 10), date(2024, 6, 10)]

    def test_custom_deposit_label(self):
        lines = build(
            contract_total=500, deposit=100, installment=0,
            commence_on=date(2024, 1, 1), deposit_label="Down payment",
        )
        assert lines[0].label == "Down payment"


class TestBalanceAndSettledPlans:

    def test_single_balance_line(self):
        lines = build(
            contract_total=5000,
            deposit=1000,
            installment=0,
            commence_on=date(2024, 1, 1),
            first_due_on=date(2024, 6, 30),
        )

        assert [(l.label, l.amount_due, l.due_on) for l in lines] == [
            ("Deposit", 1000, date(2024, 1, 1)),
            (BALANCE_LABEL, 4000, date(2024, 6, 30)),
        ]

    def test_deposit_covers_everything(self):
        lines = build(contract_total=1000, deposit=1500, installment=100, commence_on=date(2024, 1, 1))

        assert len(lines) == 1
        assert lines[0].label == "Deposit"
        assert lines[0].amount_due == 1500

    def test_nothing_owed(self):
        lines = build(contract_total=0, deposit=0, installment=0, commence_on=date(2024, 1, 1))

        assert len(lines) == 1
        assert lines[0].label == SETTLED_LABEL
        assert lines[0].amount_due == 0
        assert lines[0].status == InstallmentStatus.PAID


class TestAddMonths:

    @pytest.mark.parametrize(
        "start, months, expected",
        [
            (date(2024, 1, 31), 1, date(2024, 2, 29)),
            (date(2023, 1, 31), 1, date(2023, 2, 28)),
            (date(2024, 1, 31), 2, date(2024, 3, 31)),
            (date(2024, 11, 15), 3, date(2025, 2, 15)),
            (date(2024, 5, 1), 0, date(2024, 5, 1)),
        ],
    )
    def test_clamps_to_month_end(self, start, months, expected):
        assert add_months(start, months) == expected

    def test_schedule_keeps_original_day_after_short_month(self):
        lines = build(
            contract_total=300, deposit=0, installment=100,
            commence_on=date(2024, 1, 31),
        )
        assert [l.due_on for l in lines] == [
            date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31),
        ]


class TestPlanValidation:

    @pytest.mark.parametrize("field", ["contract_total", "deposit", "installment"])
    def test_negative_inputs(self, field):
        kwargs = dict(contract_total=1000, deposit=100, installment=100, commence_on=date(2024, 1, 1))
        kwargs[field] = -1

        with pytest.raises(PlanInputError) as exc_info:
            PaymentPlanTerms(**kwargs)

        assert exc_info.value.field == field
        assert isinstance(exc_info.value, ValueError)

    def test_too_many_monthly_lines(self):
        with pytest.raises(PlanInputError, match="limit is 600"):
            build(contract_total=601, deposit=0, installment=1, commence_on=date(2024, 1, 1))

    def test_exactly_at_the_limit(self):
        lines = build(
            contract_total=12, deposit=0, installment=1,
            commence_on=date(2024, 1, 1), max_installments=12,
        )
        assert len(lines) == 12
        assert lines[-1].due_on == date(2024, 12, 1)
