"""Early-closure tips and loan badges"""
import pytest

from config.constants import LoanStatus, LoanType, TipKind, TipPriority
from core.advisory import (
    generate_tips, is_high_interest, is_interest_heavy, is_long_tenure, loan_badges,
)


@pytest.fixture
def expensive_loan(loan_factory):
    """100,000 at 20% over 5 years"""
    return loan_factory(100_000, 20.0, 60, loan_id="LN-card")


@pytest.fixture
def cheap_loan(loan_factory):
    """100,000 at 5% over 10 years"""
    return loan_factory(100_000, 5.0, 120, loan_id="LN-edu")


class TestBadges:
    def test_all_badges(self, expensive_loan):
        assert loan_badges(expensive_loan) == ["High Interest", "Long Tenure", "Interest Heavy"]

    def test_home_loan(self, home_loan):
        assert loan_badges(home_loan) == ["Long Tenure", "Interest Heavy"]

    def test_short_cheap_loan(self, loan_factory):
        assert loan_badges(loan_factory(100_000, 10.0, 12)) == []

    def test_high_interest_threshold_is_exclusive(self, loan_factory):
        assert not is_high_interest(loan_factory(100_000, 15.0, 12))
        assert is_high_interest(loan_factory(100_000, 15.01, 12))

    def test_long_tenure_uses_remaining_periods(self, flat_loan):
        # 12 month loan, half paid
        assert not is_long_tenure(flat_loan)

    def test_zero_principal_is_not_interest_heavy(self, loan_factory):
        assert not is_interest_heavy(loan_factory(0, 10.0, 12, installment=100.0))


class TestGenerateTips:
    def test_high_interest_loan(self, expensive_loan):
        found = generate_tips(expensive_loan, "$")
        assert [t.kind for t in found] == [
            TipKind.HIGH_INTEREST, TipKind.PREPAY, TipKind.EXTRA_INSTALLMENT,
        ]
        assert found[0].priority is TipPriority.HIGH
        assert "20.00%" in found[0].detail
        assert found[1].impact_text == "Could remove 3 installments and save interest"
        assert found[2].impact_text == "Loan closes 4 months earlier"

    def test_low_rate_loan(self, cheap_loan):
        found = generate_tips(cheap_loan, "$")
        assert [t.kind for t in found] == [
            TipKind.PREPAY, TipKind.EXTRA_INSTALLMENT, TipKind.INCREASE_INSTALLMENT,
        ]
        assert found[-1].priority is TipPriority.LOW
        assert found[-1].impact_text == "Save 3 months and reduce interest"
        assert found[1].impact_text == "Loan closes 9 months earlier"

    def test_prepay_amount_uses_symbol(self, cheap_loan):
        prepay = generate_tips(cheap_loan, "$")[0]
        assert prepay.detail == f"Prepay ${cheap_loan.installment * 3:,.2f} now"

    def test_sorted_by_priority(self, expensive_loan, cheap_loan, home_loan):
        for loan in (expensive_loan, cheap_loan, home_loan):
            ranks = [t.priority.rank for t in generate_tips(loan)]
            assert ranks == sorted(ranks, reverse=True)

    def test_no_tips_for_lent_money(self, loan_factory):
        loan = loan_factory(100_000, 20.0, 60, loan_type=LoanType.GIVEN)
        assert generate_tips(loan) == []

    def test_no_tips_for_closed_loan(self, loan_factory):
        loan = loan_factory(100_000, 20.0, 60, status=LoanStatus.CLOSED, outstanding=0)
        assert generate_tips(loan) == []

    def test_nearly_finished_loan(self, loan_factory):
        # one installment left: nothing worth suggesting beyond the rate warning
        loan = loan_factory(100_000, 8.0, 12, outstanding=8_000)
        assert generate_tips(loan) == []
