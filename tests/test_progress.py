"""Progress reconstruction tests"""
import math
from dataclasses import replace

import pytest

from config.constants import InterestType, LoanStatus, ProgressEstimate
from core.amortization import monthly_rate
from core.progress import reconstruct_progress


def _balance_with_periods_left(loan, periods):
    """Outstanding balance of an annuity loan with `periods` installments left"""
    r = monthly_rate(loan.interest_rate_pct)
    return loan.installment * (1 - (1 + r) ** -periods) / r


class TestClosedLoans:
    def test_closed_status(self, car_loan):
        closed = replace(car_loan, status=LoanStatus.CLOSED)
        result = reconstruct_progress(closed)
        assert result.periods_remaining == 0
        assert result.progress_percentage == 100
        assert result.periods_elapsed == 120
        assert result.interest_remaining_approx == 0
        assert result.estimate is ProgressEstimate.SETTLED

    def test_zero_balance(self, loan_factory):
        result = reconstruct_progress(loan_factory(100_000, 10.0, 12, outstanding=0))
        assert result.periods_remaining == 0
        assert result.progress_percentage == 100
        assert result.remaining_principal == 0
        # all interest counted as paid
        assert result.interest_paid_approx == pytest.approx(8791.59 * 12 - 100_000, abs=0.1)


class TestReducingLoans:
    def test_fresh_loan(self, car_loan):
        result = reconstruct_progress(car_loan)
        assert result.periods_elapsed == 0
        assert result.periods_remaining == 120
        assert result.progress_percentage == 0
        assert result.estimate is ProgressEstimate.ANNUITY

    def test_halfway(self, loan_factory):
        loan = loan_factory(100_000, 10.0, 12)
        loan = loan_factory(100_000, 10.0, 12, outstanding=_balance_with_periods_left(loan, 6))
        result = reconstruct_progress(loan)
        assert result.periods_elapsed == 6
        assert result.periods_remaining == 6
        assert result.progress_percentage == pytest.approx(50)
        assert result.remaining_principal == loan.outstanding_balance

    def test_interest_split_is_linear(self, loan_factory):
        loan = loan_factory(100_000, 10.0, 12)
        loan = loan_factory(100_000, 10.0, 12, outstanding=_balance_with_periods_left(loan, 3))
        result = reconstruct_progress(loan)
        total = loan.installment * 12 - loan.principal
        assert result.interest_paid_approx == pytest.approx(total * 9 / 12)
        assert result.interest_paid_approx + result.interest_remaining_approx == pytest.approx(total)

    def test_infeasible_installment_counts_as_unelapsed(self, loan_factory):
        # 100,000 at 12% accrues 1,000 a month; 500 never amortizes
        loan = loan_factory(100_000, 12.0, 24, installment=500)
        result = reconstruct_progress(loan)
        assert result.periods_elapsed == 0
        assert result.periods_remaining == 24
        assert result.estimate is ProgressEstimate.INFEASIBLE

    def test_zero_rate_counts_as_elapsed(self, loan_factory):
        result = reconstruct_progress(loan_factory(12_000, 0, 12, outstanding=6_000))
        assert result.periods_elapsed == 12
        assert result.periods_remaining == 0
        assert result.estimate is ProgressEstimate.UNAMORTIZED

    def test_numerical_failure_uses_flagged_heuristic(self, loan_factory):
        loan = loan_factory(100_000, math.nan, 20, installment=6_000, outstanding=40_000)
        result = reconstruct_progress(loan)
        # 60% repaid * 20 months * 0.85 = 10.2
        assert result.periods_elapsed == 10
        assert result.is_heuristic
        assert result.estimate is ProgressEstimate.HEURISTIC

    def test_idempotent(self, home_loan):
        assert reconstruct_progress(home_loan) == reconstruct_progress(home_loan)


class TestFlatLoans:
    def test_linear_progress(self, flat_loan):
        result = reconstruct_progress(flat_loan)
        assert result.periods_elapsed == 6
        assert result.periods_remaining == 6
        assert result.estimate is ProgressEstimate.LINEAR
        # 14,400 of interest, half of it paid
        assert result.interest_paid_approx == pytest.approx(7_200)
        assert result.interest_remaining_approx == pytest.approx(7_200)

    def test_zero_principal(self, loan_factory):
        loan = loan_factory(0, 12.0, 12, InterestType.FLAT, installment=100, outstanding=50)
        result = reconstruct_progress(loan)
        assert result.periods_elapsed == 0

    def test_balance_above_principal_is_clamped(self, loan_factory):
        loan = loan_factory(120_000, 12.0, 12, InterestType.FLAT, outstanding=150_000)
        result = reconstruct_progress(loan)
        assert result.periods_elapsed == 0
        assert result.periods_remaining == 12
        assert 0 <= result.progress_percentage <= 100


class TestSerialisation:
    def test_to_dict_is_plain(self, flat_loan):
        data = reconstruct_progress(flat_loan).to_dict()
        assert data["estimate"] == "linear"
        assert data["periods_remaining"] == 6
