"""Installment / duration change simulation tests"""
from datetime import date

import pytest

from config.constants import InterestType
from core.amortization import compute_installment
from core.errors import InvalidArgument, ValidationError
from core.impact import apply_impact, generate_impact_notes, simulate_impact
from data_manager.schema import DurationChange, InstallmentChange


class TestInstallmentChange:
    def test_round_trip_on_grid(self, car_loan):
        target = compute_installment(500_000, 9.0, 60, InterestType.REDUCING)
        result = simulate_impact(car_loan, InstallmentChange(target))
        assert result.new_remaining_periods == 60
        back = compute_installment(car_loan.outstanding_balance, 9.0, result.new_remaining_periods,
                                   InterestType.REDUCING)
        assert back == pytest.approx(target, rel=1e-9)

    def test_round_trip_off_grid(self, car_loan):
        """The duration is rounded up, so it brackets the requested installment"""
        result = simulate_impact(car_loan, InstallmentChange(7_000))
        n = result.new_remaining_periods
        assert compute_installment(500_000, 9.0, n, InterestType.REDUCING) <= 7_000
        assert compute_installment(500_000, 9.0, n - 1, InterestType.REDUCING) > 7_000

    def test_higher_installment_saves(self, car_loan):
        result = simulate_impact(car_loan, InstallmentChange(8_000))
        assert result.achievable
        assert result.new_installment == 8_000
        assert result.new_remaining_periods == 85
        assert result.periods_saved == 35
        assert result.periods_added == 0
        assert result.interest_saved > 0
        assert result.interest_increased == 0
        assert result.total_payable_after == pytest.approx(8_000 * 85)

    def test_new_end_date(self, car_loan):
        target = compute_installment(500_000, 9.0, 60, InterestType.REDUCING)
        result = simulate_impact(car_loan, InstallmentChange(target))
        # nothing paid yet, 60 months from 2024-01-15
        assert result.new_end_date == date(2029, 1, 15)

    def test_infeasible_returns_unchanged(self, car_loan):
        # 3,000 does not cover 3,750 of monthly interest
        result = simulate_impact(car_loan, InstallmentChange(3_000))
        assert not result.achievable
        assert result.new_remaining_periods == 120
        assert result.new_installment == car_loan.installment
        assert result.interest_saved == 0
        assert result.interest_increased == 0
        assert result.periods_saved == 0
        assert result.periods_added == 0

    def test_non_positive_installment_is_infeasible(self, car_loan):
        assert not simulate_impact(car_loan, InstallmentChange(0)).achievable
        assert not simulate_impact(car_loan, InstallmentChange(-10)).achievable

    def test_flat_loan(self, flat_loan):
        # (60,000 + 7,200) / 20,000 -> 4 months instead of 6
        result = simulate_impact(flat_loan, InstallmentChange(20_000))
        assert result.new_remaining_periods == 4
        assert result.periods_saved == 2

    def test_simulation_is_pure(self, car_loan):
        before = car_loan
        simulate_impact(car_loan, InstallmentChange(8_000))
        assert car_loan == before


class TestDurationChange:
    def test_longer_duration_costs_interest(self, car_loan):
        result = simulate_impact(car_loan, DurationChange(180))
        assert result.new_remaining_periods == 180
        assert result.new_installment < car_loan.installment
        assert result.periods_added == 60
        assert result.periods_saved == 0
        assert result.interest_increased > 0
        assert result.interest_saved == 0

    def test_shorter_duration_saves(self, car_loan):
        result = simulate_impact(car_loan, DurationChange(60))
        assert result.new_installment == pytest.approx(
            compute_installment(500_000, 9.0, 60, InterestType.REDUCING))
        assert result.interest_saved > 0
        assert result.periods_saved == 60

    def test_zero_duration_is_invalid(self, car_loan):
        with pytest.raises(InvalidArgument):
            simulate_impact(car_loan, DurationChange(0))

    @pytest.mark.parametrize("change", [
        InstallmentChange(4_500), InstallmentChange(6_333), InstallmentChange(12_000),
        DurationChange(12), DurationChange(120), DurationChange(300),
    ])
    def test_interest_delta_is_exclusive(self, car_loan, change):
        result = simulate_impact(car_loan, change)
        assert result.interest_saved >= 0
        assert result.interest_increased >= 0
        assert result.interest_saved == 0 or result.interest_increased == 0


class TestUnsupportedChange:
    def test_rejects_unknown_change(self, car_loan):
        with pytest.raises(InvalidArgument):
            simulate_impact(car_loan, 7_000)


class TestApplyImpact:
    def test_apply_installment(self, car_loan):
        updated = apply_impact(car_loan, InstallmentChange(8_000))
        assert updated.installment == 8_000
        assert updated.original_tenure_months == 85
        assert updated.outstanding_balance == car_loan.outstanding_balance
        assert updated.loan_id == car_loan.loan_id

    def test_apply_duration(self, car_loan):
        updated = apply_impact(car_loan, DurationChange(60))
        assert updated.original_tenure_months == 60
        assert updated.installment == pytest.approx(
            compute_installment(500_000, 9.0, 60, InterestType.REDUCING))

    def test_below_minimum_rejected(self, car_loan):
        # minimum is 3,750 * 1.1 = 4,125
        with pytest.raises(ValidationError):
            apply_impact(car_loan, InstallmentChange(4_000))

    def test_zero_duration_rejected(self, car_loan):
        with pytest.raises(ValidationError):
            apply_impact(car_loan, DurationChange(0))


class TestImpactNotes:
    def test_saving_notes_order(self, car_loan):
        notes = generate_impact_notes(simulate_impact(car_loan, InstallmentChange(8_000)), "$")
        assert len(notes) == 2
        assert notes[0].startswith("Save $")
        assert notes[1] == "Loan closes 35 months earlier"

    def test_warning_notes_order(self, car_loan):
        notes = generate_impact_notes(simulate_impact(car_loan, DurationChange(121)), "$")
        assert notes[0].startswith("Warning: interest increases by $")
        assert notes[1] == "Warning: loan extends by 1 month"

    def test_unchanged_has_no_notes(self, car_loan):
        assert generate_impact_notes(simulate_impact(car_loan, InstallmentChange(3_000))) == []
