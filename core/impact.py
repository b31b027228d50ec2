"""What-if simulation for changing the installment or the remaining duration"""
import logging
import math
from dataclasses import replace
from typing import List

from config.settings import DEFAULT_CURRENCY_SYMBOL
from core.amortization import (
    ceil_periods, compute_installment, minimum_installment, remaining_periods_for_installment,
)
from core.errors import InvalidArgument, ValidationError
from core.progress import reconstruct_progress
from data_manager.data_validator import validate_new_duration, validate_new_installment
from data_manager.schema import (
    DurationChange, ImpactResult, InstallmentChange, LoanChange, LoanSnapshot, ProgressResult,
)
from utils.date_utils import add_months
from utils.formatters import fmt_amount, plural_months

logger = logging.getLogger(__name__)


def _periods_for_installment(loan: LoanSnapshot, installment: float):
    try:
        return remaining_periods_for_installment(
            loan.outstanding_balance, installment,
            loan.interest_rate_pct, loan.interest_type,
        )
    except (ValueError, ArithmeticError) as e:
        logger.warning("Annuity inversion failed for loan %r (%s); using balance / installment",
                       loan.loan_id, e)
        estimate = loan.outstanding_balance / installment
        if not math.isfinite(estimate):
            return None
        return max(1, ceil_periods(estimate))


def _unchanged(loan: LoanSnapshot, progress: ProgressResult) -> ImpactResult:
    """Sentinel for a change that can never pay the loan off."""
    payable = loan.installment * progress.periods_remaining
    return ImpactResult(
        new_installment=loan.installment,
        new_remaining_periods=progress.periods_remaining,
        interest_saved=0.0,
        interest_increased=0.0,
        new_end_date=add_months(loan.start_date, progress.periods_elapsed + progress.periods_remaining),
        periods_saved=0,
        periods_added=0,
        total_payable_before=payable,
        total_payable_after=payable,
        achievable=False,
    )


def simulate_impact(loan: LoanSnapshot, change: LoanChange) -> ImpactResult:
    """
    Preview a new installment (duration follows) or a new remaining duration
    (installment follows) against the loan's current reconstructed state.

    An installment that can never clear the balance returns the loan's current
    figures with achievable=False instead of raising.
    """
    progress = reconstruct_progress(loan)
    current_remaining = progress.periods_remaining

    if isinstance(change, InstallmentChange):
        new_installment = change.new_installment
        new_periods = _periods_for_installment(loan, new_installment)
        if new_periods is None:
            logger.debug("Installment %.2f cannot amortize loan %r", new_installment, loan.loan_id)
            return _unchanged(loan, progress)
    elif isinstance(change, DurationChange):
        new_periods = change.new_remaining_periods
        new_installment = compute_installment(
            max(loan.outstanding_balance, 0.0), loan.interest_rate_pct,
            new_periods, loan.interest_type,
        )
    else:
        raise InvalidArgument(f"Unsupported change: {change!r}")

    total_before = loan.installment * current_remaining
    total_after = new_installment * new_periods
    delta = total_before - total_after

    return ImpactResult(
        new_installment=new_installment,
        new_remaining_periods=new_periods,
        interest_saved=max(0.0, delta),
        interest_increased=max(0.0, -delta),
        new_end_date=add_months(loan.start_date, progress.periods_elapsed + new_periods),
        periods_saved=max(0, current_remaining - new_periods),
        periods_added=max(0, new_periods - current_remaining),
        total_payable_before=total_before,
        total_payable_after=total_after,
    )


def apply_impact(loan: LoanSnapshot, change: LoanChange) -> LoanSnapshot:
    """Build the snapshot to persist once the caller accepts a change.

    The outstanding balance is untouched; the tenure becomes
    installments already paid + new remaining duration.
    """
    if isinstance(change, InstallmentChange):
        ok, msg = validate_new_installment(change.new_installment, minimum_installment(loan))
    elif isinstance(change, DurationChange):
        ok, msg = validate_new_duration(change.new_remaining_periods)
    else:
        raise InvalidArgument(f"Unsupported change: {change!r}")
    if not ok:
        raise ValidationError(msg)

    result = simulate_impact(loan, change)
    if not result.achievable:
        raise ValidationError("The requested installment cannot pay off this loan")

    progress = reconstruct_progress(loan)
    return replace(
        loan,
        installment=result.new_installment,
        original_tenure_months=progress.periods_elapsed + result.new_remaining_periods,
    )


def generate_impact_notes(result: ImpactResult, currency_symbol: str = DEFAULT_CURRENCY_SYMBOL) -> List[str]:
    """Human readable summary lines, in a fixed order."""
    notes = []

    if result.interest_saved > 0:
        notes.append(f"Save {fmt_amount(result.interest_saved, currency_symbol)} in interest")

    if result.periods_saved > 0:
        notes.append(f"Loan closes {plural_months(result.periods_saved)} earlier")

    if result.interest_increased > 0:
        notes.append(f"Warning: interest increases by {fmt_amount(result.interest_increased, currency_symbol)}")

    if result.periods_added > 0:
        notes.append(f"Warning: loan extends by {plural_months(result.periods_added)}")

    return notes
