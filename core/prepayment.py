"""Lump-sum prepayment simulation"""
import logging
import math
from dataclasses import replace
from typing import List, Tuple

import pandas as pd

from config.constants import LOW_IMPACT_PREPAYMENT_SHARE, LoanStatus, PrepaymentMode
from config.settings import AMOUNT_PRECISION, DEFAULT_CURRENCY_SYMBOL
from core.amortization import ceil_periods, compute_installment, fractional_periods_for_installment
from core.errors import ValidationError
from core.progress import reconstruct_progress
from data_manager.data_validator import validate_prepayment
from data_manager.schema import LoanSnapshot, PrepaymentResult, ProgressResult
from utils.date_utils import add_months
from utils.formatters import fmt_amount, plural_months

logger = logging.getLogger(__name__)


def _shortened_periods(loan: LoanSnapshot, remaining: float, current_remaining: int) -> Tuple[int, float]:
    """Reduce duration: installment fixed, solve for the months left on `remaining`.

    Returns (whole months, months actually paid). The second figure is unrounded:
    the last installment of a shortened loan is only a part payment.
    """
    try:
        exact = fractional_periods_for_installment(
            remaining, loan.installment, loan.interest_rate_pct, loan.interest_type,
        )
    except (ValueError, ArithmeticError) as e:
        logger.warning("Annuity inversion failed for loan %r (%s); using balance / installment",
                       loan.loan_id, e)
        exact = remaining / loan.installment
        if not math.isfinite(exact):
            exact = None

    if exact is None:
        logger.debug("Installment of loan %r cannot amortize %.2f; duration unchanged",
                     loan.loan_id, remaining)
        return current_remaining, float(current_remaining)
    periods = max(1, ceil_periods(exact))
    # Reducing the duration never lengthens the loan
    if current_remaining > 0:
        periods = min(periods, current_remaining)
    return periods, exact


def _full_payoff(loan: LoanSnapshot, amount: float, progress: ProgressResult, mode: PrepaymentMode) -> PrepaymentResult:
    return PrepaymentResult(
        amount=amount,
        mode=mode,
        new_installment=0.0,
        new_remaining_periods=0,
        interest_saved=max(0.0, progress.interest_remaining_approx),
        periods_saved=progress.periods_remaining,
        new_end_date=add_months(loan.start_date, progress.periods_elapsed),
        total_payable_before=loan.installment * progress.periods_remaining,
        total_payable_after=amount,
        closes_loan=True,
    )


def simulate_prepayment(loan: LoanSnapshot, amount: float, mode: PrepaymentMode) -> PrepaymentResult:
    """
    Preview a lump-sum prepayment.

    reduce_duration keeps the installment and shortens the loan; reduce_installment
    keeps the remaining months and lowers the installment. A prepayment equal to the
    outstanding balance closes the loan in either mode. When the duration is reduced,
    the payable after the prepayment counts the last installment as the part payment
    it is, so saving never shrinks as the amount grows.

    Raises ValidationError for an amount outside (0, outstanding balance].
    """
    ok, msg = validate_prepayment(amount, loan.outstanding_balance, mode)
    if not ok:
        raise ValidationError(msg)
    mode = PrepaymentMode(mode)

    progress = reconstruct_progress(loan)
    current_remaining = progress.periods_remaining
    remaining = loan.outstanding_balance - amount

    if remaining <= 0:
        return _full_payoff(loan, amount, progress, mode)

    if mode is PrepaymentMode.REDUCE_DURATION:
        new_installment = loan.installment
        new_periods, paid_periods = _shortened_periods(loan, remaining, current_remaining)
    else:
        if current_remaining < 1:
            raise ValidationError("The loan has no remaining installments to reduce")
        new_periods = paid_periods = current_remaining
        new_installment = compute_installment(
            remaining, loan.interest_rate_pct, new_periods, loan.interest_type,
        )

    total_before = loan.installment * current_remaining
    total_after = amount + new_installment * paid_periods
    periods_saved = 0
    if mode is PrepaymentMode.REDUCE_DURATION:
        periods_saved = max(0, current_remaining - new_periods)

    return PrepaymentResult(
        amount=amount,
        mode=mode,
        new_installment=new_installment,
        new_remaining_periods=new_periods,
        interest_saved=max(0.0, total_before - total_after),
        periods_saved=periods_saved,
        new_end_date=add_months(loan.start_date, progress.periods_elapsed + new_periods),
        total_payable_before=total_before,
        total_payable_after=total_after,
        low_impact=amount < loan.outstanding_balance * LOW_IMPACT_PREPAYMENT_SHARE,
    )


def apply_prepayment(loan: LoanSnapshot, amount: float, mode: PrepaymentMode) -> LoanSnapshot:
    """Build the snapshot to persist once the caller accepts a prepayment."""
    result = simulate_prepayment(loan, amount, mode)
    if result.closes_loan:
        return replace(loan, outstanding_balance=0.0, status=LoanStatus.CLOSED)

    remaining = loan.outstanding_balance - amount
    if result.mode is PrepaymentMode.REDUCE_DURATION:
        progress = reconstruct_progress(loan)
        return replace(
            loan,
            outstanding_balance=remaining,
            original_tenure_months=progress.periods_elapsed + result.new_remaining_periods,
        )
    return replace(loan, outstanding_balance=remaining, installment=result.new_installment)


def compare_prepayment_modes(loan: LoanSnapshot, amount: float) -> pd.DataFrame:
    """Reduce duration vs reduce installment for the same amount, one row per mode"""
    rows = []
    for mode in PrepaymentMode:
        result = simulate_prepayment(loan, amount, mode)
        rows.append({
            "mode": mode.value,
            "new_installment": round(result.new_installment, AMOUNT_PRECISION),
            "new_remaining_periods": result.new_remaining_periods,
            "periods_saved": result.periods_saved,
            "interest_saved": round(result.interest_saved, AMOUNT_PRECISION),
            "total_payable_after": round(result.total_payable_after, AMOUNT_PRECISION),
            "new_end_date": result.new_end_date.isoformat(),
        })
    return pd.DataFrame(rows)


def generate_prepayment_notes(result: PrepaymentResult, currency_symbol: str = DEFAULT_CURRENCY_SYMBOL) -> List[str]:
    """Human readable summary lines, in a fixed order."""
    notes = []
    amount = fmt_amount(result.amount, currency_symbol)

    if result.closes_loan:
        notes.append(f"Prepayment of {amount} closes the loan")
    elif result.periods_saved > 0:
        notes.append(f"Prepayment of {amount} closes the loan {plural_months(result.periods_saved)} earlier")

    if result.interest_saved > 0:
        notes.append(f"You save {fmt_amount(result.interest_saved, currency_symbol)} in interest")

    if result.mode is PrepaymentMode.REDUCE_DURATION and result.periods_saved > 0 and not result.closes_loan:
        notes.append("Reducing the duration saves more interest than reducing the installment")

    if result.low_impact:
        notes.append("This amount is under 5% of the outstanding balance, so its impact is small")

    return notes
