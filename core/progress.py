"""Reconstruct repayment progress from a single balance snapshot.

No payment ledger is stored, so the number of installments already paid is always
inferred from the outstanding balance. Reducing-balance loans invert the annuity
formula; flat loans assume principal is repaid linearly. The interest split is a
linear share of the total interest, which understates the interest already paid on
reducing loans (their schedules are front-loaded with interest).
"""
import logging
import math
from typing import Tuple

from config.constants import InterestType, ProgressEstimate, REDUCING_FALLBACK_FACTOR
from core.amortization import ceil_periods, monthly_rate, round_periods
from data_manager.schema import LoanSnapshot, ProgressResult

logger = logging.getLogger(__name__)


def _share(part: float, whole: float) -> float:
    return part / whole if whole > 0 else 0.0


def _clamp(periods: int, tenure: int) -> int:
    return max(0, min(tenure, periods))


def _linear_periods(loan: LoanSnapshot, factor: float = 1.0) -> int:
    principal_paid = loan.principal - loan.outstanding_balance
    paid_share = _share(principal_paid, loan.principal)
    periods = paid_share * loan.original_tenure_months * factor
    if not math.isfinite(periods):
        return 0
    return round_periods(periods)


def _reducing_periods(loan: LoanSnapshot) -> Tuple[int, ProgressEstimate]:
    """Return (periods elapsed, estimate) for a reducing-balance loan."""
    tenure = loan.original_tenure_months
    r = monthly_rate(loan.interest_rate_pct)
    if r == 0 or loan.installment <= 0 or loan.outstanding_balance <= 0:
        return tenure, ProgressEstimate.UNAMORTIZED

    try:
        ratio = loan.outstanding_balance * r / loan.installment
        if ratio >= 1:
            # Installment never covers the interest: nothing can have been repaid yet
            return 0, ProgressEstimate.INFEASIBLE
        remaining = ceil_periods(-math.log(1 - ratio) / math.log(1 + r))
        return tenure - remaining, ProgressEstimate.ANNUITY
    except (ValueError, ArithmeticError) as e:
        logger.warning(
            "Annuity inversion failed for loan %r (%s); using %.2f x linear estimate",
            loan.loan_id, e, REDUCING_FALLBACK_FACTOR,
        )
        return _linear_periods(loan, REDUCING_FALLBACK_FACTOR), ProgressEstimate.HEURISTIC


def reconstruct_progress(loan: LoanSnapshot) -> ProgressResult:
    """Infer periods elapsed/remaining and the interest split for a loan."""
    tenure = max(loan.original_tenure_months, 0)
    total_payable = loan.installment * tenure
    total_interest = total_payable - loan.principal

    if not loan.is_active or loan.outstanding_balance <= 0:
        return ProgressResult(
            periods_elapsed=tenure,
            periods_remaining=0,
            progress_percentage=100.0,
            remaining_principal=0.0,
            interest_paid_approx=total_interest,
            interest_remaining_approx=0.0,
            estimate=ProgressEstimate.SETTLED,
        )

    if loan.interest_type is InterestType.FLAT:
        elapsed, estimate = _linear_periods(loan), ProgressEstimate.LINEAR
    else:
        elapsed, estimate = _reducing_periods(loan)
    elapsed = _clamp(elapsed, tenure)

    elapsed_share = _share(elapsed, tenure)
    interest_paid = total_interest * elapsed_share
    return ProgressResult(
        periods_elapsed=elapsed,
        periods_remaining=tenure - elapsed,
        progress_percentage=elapsed_share * 100,
        remaining_principal=loan.outstanding_balance,
        interest_paid_approx=interest_paid,
        interest_remaining_approx=total_interest - interest_paid,
        estimate=estimate,
    )
