"""Installment arithmetic: flat and reducing-balance EMI, and its inversion"""
import math
from typing import Optional

from config.constants import InterestType, MINIMUM_INSTALLMENT_BUFFER, PERIOD_EPSILON
from core.errors import InvalidArgument
from data_manager.schema import LoanSnapshot


def monthly_rate(rate_pct: float) -> float:
    """Annual percentage -> monthly decimal rate: 12 -> 0.01"""
    return rate_pct / 1200


def ceil_periods(value: float) -> int:
    """Round a duration up, ignoring float noise (36.0000000001 -> 36)."""
    return math.ceil(value - PERIOD_EPSILON)


def round_periods(value: float) -> int:
    """Round half up, for the linear estimates (2.5 -> 3)."""
    return math.floor(value + 0.5)


def compute_installment(
    principal: float,
    rate_pct: float,
    tenure_months: int,
    interest_type: InterestType,
) -> float:
    """Monthly installment for the given terms.

    Flat:      (P + P * rate * n / 1200) / n
    Reducing:  P * r * (1+r)^n / ((1+r)^n - 1), with r = rate / 1200,
               or P / n when the rate is zero.
    """
    if tenure_months < 1:
        raise InvalidArgument(f"Tenure must be at least 1 month, got {tenure_months}")
    if principal < 0:
        raise InvalidArgument(f"Principal must not be negative, got {principal}")
    if rate_pct < 0:
        raise InvalidArgument(f"Interest rate must not be negative, got {rate_pct}")

    if InterestType(interest_type) is InterestType.FLAT:
        interest = principal * rate_pct * tenure_months / 1200
        return (principal + interest) / tenure_months

    r = monthly_rate(rate_pct)
    if r == 0:
        return principal / tenure_months
    try:
        growth = (1 + r) ** tenure_months
    except OverflowError:
        # (1+r)^n / ((1+r)^n - 1) -> 1: the installment tends to the pure interest
        return principal * r
    return principal * r * growth / (growth - 1)


def total_interest(
    principal: float,
    rate_pct: float,
    tenure_months: int,
    interest_type: InterestType,
) -> float:
    """Interest paid over the whole tenure."""
    installment = compute_installment(principal, rate_pct, tenure_months, interest_type)
    return installment * tenure_months - principal


def minimum_installment(loan: LoanSnapshot) -> float:
    """Smallest installment the engine accepts for a loan.

    One month of interest on the outstanding balance plus a fixed 10% margin. This is a
    policy floor, not a derived minimum: anything at or below the pure interest never
    amortizes, the margin keeps the principal strictly falling.
    """
    balance = max(loan.outstanding_balance, 0.0)
    return balance * loan.interest_rate_pct / 1200 * MINIMUM_INSTALLMENT_BUFFER


def fractional_periods_for_installment(
    balance: float,
    installment: float,
    rate_pct: float,
    interest_type: InterestType,
) -> Optional[float]:
    """Unrounded months needed to clear `balance` paying `installment` each month.

    Returns None when the installment can never clear the balance. Reducing loans
    invert the annuity formula, n = -ln(1 - B*r/E) / ln(1+r). Flat loans use
    (B + B * rate / 100) / E, which charges one year of interest on the balance
    regardless of the months left; an approximation kept on purpose.

    Raises ValueError / ArithmeticError when the inversion is not a finite number.
    """
    if installment <= 0 or balance <= 0:
        return None

    if InterestType(interest_type) is InterestType.FLAT:
        periods = (balance + balance * rate_pct / 100) / installment
    else:
        r = monthly_rate(rate_pct)
        if r == 0:
            periods = balance / installment
        else:
            ratio = balance * r / installment
            if ratio >= 1:
                return None
            periods = -math.log(1 - ratio) / math.log(1 + r)

    if not math.isfinite(periods):
        raise ValueError(f"Duration is not a finite number: {periods}")
    return periods


def remaining_periods_for_installment(
    balance: float,
    installment: float,
    rate_pct: float,
    interest_type: InterestType,
) -> Optional[int]:
    """Whole months needed to clear `balance`: the fractional duration rounded up, at least 1."""
    periods = fractional_periods_for_installment(balance, installment, rate_pct, interest_type)
    if periods is None:
        return None
    return max(1, ceil_periods(periods))
