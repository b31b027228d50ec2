from typing import Tuple

from config.constants import PrepaymentMode
from data_manager.schema import LoanSnapshot


def validate_loan_snapshot(loan: LoanSnapshot) -> Tuple[bool, str]:
    """Check a loan before it is stored. Returns (ok, error message)."""
    if not loan.name or not loan.name.strip():
        return False, "Loan name must not be empty"

    if loan.principal <= 0:
        return False, "Principal must be greater than 0"

    if loan.interest_rate_pct < 0:
        return False, "Interest rate must not be negative"

    if loan.original_tenure_months < 1:
        return False, "Tenure must be at least 1 month"

    if loan.installment < 0:
        return False, "Installment must not be negative"

    if loan.outstanding_balance < 0:
        return False, "Outstanding balance must not be negative"

    return True, ""


def validate_prepayment(
    amount: float,
    outstanding_balance: float,
    mode: str,
) -> Tuple[bool, str]:
    """Check a prepayment request"""
    if amount <= 0:
        return False, "Prepayment amount must be greater than 0"

    if amount > outstanding_balance:
        return False, "Prepayment amount must not exceed the outstanding balance"

    if mode not in [e.value for e in PrepaymentMode]:
        return False, f"Invalid prepayment mode: {mode}"

    return True, ""


def validate_new_installment(
    new_installment: float,
    minimum: float,
) -> Tuple[bool, str]:
    """Check a requested installment against the loan's minimum viable installment"""
    if new_installment <= 0:
        return False, "Installment must be greater than 0"

    if new_installment < minimum:
        return False, f"Installment must be at least {minimum:.2f} to reduce the balance"

    return True, ""


def validate_new_duration(new_remaining_periods: int) -> Tuple[bool, str]:
    """Check a requested remaining duration"""
    if new_remaining_periods < 1:
        return False, "Remaining duration must be at least 1 month"

    return True, ""
