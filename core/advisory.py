"""Early-closure tips and loan classification"""
import math
from typing import List, Optional

from config.constants import (
    EXTRA_INSTALLMENT_MIN_REMAINING, HIGH_INTEREST_RATE_PCT, INCREASE_TIP_FACTOR,
    INCREASE_TIP_MAX_INSTALLMENT_SHARE, INTEREST_HEAVY_RATIO, LONG_TENURE_PERIODS,
    LoanType, PREPAY_TIP_INSTALLMENTS, PREPAY_TIP_MIN_REMAINING, TipKind, TipPriority,
)
from config.settings import DEFAULT_CURRENCY_SYMBOL
from core.amortization import ceil_periods
from core.progress import reconstruct_progress
from data_manager.schema import LoanSnapshot, ProgressResult, Tip
from utils.formatters import fmt_amount, fmt_rate


def is_high_interest(loan: LoanSnapshot) -> bool:
    return loan.interest_rate_pct > HIGH_INTEREST_RATE_PCT


def is_long_tenure(loan: LoanSnapshot) -> bool:
    """More than two years of installments left."""
    return reconstruct_progress(loan).periods_remaining > LONG_TENURE_PERIODS


def is_interest_heavy(loan: LoanSnapshot) -> bool:
    """Total interest over the loan exceeds half of the principal."""
    if loan.principal <= 0:
        return False
    interest = loan.installment * loan.original_tenure_months - loan.principal
    return interest / loan.principal > INTEREST_HEAVY_RATIO


def loan_badges(loan: LoanSnapshot) -> List[str]:
    badges = []
    if is_high_interest(loan):
        badges.append("High Interest")
    if is_long_tenure(loan):
        badges.append("Long Tenure")
    if is_interest_heavy(loan):
        badges.append("Interest Heavy")
    return badges


def _high_interest_tip(loan, progress, symbol) -> Optional[Tip]:
    if not is_high_interest(loan):
        return None
    return Tip(
        kind=TipKind.HIGH_INTEREST,
        title="High Interest Loan",
        detail=f"This loan charges {fmt_rate(loan.interest_rate_pct)} interest. Consider prioritising its closure.",
        impact_text=f"You will pay {fmt_amount(progress.interest_remaining_approx, symbol)} in remaining interest.",
        priority=TipPriority.HIGH,
    )


def _prepay_tip(loan, progress, symbol) -> Optional[Tip]:
    if progress.periods_remaining <= PREPAY_TIP_MIN_REMAINING or loan.installment <= 0:
        return None
    prepay_amount = loan.installment * PREPAY_TIP_INSTALLMENTS
    if loan.outstanding_balance <= prepay_amount:
        return None
    periods_saved = math.floor(prepay_amount / loan.installment)
    if periods_saved <= 0:
        return None
    return Tip(
        kind=TipKind.PREPAY,
        title="Prepay to Cut Installments",
        detail=f"Prepay {fmt_amount(prepay_amount, symbol)} now",
        impact_text=f"Could remove {periods_saved} installments and save interest",
        priority=TipPriority.MEDIUM,
    )


def _extra_installment_tip(loan, progress, symbol) -> Optional[Tip]:
    if progress.periods_remaining <= EXTRA_INSTALLMENT_MIN_REMAINING:
        return None
    # One extra installment a year: 13 payments for every 12 months
    periods_saved = progress.periods_remaining // 13
    if periods_saved <= 0:
        return None
    return Tip(
        kind=TipKind.EXTRA_INSTALLMENT,
        title="Pay One Extra Installment a Year",
        detail="Pay one additional installment every year",
        impact_text=f"Loan closes {periods_saved} months earlier",
        priority=TipPriority.MEDIUM,
    )


def _increase_installment_tip(loan, progress, symbol) -> Optional[Tip]:
    """
    Quick estimate only: new duration = balance / (raised installment - this month's
    interest). It ignores that the interest share falls over time, so it understates
    the months saved compared to the full annuity inversion.
    """
    if progress.periods_remaining <= PREPAY_TIP_MIN_REMAINING:
        return None
    if loan.installment >= loan.outstanding_balance * INCREASE_TIP_MAX_INSTALLMENT_SHARE:
        return None
    raised = loan.installment * INCREASE_TIP_FACTOR
    principal_part = raised - loan.outstanding_balance * loan.interest_rate_pct / 1200
    if not principal_part > 0:
        return None
    periods_saved = progress.periods_remaining - ceil_periods(loan.outstanding_balance / principal_part)
    if periods_saved <= 0:
        return None
    return Tip(
        kind=TipKind.INCREASE_INSTALLMENT,
        title="Increase Your Installment",
        detail=f"Increase the installment by {fmt_amount(raised - loan.installment, symbol)}",
        impact_text=f"Save {periods_saved} months and reduce interest",
        priority=TipPriority.LOW,
    )


TIP_RULES = (
    _high_interest_tip,
    _prepay_tip,
    _extra_installment_tip,
    _increase_installment_tip,
)


def generate_tips(loan: LoanSnapshot, currency_symbol: str = DEFAULT_CURRENCY_SYMBOL) -> List[Tip]:
    """Tips for an active borrowed loan, highest priority first (stable within a priority)."""
    if not loan.is_active or loan.loan_type is not LoanType.TAKEN:
        return []

    progress: ProgressResult = reconstruct_progress(loan)
    tips = []
    for rule in TIP_RULES:
        tip = rule(loan, progress, currency_symbol)
        if tip is not None:
            tips.append(tip)
    return sorted(tips, key=lambda t: t.priority.rank, reverse=True)
