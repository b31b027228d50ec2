"""Portfolio summary and side-by-side loan comparison"""
from typing import Dict, List

import pandas as pd

from config.constants import LoanType
from config.settings import AMOUNT_PRECISION
from core.advisory import is_high_interest, is_interest_heavy
from core.progress import reconstruct_progress
from data_manager.schema import LoanSnapshot


def _active_borrowed(loans: List[LoanSnapshot]) -> List[LoanSnapshot]:
    return [loan for loan in loans if loan.is_active and loan.loan_type is LoanType.TAKEN]


def summarize_loans(loans: List[LoanSnapshot]) -> Dict:
    """
    Totals over active borrowed loans: installment burden, outstanding balance,
    installments left and interest still to pay.
    """
    active = _active_borrowed(loans)
    progress = [reconstruct_progress(loan) for loan in active]
    return {
        "active_loans": len(active),
        "total_installment": round(sum(loan.installment for loan in active), AMOUNT_PRECISION),
        "total_outstanding": round(sum(loan.outstanding_balance for loan in active), AMOUNT_PRECISION),
        "total_remaining_periods": sum(p.periods_remaining for p in progress),
        "total_interest_remaining": round(
            sum(p.interest_remaining_approx for p in progress), AMOUNT_PRECISION),
    }


def compare_loans(loans: List[LoanSnapshot]) -> pd.DataFrame:
    """One row per loan with its headline figures, highest rate first."""
    rows = []
    for loan in loans:
        progress = reconstruct_progress(loan)
        rows.append({
            "loan_id": loan.loan_id,
            "name": loan.name,
            "loan_type": loan.loan_type.value,
            "status": loan.status.value,
            "interest_rate_pct": loan.interest_rate_pct,
            "interest_type": loan.interest_type.value,
            "installment": round(loan.installment, AMOUNT_PRECISION),
            "outstanding_balance": round(loan.outstanding_balance, AMOUNT_PRECISION),
            "periods_remaining": progress.periods_remaining,
            "progress_pct": round(progress.progress_percentage, 1),
            "interest_remaining": round(progress.interest_remaining_approx, AMOUNT_PRECISION),
            "high_interest": is_high_interest(loan),
            "interest_heavy": is_interest_heavy(loan),
        })

    df = pd.DataFrame(rows)
    if df.empty:
        return df
    return df.sort_values("interest_rate_pct", ascending=False, kind="stable").reset_index(drop=True)
