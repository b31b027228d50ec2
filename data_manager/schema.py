from dataclasses import asdict, dataclass
from datetime import date
from enum import Enum
from typing import Dict, Union

from config.constants import (
    InterestType, LoanStatus, LoanType, PrepaymentMode, ProgressEstimate,
    TipKind, TipPriority,
)


def _plain(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value


class _Record:
    """Shared serialisation for the result records."""

    def to_dict(self) -> Dict:
        return {k: _plain(v) for k, v in asdict(self).items()}


@dataclass(frozen=True)
class LoanSnapshot(_Record):
    principal: float
    interest_rate_pct: float  # annual
    interest_type: InterestType
    original_tenure_months: int
    installment: float
    outstanding_balance: float
    start_date: date
    status: LoanStatus = LoanStatus.ACTIVE
    loan_type: LoanType = LoanType.TAKEN
    loan_id: str = ""
    name: str = ""
    notes: str = ""

    def __post_init__(self):
        # Accept raw values ("reducing", "Closed") from storage rows and CLI input
        object.__setattr__(self, "interest_type", InterestType(self.interest_type))
        object.__setattr__(self, "status", LoanStatus(self.status))
        object.__setattr__(self, "loan_type", LoanType(self.loan_type))

    @property
    def is_active(self) -> bool:
        return self.status is LoanStatus.ACTIVE


@dataclass(frozen=True)
class ProgressResult(_Record):
    """Inferred repayment state. Every figure is an estimate from one balance snapshot."""
    periods_elapsed: int
    periods_remaining: int
    progress_percentage: float
    remaining_principal: float
    interest_paid_approx: float
    interest_remaining_approx: float
    estimate: ProgressEstimate

    @property
    def is_heuristic(self) -> bool:
        return self.estimate is ProgressEstimate.HEURISTIC


@dataclass(frozen=True)
class InstallmentChange:
    new_installment: float


@dataclass(frozen=True)
class DurationChange:
    new_remaining_periods: int


LoanChange = Union[InstallmentChange, DurationChange]


@dataclass(frozen=True)
class ImpactResult(_Record):
    new_installment: float
    new_remaining_periods: int
    interest_saved: float
    interest_increased: float
    new_end_date: date
    periods_saved: int
    periods_added: int
    total_payable_before: float
    total_payable_after: float
    achievable: bool = True


@dataclass(frozen=True)
class PrepaymentResult(_Record):
    amount: float
    mode: PrepaymentMode
    new_installment: float
    new_remaining_periods: int
    interest_saved: float
    periods_saved: int
    new_end_date: date
    total_payable_before: float
    total_payable_after: float
    closes_loan: bool = False
    low_impact: bool = False


@dataclass(frozen=True)
class Tip(_Record):
    kind: TipKind
    title: str
    detail: str
    impact_text: str
    priority: TipPriority
