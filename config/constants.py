from enum import Enum


class InterestType(str, Enum):
    FLAT = "flat"  # interest on the original principal for the full tenure
    REDUCING = "reducing"  # interest on the remaining principal each month

    @property
    def label(self) -> str:
        return {
            "flat": "Flat",
            "reducing": "Reducing balance",
        }[self.value]


class LoanStatus(str, Enum):
    ACTIVE = "Active"
    CLOSED = "Closed"


class LoanType(str, Enum):
    TAKEN = "taken"  # the user is the borrower
    GIVEN = "given"  # the user lent the money

    @property
    def label(self) -> str:
        return {
            "taken": "Borrowed",
            "given": "Lent",
        }[self.value]


class PrepaymentMode(str, Enum):
    REDUCE_DURATION = "reduce_duration"  # installment fixed, fewer months
    REDUCE_INSTALLMENT = "reduce_installment"  # months fixed, smaller installment

    @property
    def label(self) -> str:
        return {
            "reduce_duration": "Reduce duration",
            "reduce_installment": "Reduce installment",
        }[self.value]


class TipKind(str, Enum):
    HIGH_INTEREST = "high-interest"
    PREPAY = "prepay"
    EXTRA_INSTALLMENT = "extra-installment"
    INCREASE_INSTALLMENT = "increase-installment"


class TipPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]


class ProgressEstimate(str, Enum):
    SETTLED = "settled"  # closed or nothing outstanding
    LINEAR = "linear"  # flat interest, principal repaid linearly
    ANNUITY = "annuity"  # exact inversion of the annuity formula
    UNAMORTIZED = "unamortized"  # zero rate or zero installment on a reducing loan
    INFEASIBLE = "infeasible"  # installment never covers the interest
    HEURISTIC = "heuristic"  # linear estimate scaled by REDUCING_FALLBACK_FACTOR


# Minimum installment: pure interest plus a 10% margin so principal always falls
MINIMUM_INSTALLMENT_BUFFER = 1.1

# Empirical correction applied to the linear estimate when the annuity inversion fails.
# Its derivation is unknown; results using it carry ProgressEstimate.HEURISTIC.
REDUCING_FALLBACK_FACTOR = 0.85

# Float noise tolerated before rounding a period count up.
PERIOD_EPSILON = 1e-9

# Advisory thresholds
HIGH_INTEREST_RATE_PCT = 15.0
LONG_TENURE_PERIODS = 24
INTEREST_HEAVY_RATIO = 0.5
PREPAY_TIP_INSTALLMENTS = 3
PREPAY_TIP_MIN_REMAINING = 6
EXTRA_INSTALLMENT_MIN_REMAINING = 12
INCREASE_TIP_FACTOR = 1.2
INCREASE_TIP_MAX_INSTALLMENT_SHARE = 0.1
LOW_IMPACT_PREPAYMENT_SHARE = 0.05

# Workbook sheets
SHEET_LOANS = "loans"
SHEET_PREPAYMENTS = "prepayments"
SHEET_CONFIG = "config"

# Sheet columns
LOANS_COLUMNS = [
    "loan_id", "name", "loan_type", "principal", "interest_rate_pct",
    "interest_type", "original_tenure_months", "installment",
    "outstanding_balance", "start_date", "status", "notes",
]

PREPAYMENTS_COLUMNS = [
    "prepayment_id", "loan_id", "recorded_at", "amount", "mode",
    "outstanding_before", "outstanding_after",
    "old_remaining_periods", "new_remaining_periods",
    "old_installment", "new_installment", "interest_saved",
]

CONFIG_COLUMNS = ["key", "value", "description", "updated_at"]
