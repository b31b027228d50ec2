import sys
from datetime import date
from pathlib import Path

import pytest

# Make the project root importable
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from config.constants import InterestType  # noqa: E402
from core.amortization import compute_installment  # noqa: E402
from data_manager.schema import LoanSnapshot  # noqa: E402


def make_loan(principal, rate, tenure, interest_type=InterestType.REDUCING, outstanding=None, **kwargs):
    """Snapshot with an exact installment; fresh (nothing repaid) unless outstanding is given."""
    if "installment" not in kwargs:
        kwargs["installment"] = compute_installment(principal, rate, tenure, interest_type)
    kwargs.setdefault("start_date", date(2024, 1, 15))
    return LoanSnapshot(
        principal=principal,
        interest_rate_pct=rate,
        interest_type=interest_type,
        original_tenure_months=tenure,
        outstanding_balance=principal if outstanding is None else outstanding,
        **kwargs,
    )


@pytest.fixture
def home_loan():
    """1,000,000 at 12% over 20 years, nothing repaid yet"""
    return make_loan(1_000_000, 12.0, 240, loan_id="LN-home", name="Home")


@pytest.fixture
def car_loan():
    """500,000 at 9% over 10 years, nothing repaid yet"""
    return make_loan(500_000, 9.0, 120, loan_id="LN-car", name="Car")


@pytest.fixture
def flat_loan():
    """120,000 flat 12% over a year, half the principal repaid"""
    return make_loan(120_000, 12.0, 12, InterestType.FLAT, outstanding=60_000,
                     loan_id="LN-flat", name="Gadget")


@pytest.fixture
def loan_factory():
    return make_loan
