from datetime import date, datetime
from typing import Union

from dateutil.relativedelta import relativedelta


def add_months(d: date, months: int) -> date:
    """Add N calendar months, clamping the day to the target month's length."""
    return d + relativedelta(months=months)


def parse_date(value: Union[str, date, datetime]) -> date:
    """Accept an ISO string, a date or a datetime (including pandas Timestamps)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value).strip()[:10], "%Y-%m-%d").date()
