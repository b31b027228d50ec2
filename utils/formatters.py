from config.settings import AMOUNT_PRECISION, DEFAULT_CURRENCY_SYMBOL, RATE_PRECISION


def fmt_amount(value: float, symbol: str = DEFAULT_CURRENCY_SYMBOL) -> str:
    """Format money: 1234567.891 -> ₹1,234,567.89"""
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.{AMOUNT_PRECISION}f}"


def fmt_rate(value: float) -> str:
    """Format an annual rate: 10.5 -> 10.50%"""
    return f"{value:.{RATE_PRECISION}f}%"


def fmt_percent(value: float) -> str:
    """Format a percentage already on the 0-100 scale: 41.666 -> 41.7%"""
    return f"{value:.1f}%"


def fmt_months(months: int) -> str:
    """Format a month count: 1 -> 1 month, 26 -> 2 years 2 months"""
    years, remain = divmod(int(months), 12)
    parts = []
    if years:
        parts.append(f"{years} year{'s' if years > 1 else ''}")
    if remain or not years:
        parts.append(f"{remain} month{'s' if remain != 1 else ''}")
    return " ".join(parts)


def plural_months(count: int) -> str:
    return f"{count} month{'s' if count > 1 else ''}"
