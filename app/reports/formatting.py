import datetime
import decimal
from typing import Any, Optional, Union

Number = Union[int, float, decimal.Decimal]

NOT_AVAILABLE = "N/A"


def format_percentage(score: Optional[Number], max_score: Optional[Number]) -> str:
    """score / max_score * 100 with one decimal, e.g. ``"66.7%"``."""
    if score is None or not max_score:
        return NOT_AVAILABLE
    return f"{float(score) / float(max_score) * 100:.1f}%"


def group_indian(digits: str) -> str:
    """Indian digit grouping: last three digits, then pairs (12,34,567)."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_inr(amount: Any, symbol: str = "₹") -> str:
    """Format an amount the way en-IN currency formatting does, e.g. ``₹12,34,567.50``.

    PDF output passes ``symbol="Rs. "`` because the built-in fonts lack the rupee glyph.
    """
    if amount is None or amount == "":
        return NOT_AVAILABLE
    try:
        value = decimal.Decimal(str(amount)).quantize(decimal.Decimal("0.01"), rounding=decimal.ROUND_HALF_UP)
    except decimal.InvalidOperation:
        return str(amount)
    sign = "-" if value < 0 else ""
    whole, fraction = f"{abs(value):.2f}".split(".")
    return f"{sign}{symbol}{group_indian(whole)}.{fraction}"


def parse_date(value: Any) -> Optional[datetime.date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        return datetime.date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def format_date(value: Any, default: str = NOT_AVAILABLE) -> str:
    """``dd/mm/YYYY`` as en-IN renders dates."""
    parsed = parse_date(value)
    return parsed.strftime("%d/%m/%Y") if parsed else default


def display(value: Any, default: str = NOT_AVAILABLE) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    return str(value)
