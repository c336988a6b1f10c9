"""Helper utilities."""

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, List, Optional


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_text(text: Optional[str]) -> str:
    """Normalize text for comparison."""
    if not text:
        return ""
    return " ".join(str(text).lower().split())


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def round_decimal(value: float, places: int = 2) -> float:
    """Round half up to a fixed number of decimal places (4.125 -> 4.13)."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def clean_list(values: Optional[Iterable[Any]]) -> List[str]:
    """Drop empty entries and normalize the rest."""
    if not values:
        return []
    return [normalize_text(v) for v in values if v and normalize_text(v)]


def overlaps(a: str, b: str) -> bool:
    """Case-insensitive substring match in either direction."""
    a, b = normalize_text(a), normalize_text(b)
    if not a or not b:
        return False
    return a in b or b in a


def calculate_age(date_of_birth: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Age in whole years on `today`."""
    if date_of_birth is None:
        return None
    if isinstance(date_of_birth, datetime):
        date_of_birth = date_of_birth.date()
    today = today or utcnow().date()
    had_birthday = (today.month, today.day) >= (date_of_birth.month, date_of_birth.day)
    return today.year - date_of_birth.year - (0 if had_birthday else 1)
