"""
Dashboard period resolution and chart bucketing.
"""
import calendar
import re
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple, Union

from lapin_ops.config import PERIOD_MONTH, PERIOD_QUARTER, PERIOD_YEAR

Number = Union[int, float]

_MONTH_PATTERNS = (
    re.compile(r"^\d{4}[-/](\d{1,2})"),   # 2025-04, 2025/4, 2025-04-01
    re.compile(r"^(\d{1,2})月$"),          # 4月
    re.compile(r"^(\d{1,2})$"),            # 4
)


# =============================================================================
# DATE RANGES
# =============================================================================

def _month_range(year: int, first_month: int, last_month: int) -> Tuple[str, str]:
    last_day = calendar.monthrange(year, last_month)[1]
    start = date(year, first_month, 1)
    end = date(year, last_month, last_day)
    return start.isoformat(), end.isoformat()


def resolve_period(token: str, today: Optional[date] = None) -> Tuple[str, str]:
    """
    Inclusive (start, end) ISO dates for a period selector token.

    Args:
        token: 今月, 今四半期 or 今年. Anything else is treated as 今月.
        today: Reference date (defaults to the local date).
    """
    today = today or date.today()

    if token == PERIOD_QUARTER:
        q = (today.month - 1) // 3
        return _month_range(today.year, q * 3 + 1, q * 3 + 3)
    if token == PERIOD_YEAR:
        return _month_range(today.year, 1, 12)
    return _month_range(today.year, today.month, today.month)


# =============================================================================
# CHART BUCKETS
# =============================================================================

def _month_of(label) -> Optional[int]:
    if isinstance(label, int):
        return label if 1 <= label <= 12 else None
    text = str(label or "").strip()
    for pattern in _MONTH_PATTERNS:
        m = pattern.match(text)
        if m:
            month = int(m.group(1))
            return month if 1 <= month <= 12 else None
    return None


def monthly_series(rows: Iterable[Dict]) -> List[float]:
    """Twelve calendar-month slots (Jan..Dec) from ``[{month, amount}]`` rows; gaps are 0."""
    slots = [0.0] * 12
    for row in rows or []:
        month = _month_of(row.get("month"))
        if month is None:
            continue
        slots[month - 1] += float(row.get("amount") or 0)
    return slots


def bucket_quarterly(values: List[Number]) -> List[Number]:
    """Sum monthly values into four quarters by ``index // 3``."""
    buckets = [0] * 4
    for i, v in enumerate(values[:12]):
        buckets[i // 3] += v
    return buckets


def bucket_yearly(values: List[Number]) -> List[Number]:
    return [sum(values)]


def share_percentages(counts: List[Number]) -> List[float]:
    """Each slice as a percentage of the total; all zeros when the total is 0."""
    total = sum(counts)
    if total == 0:
        return [0.0 for _ in counts]
    return [c / total * 100 for c in counts]


def percent_change(current: Number, previous: Number) -> Optional[float]:
    """Relative change in percent; None when there is no previous value to compare."""
    if not previous:
        return None
    return (current - previous) / abs(previous) * 100


def month_over_month(monthly: List[Number], month: int) -> Optional[float]:
    """Change of ``month`` (1-12) against the month before it; None for January."""
    if month < 2 or month > len(monthly):
        return None
    return percent_change(monthly[month - 1], monthly[month - 2])
