"""
Consistent number and display formatting.
"""
import pandas as pd
from typing import Union, Optional

Number = Union[float, int, None]


def _missing(value: Number) -> bool:
    return value is None or pd.isna(value)


# =============================================================================
# NUMBER FORMATTERS
# =============================================================================

def fmt_yen(value: Number) -> str:
    """Format yen: 1,234円"""
    if _missing(value):
        return "—"
    return f"{value:,.0f}円"


def fmt_man_yen(value: Number) -> str:
    """Dashboard style: 12万円 at 10,000 and above, plain yen below."""
    if _missing(value):
        return "—"
    if value >= 10000:
        return f"{int(value // 10000):,}万円"
    return f"{value:,.0f}円"


def fmt_man_yen_signed(value: Number) -> str:
    """Bonus style: ¥12.5万, -¥3,000, ¥0万 for zero."""
    if _missing(value):
        return "—"
    if value == 0:
        return "¥0万"
    sign = "-" if value < 0 else ""
    magnitude = abs(value)
    if magnitude >= 10000:
        man = round(magnitude / 10000, 1)
        text = f"¥{man:,.1f}"
        if text.endswith(".0"):
            text = text[:-2]
        text += "万"
    else:
        text = f"¥{magnitude:,.0f}"
    return f"{sign}{text}"


def fmt_amount_short(value: Number) -> str:
    """List style: 120万 or 9,800."""
    if _missing(value):
        return "—"
    if value >= 10000:
        return f"{int(value // 10000)}万"
    return f"{value:,.0f}"


def fmt_percent(value: Number, decimals: int = 1) -> str:
    """Format percentage: 12.3%"""
    if _missing(value):
        return "—"
    return f"{value:,.{decimals}f}%"


def fmt_count(value: Number, unit: str = "件") -> str:
    if _missing(value):
        return "—"
    return f"{int(value):,}{unit}"


def fmt_delta(value: Optional[float]) -> Optional[str]:
    """Signed percentage delta for ``st.metric``; None hides the delta."""
    if _missing(value):
        return None
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.1f}%"


def fmt_date(value) -> str:
    """First ten characters of an ISO timestamp, or —."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return "—"
    text = str(value)
    return text[:10] if text else "—"
