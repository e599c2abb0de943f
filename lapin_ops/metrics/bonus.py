"""
Bonus / profit-sharing presentation helpers.

Amounts and the achievement tier come from the backend. The client only
derives bar positions for display and never re-derives the tier.
"""
import numpy as np
import pandas as pd
from typing import Dict, Optional, Union

from lapin_ops.config import ACHIEVEMENT_COLORS

Number = Union[int, float]

NEUTRAL_COLOR = "#9ca3af"

ACHIEVEMENT_LABELS = {
    "achieved": "達成",
    "barely": "あと少し",
    "not_achieved": "未達",
}


def _clamp_pct(value: float) -> float:
    return max(0.0, min(100.0, value))


def achievement_rate(gross_profit: Number, target_amount: Number) -> Optional[float]:
    """
    Progress toward target in percent, clamped to [0, 100].

    Returns None when there is no positive target; callers render "—".
    """
    if not target_amount or target_amount <= 0:
        return None
    return _clamp_pct(gross_profit / target_amount * 100)


def breakeven_position(fixed_cost: Number, target_amount: Number) -> Optional[float]:
    """Where the fixed-cost marker sits on the progress bar; None hides the marker."""
    if not target_amount or target_amount <= 0:
        return None
    return _clamp_pct(fixed_cost / target_amount * 100)


def surplus(gross_profit: Number, fixed_cost: Number, reported: Optional[Number] = None) -> Number:
    """Gross profit above fixed cost. A server-reported value wins."""
    if reported is not None:
        return reported
    return gross_profit - fixed_cost


def achievement_color(achievement: Optional[str]) -> str:
    return ACHIEVEMENT_COLORS.get(achievement or "", NEUTRAL_COLOR)


def achievement_label(achievement: Optional[str]) -> str:
    return ACHIEVEMENT_LABELS.get(achievement or "", "—")


def bonus_table(employees: pd.DataFrame) -> pd.DataFrame:
    """
    Per-employee table with display columns added.

    Adds ``progress_pct`` (NaN where there is no target), ``color`` and
    ``achievement_label``; sorted by gross profit, highest first.
    """
    if len(employees) == 0:
        return employees.assign(progress_pct=[], color=[], achievement_label=[])

    df = employees.copy()
    target = df["target_amount"].astype(float)
    df["progress_pct"] = np.where(
        target > 0,
        np.clip(df["gross_profit"].astype(float) / target.where(target > 0) * 100, 0, 100),
        np.nan,
    )
    df["color"] = df["achievement"].map(achievement_color)
    df["achievement_label"] = df["achievement"].map(achievement_label)
    return df.sort_values("gross_profit", ascending=False).reset_index(drop=True)


def summary_from_payload(summary: Optional[Dict], employees: pd.DataFrame) -> Dict[str, Number]:
    """Summary KPIs; falls back to column totals when the server omits them."""
    summary = summary or {}
    return {
        "total_employees": summary.get("total_employees", len(employees)),
        "total_contract_count": summary.get(
            "total_contract_count",
            int(employees["contract_count"].sum()) if len(employees) else 0,
        ),
        "total_gross_profit": summary.get(
            "total_gross_profit",
            float(employees["gross_profit"].sum()) if len(employees) else 0,
        ),
        "total_bonus": summary.get(
            "total_bonus",
            float(employees["bonus_estimate"].sum()) if len(employees) else 0,
        ),
    }
