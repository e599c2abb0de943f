"""
Followup badges and inspection labels.
"""
from typing import Any, Dict, List, Optional

from lapin_ops.config import INSPECTION_TYPE_LABELS, INSPECTION_STATUS_LABELS

BADGE_OVERDUE = "期限超過"
BADGE_CAUTION = "注意"
BADGE_OK = "余裕"

BADGE_COLORS = {
    BADGE_OVERDUE: "#ef4444",
    BADGE_CAUTION: "#f59e0b",
    BADGE_OK: "#06C755",
}

CAUTION_AFTER_DAYS = 3


def followup_badge(is_overdue: Optional[bool], days_since_estimate: Optional[int]) -> str:
    if is_overdue:
        return BADGE_OVERDUE
    if days_since_estimate is not None and days_since_estimate > CAUTION_AFTER_DAYS:
        return BADGE_CAUTION
    return BADGE_OK


def elapsed_label(is_overdue: Optional[bool], days_since_estimate: Optional[int]) -> str:
    if days_since_estimate is None:
        return ""
    return f"{days_since_estimate}日超過" if is_overdue else f"{days_since_estimate}日経過"


def overdue_count(followups: List[Dict[str, Any]], reported: Optional[int] = None) -> int:
    if reported is not None:
        return int(reported)
    return sum(1 for f in followups if f.get("is_overdue"))


def dismiss(followups: List[Dict[str, Any]], followup_id) -> List[Dict[str, Any]]:
    """Drop an item handled as done/skip. Local only."""
    return [f for f in followups if str(f.get("id")) != str(followup_id)]


def inspection_type_label(inspection_type: Optional[str]) -> str:
    return INSPECTION_TYPE_LABELS.get(inspection_type or "", inspection_type or "—")


def inspection_status_label(status: Optional[str]) -> str:
    return INSPECTION_STATUS_LABELS.get(status or "", status or "—")
