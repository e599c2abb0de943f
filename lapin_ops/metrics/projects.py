"""
Project list filtering, pagination, new-project validation and cost totals.
"""
import math
import pandas as pd
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from lapin_ops.config import PROJECT_PAGE_SIZE, STATUS_LABELS


class ValidationError(ValueError):
    """Client-side form validation failure. ``fields`` names the offending inputs."""

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.fields = fields or []


# =============================================================================
# WORK TYPES
# =============================================================================

def parse_work_types(value: Any) -> List[str]:
    """Work type may arrive as a list or a comma-joined string."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    if isinstance(value, float) and math.isnan(value):
        return []
    return [part.strip() for part in str(value).split(",") if part.strip()]


def status_label(status: Optional[str]) -> str:
    return STATUS_LABELS.get(status or "", status or "—")


# =============================================================================
# FILTER
# =============================================================================

@dataclass
class ProjectFilter:
    """Search box and chip selections of the project list."""
    project_number: str = ""
    customer_name: str = ""
    assigned_name: str = ""
    year: str = ""
    month: str = ""
    statuses: Set[str] = field(default_factory=set)
    work_types: Set[str] = field(default_factory=set)

    def toggle_status(self, status: str):
        self.statuses.symmetric_difference_update({status})

    def toggle_work_type(self, work_type: str):
        self.work_types.symmetric_difference_update({work_type})

    def reset_search(self):
        self.project_number = self.customer_name = self.assigned_name = ""
        self.year = self.month = ""

    def clear_chips(self):
        self.statuses = set()
        self.work_types = set()


def _contains(series: pd.Series, needle: str) -> pd.Series:
    return series.fillna("").astype(str).str.contains(needle, regex=False)


def filter_projects(df: pd.DataFrame, flt: ProjectFilter) -> pd.DataFrame:
    """
    Apply every active criterion (logical AND).

    Text criteria are substring matches; year/month compare against the
    ``inquiry_date`` parts; work types match when any selected type is a
    substring of any of the project's types.
    """
    if len(df) == 0:
        return df

    mask = pd.Series(True, index=df.index)
    if flt.project_number:
        mask &= _contains(df["project_number"], flt.project_number)
    if flt.customer_name:
        mask &= _contains(df["customer_name"], flt.customer_name)
    if flt.assigned_name:
        mask &= _contains(df["assigned_to_name"], flt.assigned_name)

    if flt.year or flt.month:
        parts = df["inquiry_date"].fillna("").astype(str).str.split("-")
        if flt.year:
            mask &= parts.str[0] == str(flt.year)
        if flt.month:
            mask &= parts.str[1] == str(flt.month).zfill(2)

    if flt.statuses:
        mask &= df["status"].isin(flt.statuses)

    if flt.work_types:
        wanted = list(flt.work_types)
        mask &= df["work_type"].map(
            lambda v: any(w in t for w in wanted for t in parse_work_types(v))
        )

    return df[mask]


# =============================================================================
# PAGINATION
# =============================================================================

def total_pages(n_rows: int, page_size: int = PROJECT_PAGE_SIZE) -> int:
    return max(1, math.ceil(n_rows / page_size))


def paginate(df: pd.DataFrame, page: int, page_size: int = PROJECT_PAGE_SIZE) -> pd.DataFrame:
    """Rows for a 1-based page; out-of-range pages clamp to the nearest valid one."""
    page = min(max(1, page), total_pages(len(df), page_size))
    start = (page - 1) * page_size
    return df.iloc[start:start + page_size]


# =============================================================================
# NEW PROJECT
# =============================================================================

REQUIRED_PROJECT_FIELDS = {
    "customer_name": "顧客名",
    "address": "住所",
    "phone": "電話番号",
    "work_type": "工事種別",
    "estimated_amount": "見込み金額",
    "acquisition_route": "取得経路",
    "inquiry_date": "問い合わせ日",
}


def validate_new_project(form: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check required fields and build the ``createProject`` payload.

    Raises:
        ValidationError: when any required field is blank.
    """
    missing = [k for k in REQUIRED_PROJECT_FIELDS if not str(form.get(k) or "").strip()]
    if missing:
        raise ValidationError("必須項目をすべて入力してください", missing)

    payload = {k: v for k, v in form.items() if v is not None}
    if isinstance(payload.get("work_type"), (list, tuple)):
        payload["work_type"] = ",".join(payload["work_type"])
    if not str(payload.get("work_description") or "").strip():
        payload["work_description"] = payload["work_type"]
    try:
        payload["estimated_amount"] = float(payload["estimated_amount"])
    except (TypeError, ValueError):
        payload["estimated_amount"] = 0
    return payload


# =============================================================================
# COST TAB
# =============================================================================

def cost_summary(contract_amount: Optional[float], cost_items: pd.DataFrame,
                 reported_total: Optional[float] = None) -> Dict[str, float]:
    """
    Total cost, gross profit and rate for the cost tab.

    Rate is ``gross_profit / contract_amount × 100`` and 0 without a contract amount.
    """
    if reported_total is not None:
        total_cost = float(reported_total)
    else:
        total_cost = float(cost_items["amount"].sum()) if len(cost_items) else 0.0
    contract = float(contract_amount or 0)
    gross_profit = contract - total_cost
    rate = gross_profit / contract * 100 if contract > 0 else 0.0
    return {
        "total_cost": total_cost,
        "gross_profit": gross_profit,
        "gross_profit_rate": rate,
    }
