"""
Turn API envelopes into pandas DataFrames for the pages.
"""
import logging
import pandas as pd
from typing import Any, Dict, List, Optional, Sequence

from lapin_ops.api.envelope import ApiResult

logger = logging.getLogger(__name__)


# =============================================================================
# COLUMN SETS
# =============================================================================

PROJECT_COLUMNS = [
    "id", "project_number", "customer_name", "customer_name_kana", "postal_code",
    "address", "phone", "email", "work_description", "work_type",
    "estimated_amount", "contract_amount", "acquisition_route", "assigned_to",
    "assigned_to_name", "status", "inquiry_date", "contract_date",
    "planned_budget", "actual_budget", "actual_cost", "gross_profit",
    "gross_profit_rate", "lat", "lng", "created_at", "updated_at",
]
PROJECT_NUMERIC = [
    "estimated_amount", "contract_amount", "planned_budget", "actual_budget",
    "actual_cost", "gross_profit", "gross_profit_rate", "lat", "lng",
]

EXPENSE_COLUMNS = [
    "id", "expense_date", "category", "amount", "project_id", "project_number",
    "customer_name", "description", "user_name", "status", "notes",
    "accounting_imported",
]
EXPENSE_NUMERIC = ["amount"]

EMPLOYEE_COLUMNS = [
    "id", "name", "role", "email", "phone", "line_user_id", "is_deleted",
    "status", "join_date", "retired_date", "retired_reason",
]

BONUS_EMPLOYEE_COLUMNS = [
    "user_id", "name", "role", "contract_count", "contract_amount",
    "gross_profit", "fixed_cost", "surplus", "bonus_estimate",
    "target_amount", "achievement_rate", "achievement",
]
BONUS_NUMERIC = [
    "contract_count", "contract_amount", "gross_profit", "fixed_cost",
    "bonus_estimate", "target_amount", "achievement_rate",
]

COST_ITEM_COLUMNS = ["id", "project_id", "cost_date", "category", "vendor_name", "description", "amount", "created_at"]
MEETING_COLUMNS = [
    "id", "project_id", "meeting_date", "meeting_type", "attendees",
    "content", "next_action", "user_name", "created_at",
]


# =============================================================================
# HELPERS
# =============================================================================

def extract_list(result: ApiResult, key: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Pull a list of records out of a result.

    The list may be the payload itself or sit under ``key``. A failed result
    yields an empty list; the caller is expected to render the error.
    """
    if not result.success or result.data is None:
        return []
    data = result.data
    if key is not None and isinstance(data, dict):
        data = data.get(key)
    if not isinstance(data, list):
        return []
    return [row for row in data if isinstance(row, dict)]


def records_to_frame(records: Sequence[Dict[str, Any]],
                     columns: Optional[Sequence[str]] = None,
                     numeric: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """
    Build a DataFrame with a stable column set.

    Missing columns are added as empty; numeric columns are coerced with
    unparseable values set to 0.
    """
    df = pd.DataFrame(list(records))
    if columns:
        for col in columns:
            if col not in df.columns:
                df[col] = None
        extras = [c for c in df.columns if c not in columns]
        df = df[list(columns) + extras]
    for col in numeric or []:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0)
    return df


def load_projects(result: ApiResult) -> pd.DataFrame:
    df = records_to_frame(extract_list(result, "projects"), PROJECT_COLUMNS, [c for c in PROJECT_NUMERIC if c not in ("lat", "lng")])
    for col in ("lat", "lng"):
        df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def load_expenses(result: ApiResult) -> pd.DataFrame:
    """Expenses with a unified ``expense_date`` (older rows send ``date``)."""
    rows = extract_list(result, "expenses")
    for row in rows:
        if not row.get("expense_date") and row.get("date"):
            row["expense_date"] = row["date"]
        if not row.get("description") and row.get("memo"):
            row["description"] = row["memo"]
    df = records_to_frame(rows, EXPENSE_COLUMNS, EXPENSE_NUMERIC)
    df["accounting_imported"] = df["accounting_imported"].map(truthy)
    return df


def employees_frame(rows: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    """Employee rows with ``is_deleted`` as a real bool (missing counts as active)."""
    df = records_to_frame(rows, EMPLOYEE_COLUMNS)
    df["is_deleted"] = df["is_deleted"].map(truthy).astype(bool)
    return df


def load_employees(result: ApiResult) -> pd.DataFrame:
    return employees_frame(extract_list(result, "employees"))


def load_bonus_employees(result: ApiResult) -> pd.DataFrame:
    """Surplus stays NaN when the server omits it so the client can derive it."""
    df = records_to_frame(extract_list(result, "employees"), BONUS_EMPLOYEE_COLUMNS, BONUS_NUMERIC)
    df["surplus"] = pd.to_numeric(df["surplus"], errors="coerce")
    return df


def load_cost_items(result: ApiResult) -> pd.DataFrame:
    return records_to_frame(extract_list(result, "cost_items"), COST_ITEM_COLUMNS, ["amount"])


def load_meetings(result: ApiResult) -> pd.DataFrame:
    return records_to_frame(extract_list(result, "meetings"), MEETING_COLUMNS)


def truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    if value is None:
        return False
    try:
        if pd.isna(value):
            return False
    except (TypeError, ValueError):
        pass
    return bool(value)
