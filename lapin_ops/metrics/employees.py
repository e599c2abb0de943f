"""
Employee administration: soft retirement, reinstatement and pickers.

Retirement never deletes a row. A retired employee keeps their history and
is only hidden from assignment pickers.
"""
import pandas as pd
from datetime import date
from typing import Any, Dict, List, Optional, Union

from lapin_ops.data.loader import truthy
from lapin_ops.metrics.projects import ValidationError

FILTER_ALL = "all"
FILTER_ACTIVE = "active"
FILTER_RETIRED = "retired"
FILTER_LABELS = {FILTER_ALL: "全員", FILTER_ACTIVE: "在籍", FILTER_RETIRED: "退職"}


def is_retired(employee: Union[Dict[str, Any], pd.Series]) -> bool:
    """Retired when flagged ``is_deleted`` or carrying the legacy ``status='retired'``."""
    return truthy(employee.get("is_deleted")) or employee.get("status") == "retired"


def retired_mask(df: pd.DataFrame) -> pd.Series:
    if len(df) == 0:
        return pd.Series([], dtype=bool)
    return df.apply(is_retired, axis=1).astype(bool)


def filter_employees(df: pd.DataFrame, mode: str = FILTER_ALL) -> pd.DataFrame:
    if len(df) == 0 or mode == FILTER_ALL:
        return df
    mask = retired_mask(df)
    if mode == FILTER_ACTIVE:
        return df[~mask]
    if mode == FILTER_RETIRED:
        return df[mask]
    raise ValueError(f"Unknown employee filter: {mode}")


def active_assignable(df: pd.DataFrame) -> pd.DataFrame:
    """Employees that may be picked as assignee."""
    return filter_employees(df, FILTER_ACTIVE)


def picker_options(df: pd.DataFrame) -> Dict[str, str]:
    """``{id: name}`` for the assignee select box."""
    active = active_assignable(df)
    return {str(row["id"]): str(row["name"]) for _, row in active.iterrows()}


# =============================================================================
# RETIRE / REINSTATE
# =============================================================================

def retirement_payload(employee_id: str,
                       retired: bool,
                       retired_date: Optional[Union[date, str]] = None,
                       reason: str = "") -> Dict[str, Any]:
    """
    Build the ``updateEmployee`` body for a retire or reinstate action.

    Raises:
        ValidationError: retiring without a retirement date.
    """
    if not retired:
        return {"employee_id": employee_id, "is_deleted": False, "retired_date": "", "retired_reason": ""}
    if not retired_date:
        raise ValidationError("退職日を入力してください", ["retired_date"])
    if isinstance(retired_date, date):
        retired_date = retired_date.isoformat()
    return {
        "employee_id": employee_id,
        "is_deleted": True,
        "retired_date": retired_date,
        "retired_reason": reason or "",
    }


RETIREMENT_FIELDS = ("is_deleted", "retired_date", "retired_reason", "status")
_PRIOR = "_before_retirement"


def _retire(emp: Dict[str, Any], retired_date: str, reason: str) -> Dict[str, Any]:
    if _PRIOR not in emp:
        emp[_PRIOR] = {key: emp[key] for key in RETIREMENT_FIELDS if key in emp}
    emp["is_deleted"] = True
    emp["retired_date"] = retired_date
    emp["retired_reason"] = reason
    return emp


def _reinstate(emp: Dict[str, Any]) -> Dict[str, Any]:
    prior = emp.pop(_PRIOR, None)
    if prior is not None:
        for key in RETIREMENT_FIELDS:
            emp.pop(key, None)
        emp.update(prior)
    if is_retired(emp):
        # retired before this session: clear the server-side flags
        emp["is_deleted"] = False
        emp["retired_date"] = ""
        emp["retired_reason"] = ""
        if emp.get("status") == "retired":
            emp["status"] = "active"
    return emp


def apply_retirement(employees: List[Dict[str, Any]], employee_id: str, retired: bool,
                     retired_date: str = "", reason: str = "") -> List[Dict[str, Any]]:
    """
    Local copy of the list with one employee retired or reinstated.

    Retiring remembers the fields it overwrites, so reinstating the same
    employee gives back the record exactly as it was before.
    """
    out = []
    for emp in employees:
        if str(emp.get("id")) == str(employee_id):
            emp = dict(emp)
            emp = _retire(emp, retired_date, reason or "") if retired else _reinstate(emp)
        out.append(emp)
    return out
