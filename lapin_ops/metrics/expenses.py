"""
Expense capture: OCR pre-fill, accounting-import toggle and monthly progress.
"""
import base64
import logging
import pandas as pd
from datetime import date
from typing import Any, Callable, Dict, Optional, Tuple

from lapin_ops.api.envelope import ApiResult
from lapin_ops.config import EXPENSE_CATEGORIES, DEFAULT_EXPENSE_CATEGORY
from lapin_ops.metrics.projects import ValidationError

logger = logging.getLogger(__name__)


def to_data_url(raw: bytes, mime_type: str = "image/jpeg") -> str:
    """Encode an uploaded image as a ``data:`` URL for the API."""
    return f"data:{mime_type};base64,{base64.b64encode(raw).decode('ascii')}"


def ocr_prefill(result: ApiResult) -> Dict[str, Any]:
    """
    Form fields to pre-fill from an ``ocrReceipt`` result.

    Best-effort: a failed OCR or a category outside the closed set simply
    contributes nothing for that field.
    """
    if not result.success or not isinstance(result.data, dict):
        if not result.success:
            logger.warning("Receipt OCR unavailable: %s", result.error_message)
        return {}
    data = result.data
    prefill = {}
    if data.get("amount"):
        try:
            prefill["amount"] = int(float(data["amount"]))
        except (TypeError, ValueError):
            pass
    if data.get("date"):
        try:
            prefill["expense_date"] = date.fromisoformat(str(data["date"])[:10])
        except ValueError:
            pass
    if data.get("category") in EXPENSE_CATEGORIES:
        prefill["category"] = data["category"]
    if data.get("items"):
        prefill["description"] = str(data["items"])
    return prefill


def build_expense_payload(expense_date: date, amount: Any, category: str = DEFAULT_EXPENSE_CATEGORY,
                          description: str = "", project_id: str = "",
                          receipt_image: str = "") -> Dict[str, Any]:
    """
    ``createExpense`` body.

    Raises:
        ValidationError: missing or non-positive amount, or an unknown category.
    """
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise ValidationError("金額を入力してください", ["amount"])
    if value <= 0:
        raise ValidationError("金額を入力してください", ["amount"])
    if category not in EXPENSE_CATEGORIES:
        raise ValidationError(f"不明なカテゴリ: {category}", ["category"])
    return {
        "expense_date": expense_date.isoformat() if isinstance(expense_date, date) else str(expense_date),
        "amount": value,
        "category": category,
        "description": description or "",
        "project_id": project_id or "",
        "receipt_image": receipt_image or "",
    }


# =============================================================================
# ACCOUNTING IMPORT
# =============================================================================

def set_imported(df: pd.DataFrame, expense_id: str, imported: bool) -> pd.DataFrame:
    out = df.copy()
    out.loc[out["id"].astype(str) == str(expense_id), "accounting_imported"] = bool(imported)
    return out


def toggle_accounting(df: pd.DataFrame, expense_id: str,
                      post: Callable[[str, bool], ApiResult]) -> Tuple[pd.DataFrame, ApiResult]:
    """
    Optimistically flip one expense's accounting flag.

    The new value is applied first, then ``post(expense_id, new_value)`` is
    called; on failure the row is rolled back to its previous value.
    Returns the resulting frame and the API result.
    """
    rows = df[df["id"].astype(str) == str(expense_id)]
    if len(rows) == 0:
        raise KeyError(expense_id)
    current = bool(rows["accounting_imported"].iloc[0])
    optimistic = set_imported(df, expense_id, not current)
    result = post(str(expense_id), not current)
    if not result.success:
        logger.warning("Accounting flag rollback for %s: %s", expense_id, result.error_message)
        return set_imported(optimistic, expense_id, current), result
    return optimistic, result


def monthly_progress(df: pd.DataFrame, today: Optional[date] = None) -> Dict[str, Any]:
    """
    This month's accounting import progress.

    ``rate`` is ``imported / total × 100`` and 0 when there are no expenses.
    """
    today = today or date.today()
    prefix = f"{today.year}-{today.month:02d}"
    if len(df) == 0:
        month = df
    else:
        month = df[df["expense_date"].fillna("").astype(str).str.startswith(prefix)]
    total = len(month)
    imported = int(month["accounting_imported"].astype(bool).sum()) if total else 0
    return {
        "total": total,
        "imported": imported,
        "unprocessed": total - imported,
        "rate": imported / total * 100 if total else 0.0,
    }
