"""
Thank-you letter / DM send list and selection.
"""
import pandas as pd
from typing import Iterable, List, Set

from lapin_ops.config import MAIL_TARGET_STATUSES, MAIL_TEMPLATES, COMPANY_NAME
from lapin_ops.metrics.projects import parse_work_types

SEND_STATUS_LABELS = {
    "completed": "完工",
    "in_progress": "施工中",
    "contract": "契約済",
}


def send_list(projects: pd.DataFrame) -> pd.DataFrame:
    """Customers eligible for mail: projects that are contracted, under way or completed."""
    columns = ["id", "name", "last_work", "status"]
    if len(projects) == 0:
        return pd.DataFrame(columns=columns)
    eligible = projects[projects["status"].isin(MAIL_TARGET_STATUSES)]
    rows = [
        {
            "id": str(p["id"]),
            "name": p["customer_name"],
            "last_work": f"{str(p['inquiry_date'] or '')[:7]} {','.join(parse_work_types(p['work_type']))}".strip(),
            "status": SEND_STATUS_LABELS[p["status"]],
        }
        for _, p in eligible.iterrows()
    ]
    return pd.DataFrame(rows, columns=columns)


def toggle_select(selected: Set[str], item_id: str) -> Set[str]:
    return set(selected) ^ {str(item_id)}


def toggle_select_all(selected: Set[str], all_ids: Iterable[str]) -> Set[str]:
    """Clear when everything is already selected, otherwise select everything."""
    ids = {str(i) for i in all_ids}
    if ids and set(selected) >= ids:
        return set()
    return ids


def is_all_selected(selected: Set[str], all_ids: List[str]) -> bool:
    return len(all_ids) > 0 and set(selected) >= {str(i) for i in all_ids}


def render_template(template_id: str, customer_name: str = "") -> str:
    """Letter body for preview; unknown templates raise KeyError."""
    _, body = MAIL_TEMPLATES[template_id]
    greeting = f"{customer_name} 様\n\n" if customer_name else ""
    return f"{greeting}{body}\n\n{COMPANY_NAME}"
