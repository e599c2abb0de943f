"""
Customer map data: project rows → map markers, plus on-demand geocoding.
"""
import logging
import pandas as pd
import requests
from typing import Any, Optional, Tuple

from lapin_ops.config import config
from lapin_ops.metrics.projects import parse_work_types

logger = logging.getLogger(__name__)

MAP_CUSTOMER_COLUMNS = ["id", "name", "lat", "lng", "status", "last_work", "address", "assigned_to"]


def geocode(address: str, http: Any = None) -> Optional[Tuple[float, float]]:
    """
    Look up ``(lat, lng)`` for an address via Nominatim.

    Best-effort: any transport, status or parse problem returns None.
    """
    if not address or not address.strip():
        return None
    http = http or requests
    params = {"format": "json", "q": address.strip(), "limit": 1}
    headers = {"User-Agent": config.geocode_user_agent}
    try:
        resp = http.get(config.geocode_url, params=params, headers=headers,
                        timeout=config.geocode_timeout_seconds)
        if resp.status_code != 200:
            logger.warning("Geocode HTTP %s for %r", resp.status_code, address)
            return None
        results = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Geocode failed for %r: %s", address, e)
        return None

    if not isinstance(results, list) or not results:
        return None
    first = results[0]
    try:
        return float(first["lat"]), float(first["lon"])
    except (KeyError, TypeError, ValueError):
        logger.warning("Geocode result without coordinates for %r", address)
        return None


def _last_work(row: pd.Series) -> str:
    month = str(row.get("inquiry_date") or "")[:7]
    return f"{month} {','.join(parse_work_types(row.get('work_type')))}".strip()


def _marker(row: pd.Series, lat: float, lng: float) -> dict:
    return {
        "id": str(row["id"]),
        "name": row.get("customer_name"),
        "lat": float(lat),
        "lng": float(lng),
        "status": row.get("status"),
        "last_work": _last_work(row),
        "address": row.get("address"),
        "assigned_to": str(row.get("assigned_to") or ""),
    }


def to_map_customers(projects: pd.DataFrame) -> pd.DataFrame:
    """Markers for projects that already carry stored coordinates."""
    if len(projects) == 0:
        return pd.DataFrame(columns=MAP_CUSTOMER_COLUMNS)
    lat = pd.to_numeric(projects["lat"], errors="coerce")
    lng = pd.to_numeric(projects["lng"], errors="coerce")
    has_coords = lat.notna() & lng.notna() & (lat != 0) & (lng != 0)
    rows = [
        _marker(row, lat[idx], lng[idx])
        for idx, row in projects[has_coords].iterrows()
    ]
    return pd.DataFrame(rows, columns=MAP_CUSTOMER_COLUMNS)


def resolve_focus(projects: pd.DataFrame, customers: pd.DataFrame,
                  project_id: str, http: Any = None) -> Tuple[pd.DataFrame, Optional[dict]]:
    """
    Find the marker to centre on for ``project_id``.

    A project without stored coordinates is geocoded from its address and
    appended as a new marker. Returns the (possibly extended) markers and the
    focus marker, or None when it cannot be located.
    """
    match = customers[customers["id"] == str(project_id)] if len(customers) else customers
    if len(match):
        return customers, match.iloc[0].to_dict()

    if len(projects) == 0:
        return customers, None
    proj = projects[projects["id"].astype(str) == str(project_id)]
    if len(proj) == 0:
        return customers, None
    row = proj.iloc[0]
    coords = geocode(str(row.get("address") or ""), http=http)
    if coords is None:
        return customers, None
    marker = _marker(row, *coords)
    extended = pd.concat([customers, pd.DataFrame([marker], columns=MAP_CUSTOMER_COLUMNS)], ignore_index=True)
    return extended, marker


def filter_customers(customers: pd.DataFrame, query: str = "",
                     only_user_id: Optional[str] = None) -> pd.DataFrame:
    """Search on name or address; optionally keep only one assignee's customers."""
    if len(customers) == 0:
        return customers
    df = customers
    if only_user_id:
        df = df[df["assigned_to"] == str(only_user_id)]
    if query:
        q = query.strip()
        hit = (
            df["name"].fillna("").astype(str).str.contains(q, regex=False)
            | df["address"].fillna("").astype(str).str.contains(q, regex=False)
        )
        df = df[hit]
    return df


def map_center(customers: pd.DataFrame) -> Tuple[float, float]:
    """First marker, else the configured home area."""
    if len(customers):
        first = customers.iloc[0]
        return float(first["lat"]), float(first["lng"])
    return config.map_center_lat, config.map_center_lng
