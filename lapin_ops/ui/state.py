"""
Session state management for Streamlit app.
"""
import secrets
import threading
import streamlit as st
from typing import Any, Dict, Optional

from lapin_ops.config import config, PERIOD_MONTH
from lapin_ops.api.client import ApiClient
from lapin_ops.auth.attendance import PunchClock
from lapin_ops.auth.session import JsonFileStorage, SessionStore
from lapin_ops.metrics.projects import ProjectFilter


# =============================================================================
# DEFAULT VALUES
# =============================================================================

DEFAULTS = {
    "dashboard_period": PERIOD_MONTH,
    "chart_granularity": "month",
    "project_page": 1,
    "selected_project_id": None,
    "project_tab": "basic",
    "photo_type": "before",
    "expense_frame": None,
    "dismissed_followups": [],
    "mail_template": "thankyou",
    "mail_selected": set(),
    "map_query": "",
    "map_my_only": False,
    "employee_filter": "all",
}


# =============================================================================
# STATE HELPERS
# =============================================================================

def init_state():
    """Initialize all session state keys with defaults."""
    for key, default in DEFAULTS.items():
        if key not in st.session_state:
            st.session_state[key] = default.copy() if isinstance(default, (list, set, dict)) else default
    if "project_filter" not in st.session_state:
        st.session_state["project_filter"] = ProjectFilter()


def get_state(key: str) -> Any:
    """Get state value with default fallback."""
    init_state()
    return st.session_state.get(key, DEFAULTS.get(key))


def set_state(key: str, value: Any):
    """Set state value."""
    st.session_state[key] = value


def reset_state():
    """Reset all page state to defaults (used on logout)."""
    for key, default in DEFAULTS.items():
        st.session_state[key] = default.copy() if isinstance(default, (list, set, dict)) else default
    st.session_state["project_filter"] = ProjectFilter()
    for key in ("session_store", "punch_clock", "generations", "admin_employees", "expense_ocr"):
        st.session_state.pop(key, None)


# =============================================================================
# BROWSER SESSION
# =============================================================================

def get_sid() -> str:
    """
    Opaque per-browser id carried in the ``sid`` query parameter.

    Page switches drop query parameters, so the id is mirrored in
    ``st.session_state`` and written back to the URL on every run.
    """
    sid = st.session_state.get("sid") or st.query_params.get("sid")
    if not sid:
        sid = secrets.token_urlsafe(12)
    st.session_state["sid"] = sid
    if st.query_params.get("sid") != sid:
        st.query_params["sid"] = sid
    return sid


def bind_sid(sid: str):
    """Adopt an existing browser id (OAuth callback)."""
    st.session_state["sid"] = sid
    st.query_params["sid"] = sid
    for key in ("session_store", "punch_clock"):
        st.session_state.pop(key, None)


def get_session_store() -> SessionStore:
    if "session_store" not in st.session_state:
        storage = JsonFileStorage(config.session_dir / f"{get_sid()}.json")
        st.session_state["session_store"] = SessionStore(storage)
    return st.session_state["session_store"]


def get_api_client() -> ApiClient:
    store = get_session_store()
    return ApiClient(token_provider=lambda: store.token)


def get_punch_clock() -> PunchClock:
    """Punch clock hydrated once per browser session."""
    clock = st.session_state.get("punch_clock")
    if clock is None:
        clock = PunchClock(get_api_client())
        if config.is_api_configured:
            clock.hydrate()
        st.session_state["punch_clock"] = clock
    return clock


# =============================================================================
# STALE RESPONSE GUARD
# =============================================================================

class RequestGeneration:
    """
    Monotonic counter per fetch key.

    A caller captures ``begin()`` before a request and keeps the response
    only if ``is_current`` still holds when it arrives.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = {}

    def begin(self, key: str) -> int:
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + 1
            return self._counters[key]

    def current(self, key: str) -> int:
        with self._lock:
            return self._counters.get(key, 0)

    def is_current(self, key: str, generation: int) -> bool:
        return self.current(key) == generation


def get_generations() -> RequestGeneration:
    if "generations" not in st.session_state:
        st.session_state["generations"] = RequestGeneration()
    return st.session_state["generations"]


def current_user_id() -> Optional[str]:
    user = get_session_store().user
    return user.id if user else None
