"""
Thin client for the spreadsheet-backed business API.

Reads are GET requests with ``?action=<name>&token=<t>&<params>``; writes are
POST requests whose body is ``{"action", "token", "data"}`` sent as
``text/plain`` so the browser-facing endpoint needs no preflight. Every
method returns an ApiResult and never raises for transport or protocol
failures.
"""
import json
import logging
from typing import Any, Callable, Dict, List, Optional

import requests

from lapin_ops.api.envelope import (
    ApiResult,
    HTTP_ERROR,
    INVALID_JSON,
    INVALID_JSON_MESSAGE,
    NETWORK_ERROR,
    NOT_CONFIGURED,
    from_envelope,
)
from lapin_ops.config import (
    config,
    NOT_CONFIGURED_MESSAGE,
    PROJECT_FETCH_LIMIT,
    EXPENSE_FETCH_LIMIT,
)

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


def _stringify(params: Optional[Dict[str, Any]]) -> Dict[str, str]:
    if not params:
        return {}
    out = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            out[key] = "true" if value else "false"
        else:
            out[key] = str(value)
    return out


class ApiClient:
    """
    Client bound to one endpoint and one token source.

    Args:
        base_url: Web app URL. Empty means unconfigured: every call fails
            closed with ``not_configured`` and no request is made.
        token_provider: Callable returning the current session token or None.
        http: Object exposing ``get``/``post`` like ``requests`` (a
            ``requests.Session`` in production, a fake in tests).
        timeout: Per-request timeout in seconds.
    """

    def __init__(self,
                 base_url: Optional[str] = None,
                 token_provider: Optional[TokenProvider] = None,
                 http: Any = None,
                 timeout: Optional[float] = None):
        self.base_url = (config.gas_url if base_url is None else base_url).strip()
        self.token_provider = token_provider or (lambda: None)
        self.http = http if http is not None else requests.Session()
        self.timeout = config.api_timeout_seconds if timeout is None else timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _token(self) -> Optional[str]:
        token = self.token_provider()
        return token or None

    def _decode(self, action: str, method: str, response) -> ApiResult:
        status = getattr(response, "status_code", 200)
        text = response.text or ""
        logger.debug("[API %s] %s status=%s bytes=%d", method, action, status, len(text))

        if not 200 <= status < 300:
            logger.warning("[API %s] %s HTTP %s", method, action, status)
            return ApiResult.fail(HTTP_ERROR, f"HTTP {status}")

        try:
            payload = json.loads(text)
        except ValueError:
            logger.error("[API %s] %s non-JSON body: %s", method, action, text[:200])
            return ApiResult.fail(INVALID_JSON, INVALID_JSON_MESSAGE)

        result = from_envelope(payload)
        if not result.success:
            logger.info("[API %s] %s rejected: %s", method, action, result.error_message)
        return result

    def get(self, action: str, params: Optional[Dict[str, Any]] = None) -> ApiResult:
        """Issue a read action."""
        if not self.is_configured:
            logger.warning("[API GET] %s skipped: %s", action, NOT_CONFIGURED_MESSAGE)
            return ApiResult.fail(NOT_CONFIGURED, NOT_CONFIGURED_MESSAGE)

        query = {"action": action}
        token = self._token()
        if token:
            query["token"] = token
        query.update(_stringify(params))

        try:
            response = self.http.get(self.base_url, params=query, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("[API GET] %s network error: %s", action, e)
            return ApiResult.fail(NETWORK_ERROR, str(e))
        return self._decode(action, "GET", response)

    def post(self, action: str, data: Optional[Dict[str, Any]] = None) -> ApiResult:
        """Issue a write action."""
        if not self.is_configured:
            logger.warning("[API POST] %s skipped: %s", action, NOT_CONFIGURED_MESSAGE)
            return ApiResult.fail(NOT_CONFIGURED, NOT_CONFIGURED_MESSAGE)

        body = json.dumps(
            {"action": action, "token": self._token() or "", "data": data or {}},
            ensure_ascii=False,
        )
        try:
            response = self.http.post(
                self.base_url,
                data=body.encode("utf-8"),
                headers={"Content-Type": "text/plain"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("[API POST] %s network error: %s", action, e)
            return ApiResult.fail(NETWORK_ERROR, str(e))
        return self._decode(action, "POST", response)

    # -------------------------------------------------------------------------
    # Dashboard / bonus
    # -------------------------------------------------------------------------

    def get_dashboard(self, start_date: str, end_date: str) -> ApiResult:
        return self.get("getDashboard", {"start_date": start_date, "end_date": end_date})

    def get_bonus_overview(self) -> ApiResult:
        return self.get("getBonusOverview")

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    def get_projects(self, limit: int = PROJECT_FETCH_LIMIT, **params) -> ApiResult:
        return self.get("getProjects", {"limit": limit, **params})

    def get_project(self, project_id: str) -> ApiResult:
        return self.get("getProject", {"project_id": project_id})

    def create_project(self, data: Dict[str, Any]) -> ApiResult:
        return self.post("createProject", data)

    def update_project(self, project_id: str, data: Dict[str, Any]) -> ApiResult:
        return self.post("updateProject", {"project_id": project_id, **data})

    def delete_project(self, project_id: str) -> ApiResult:
        return self.post("deleteProject", {"project_id": project_id})

    def get_photos(self, project_id: str) -> ApiResult:
        return self.get("getPhotos", {"project_id": project_id})

    def upload_photo(self, data: Dict[str, Any]) -> ApiResult:
        return self.post("uploadPhoto", data)

    def save_customer_photo(self, project_id: str, photo_url: str = None, photo_data: str = None) -> ApiResult:
        data = {"project_id": project_id}
        if photo_url:
            data["photo_url"] = photo_url
        if photo_data:
            data["photo_data"] = photo_data
        return self.post("saveCustomerPhoto", data)

    def get_meetings(self, project_id: str) -> ApiResult:
        return self.get("getMeetings", {"project_id": project_id})

    def create_meeting(self, data: Dict[str, Any]) -> ApiResult:
        return self.post("createMeeting", data)

    def get_cost_items(self, project_id: str) -> ApiResult:
        return self.get("getCostItems", {"project_id": project_id})

    def create_cost_item(self, data: Dict[str, Any]) -> ApiResult:
        return self.post("createCostItem", data)

    def get_followups(self, **params) -> ApiResult:
        return self.get("getFollowups", params)

    def get_inspections(self, **params) -> ApiResult:
        return self.get("getInspections", params)

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def get_expenses(self, limit: int = EXPENSE_FETCH_LIMIT, **params) -> ApiResult:
        return self.get("getExpenses", {"limit": limit, **params})

    def create_expense(self, data: Dict[str, Any]) -> ApiResult:
        return self.post("createExpense", data)

    def update_expense_accounting(self, expense_id: str, imported: bool) -> ApiResult:
        return self.post(
            "updateExpenseAccounting",
            {"expense_id": expense_id, "accounting_imported": bool(imported)},
        )

    def ocr_receipt(self, photo_data: str) -> ApiResult:
        return self.post("ocrReceipt", {"photo_data": photo_data})

    # -------------------------------------------------------------------------
    # People, permissions, attendance
    # -------------------------------------------------------------------------

    def get_employees(self) -> ApiResult:
        return self.get("getEmployees")

    def create_employee(self, data: Dict[str, Any]) -> ApiResult:
        return self.post("createEmployee", data)

    def update_employee(self, data: Dict[str, Any]) -> ApiResult:
        return self.post("updateEmployee", data)

    def save_permissions(self, permissions: List[Dict[str, Any]]) -> ApiResult:
        return self.post("savePermissions", {"permissions": permissions})

    def get_page_permissions(self) -> ApiResult:
        return self.get("getPagePermissions")

    def save_page_permissions(self, role_master: Dict[str, Dict[str, bool]] = None,
                              user_permissions: List[Dict[str, Any]] = None) -> ApiResult:
        data = {}
        if role_master is not None:
            data["role_master"] = role_master
        if user_permissions is not None:
            data["user_permissions"] = user_permissions
        return self.post("savePagePermissions", data)

    def create_attendance(self, attendance_type: str, **extra) -> ApiResult:
        return self.post("createAttendance", {"type": attendance_type, **extra})

    def get_attendance_status(self) -> ApiResult:
        return self.get("getAttendanceStatus")

    def get_user_info(self) -> ApiResult:
        return self.get("getUserInfo")

    def upload_profile_photo(self, photo_data: str) -> ApiResult:
        return self.post("uploadProfilePhoto", {"photo_data": photo_data})

    def get_account_photos(self) -> ApiResult:
        return self.get("getAccountPhotos")

    def upload_account_photo(self, photo_data: str, name: str = "") -> ApiResult:
        return self.post("uploadAccountPhoto", {"photo_data": photo_data, "name": name or ""})

    def delete_account_photo(self, photo_id: str) -> ApiResult:
        return self.post("deleteAccountPhoto", {"photo_id": photo_id})

    # -------------------------------------------------------------------------
    # Settings, masters, notices, text tools
    # -------------------------------------------------------------------------

    def get_company_settings(self) -> ApiResult:
        return self.get("getCompanySettings")

    def save_company_settings(self, data: Dict[str, Any]) -> ApiResult:
        return self.post("saveCompanySettings", data)

    def get_user_map_settings(self) -> ApiResult:
        return self.get("getUserMapSettings")

    def save_user_map_settings(self, data: Dict[str, Any]) -> ApiResult:
        return self.post("saveUserMapSettings", data)

    def get_masters(self) -> ApiResult:
        return self.get("getMasters")

    def save_masters(self, master_type: str, values: List[str]) -> ApiResult:
        return self.post("saveMasters", {"master_type": master_type, "values": list(values)})

    def format_text(self, input_text: str, format_type: str = "meeting") -> ApiResult:
        return self.post("formatText", {"input_text": input_text, "format_type": format_type})

    def get_notices(self, limit: Optional[int] = None, offset: Optional[int] = None) -> ApiResult:
        return self.get("getNotices", {"limit": limit, "offset": offset})

    def create_notice(self, body: str, title: str = "", category: str = "", is_pinned: bool = False) -> ApiResult:
        return self.post(
            "createNotice",
            {"title": title, "body": body, "category": category, "is_pinned": is_pinned},
        )

    # -------------------------------------------------------------------------
    # Login
    # -------------------------------------------------------------------------

    def line_token_exchange(self, code: str, redirect_uri: str) -> ApiResult:
        return self.get("lineTokenExchange", {"code": code, "redirect_uri": redirect_uri})

    def create_session(self, id_token: str) -> ApiResult:
        return self.post("createSession", {"id_token": id_token})
