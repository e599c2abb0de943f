"""
Tests for the business API client transport.
"""
import json

from lapin_ops.api.client import ApiClient
from lapin_ops.api.envelope import (
    HTTP_ERROR, INVALID_JSON, NETWORK_ERROR, NOT_CONFIGURED, APPLICATION_ERROR,
)
from conftest import FakeHttp, FakeResponse


class TestNotConfigured:
    """An empty endpoint fails closed without touching the network."""

    def test_get_fails_closed(self):
        """GET returns not_configured and records no request."""
        http = FakeHttp()
        client = ApiClient(base_url="", http=http)

        result = client.get_projects()

        assert result.success is False
        assert result.error.code == NOT_CONFIGURED
        assert http.calls == []

    def test_post_fails_closed(self):
        """POST returns not_configured and records no request."""
        http = FakeHttp()
        client = ApiClient(base_url="  ", http=http)

        result = client.create_expense({"amount": 100})

        assert result.error.code == NOT_CONFIGURED
        assert http.calls == []
        assert client.is_configured is False


class TestGet:
    """Read actions go out as query parameters."""

    def test_query_carries_action_token_and_params(self, api, http):
        """Action, token and stringified params are sent."""
        http.queue("GET", FakeResponse(200, payload={"success": True, "data": {"projects": []}}))

        result = api.get_projects(limit=10, status="contract")

        method, url, params, _ = http.calls[0]
        assert method == "GET"
        assert url == "https://example.test/exec"
        assert params == {"action": "getProjects", "token": "tok", "limit": "10", "status": "contract"}
        assert result.success is True
        assert result.data == {"projects": []}

    def test_none_params_dropped_and_bools_lowercased(self, http):
        """None values are omitted; booleans become true/false."""
        client = ApiClient(base_url="https://example.test/exec", http=http)

        client.get("getNotices", {"limit": None, "pinned": True})

        _, _, params, _ = http.calls[0]
        assert params == {"action": "getNotices", "pinned": "true"}

    def test_dashboard_dates(self, api, http):
        """Dashboard request carries the inclusive date range."""
        api.get_dashboard("2025-04-01", "2025-06-30")

        _, _, params, _ = http.calls[0]
        assert params["start_date"] == "2025-04-01"
        assert params["end_date"] == "2025-06-30"


class TestPost:
    """Write actions go out as a text/plain JSON body."""

    def test_body_shape(self, api, http):
        """Body is {action, token, data} with a text/plain content type."""
        api.update_expense_accounting("E1", True)

        method, _, data, headers = http.calls[0]
        body = json.loads(data.decode("utf-8"))
        assert method == "POST"
        assert headers == {"Content-Type": "text/plain"}
        assert body == {
            "action": "updateExpenseAccounting",
            "token": "tok",
            "data": {"expense_id": "E1", "accounting_imported": True},
        }

    def test_missing_token_sends_empty_string(self, http):
        """Anonymous posts send an empty token."""
        client = ApiClient(base_url="https://example.test/exec", http=http)

        client.create_session("id-token")

        body = json.loads(http.calls[0][2].decode("utf-8"))
        assert body["token"] == ""
        assert body["data"] == {"id_token": "id-token"}


class TestFailures:
    """Transport and protocol failures become tagged results."""

    def test_network_error(self, api, http, network_error):
        """A raised requests exception maps to network_error."""
        http.queue("GET", network_error)

        result = api.get_followups()

        assert result.success is False
        assert result.error.code == NETWORK_ERROR
        assert "connection refused" in result.error_message

    def test_http_error(self, api, http):
        """Non-2xx status maps to http_error."""
        http.queue("POST", FakeResponse(502, text="Bad gateway"))

        result = api.create_project({"customer_name": "x"})

        assert result.error.code == HTTP_ERROR
        assert result.error_message == "HTTP 502"

    def test_invalid_json(self, api, http):
        """An HTML error page maps to invalid_json."""
        http.queue("GET", FakeResponse(200, text="<html>error</html>"))

        result = api.get_masters()

        assert result.error.code == INVALID_JSON

    def test_application_error(self, api, http):
        """success=false with a string error keeps the message."""
        http.queue("GET", FakeResponse(200, payload={"success": False, "error": "権限がありません"}))

        result = api.get_employees()

        assert result.error.code == APPLICATION_ERROR
        assert result.error_message == "権限がありません"


class TestActionCatalog:
    """Methods map to the remote action names."""

    def test_write_actions(self, api, http):
        """Each write method posts its action with the expected data."""
        api.delete_project("P1")
        api.save_permissions([{"user_id": "1", "page": "bonus", "allowed": False}])
        api.save_masters("work_types", ("外壁塗装",))
        api.create_attendance("clock_in")

        bodies = [json.loads(call[2].decode("utf-8")) for call in http.calls]
        assert [(b["action"], b["data"]) for b in bodies] == [
            ("deleteProject", {"project_id": "P1"}),
            ("savePermissions", {"permissions": [{"user_id": "1", "page": "bonus", "allowed": False}]}),
            ("saveMasters", {"master_type": "work_types", "values": ["外壁塗装"]}),
            ("createAttendance", {"type": "clock_in"}),
        ]

    def test_page_permissions_only_sends_given_parts(self, api, http):
        """Omitted parts of the permission save are not sent."""
        api.save_page_permissions(role_master={"sales": {"bonus": False}})

        body = json.loads(http.calls[0][2].decode("utf-8"))
        assert body["data"] == {"role_master": {"sales": {"bonus": False}}}

    def test_customer_photo_by_data(self, api, http):
        """Only the supplied photo field is sent."""
        api.save_customer_photo("P1", photo_data="data:x")

        body = json.loads(http.calls[0][2].decode("utf-8"))
        assert body["data"] == {"project_id": "P1", "photo_data": "data:x"}
