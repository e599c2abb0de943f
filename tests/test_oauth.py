"""
Tests for the LINE Login callback state machine.
"""
from urllib.parse import urlparse, parse_qs

from lapin_ops.api.envelope import ApiResult
from lapin_ops.auth.oauth import (
    AUTHENTICATED, FAILED, begin_login, build_authorize_url, complete_login, provider_error,
    sid_from_state,
)
from lapin_ops.auth.session import SessionStore


class FakeLoginApi:
    def __init__(self, exchange=None, session=None):
        self.exchange = exchange or ApiResult.ok({"id_token": "idt"})
        self.session = session or ApiResult.ok({
            "session_token": "sess-9",
            "user": {"id": "9", "name": "山田", "role": "sales"},
        })
        self.exchange_calls = []
        self.session_calls = []

    def line_token_exchange(self, code, redirect_uri):
        self.exchange_calls.append((code, redirect_uri))
        return self.exchange

    def create_session(self, id_token):
        self.session_calls.append(id_token)
        return self.session


def _store_with_state(state):
    store = SessionStore({})
    store.storage["line_login_state"] = state
    return store


class TestAuthorizeUrl:
    """Redirect to the provider."""

    def test_query_parameters(self):
        """The URL carries the code-flow parameters."""
        url = build_authorize_url("abc", channel_id="123", callback_url="https://app.test/cb")

        query = parse_qs(urlparse(url).query)
        assert url.startswith("https://access.line.me/oauth2/v2.1/authorize?")
        assert query == {
            "response_type": ["code"],
            "client_id": ["123"],
            "redirect_uri": ["https://app.test/cb"],
            "state": ["abc"],
            "scope": ["profile openid"],
        }

    def test_begin_login_embeds_sid(self):
        """The issued state starts with the browser session id."""
        store = SessionStore({})

        url = begin_login(store, "abcdefgh12")

        state = parse_qs(urlparse(url).query)["state"][0]
        assert state == store.peek_oauth_state()
        assert sid_from_state(state) == "abcdefgh12"

    def test_sid_from_malformed_state(self):
        """States without a well-formed sid are rejected."""
        assert sid_from_state(None) is None
        assert sid_from_state("nonce-only") is None
        assert sid_from_state("../etc.x") is None


class TestCompleteLogin:
    """Callback outcomes."""

    def test_success(self):
        """Matching state, exchange and session give an authenticated store."""
        store = _store_with_state("abc")
        api = FakeLoginApi()

        outcome = complete_login({"code": "c1", "state": "abc"}, store, api, redirect_uri="https://app.test/cb")

        assert outcome.status == AUTHENTICATED
        assert outcome.ok is True
        assert api.exchange_calls == [("c1", "https://app.test/cb")]
        assert api.session_calls == ["idt"]
        assert store.token == "sess-9"
        assert store.user.status == "active"
        assert store.peek_oauth_state() is None

    def test_state_mismatch_never_exchanges(self):
        """Stored 'abc', returned 'xyz': failed and no exchange call."""
        store = _store_with_state("abc")
        api = FakeLoginApi()

        outcome = complete_login({"code": "c1", "state": "xyz"}, store, api)

        assert outcome.status == FAILED
        assert api.exchange_calls == []
        assert store.is_authenticated is False

    def test_missing_stored_state_fails(self):
        """No nonce on record is a mismatch."""
        api = FakeLoginApi()

        outcome = complete_login({"code": "c1", "state": "abc"}, SessionStore({}), api)

        assert outcome.status == FAILED
        assert api.exchange_calls == []

    def test_provider_error(self):
        """A provider error param ends the flow with its description."""
        outcome = complete_login(
            {"error": "access_denied", "error_description": "user cancelled"},
            _store_with_state("abc"), FakeLoginApi(),
        )

        assert outcome.status == FAILED
        assert "user cancelled" in outcome.error

    def test_provider_error_without_state(self):
        """An error redirect is recognised before any state is parsed."""
        params = {"error": "access_denied", "error_description": "user cancelled"}

        assert sid_from_state(params.get("state")) is None
        assert provider_error(params) == "LINE認証がキャンセルされました: user cancelled"
        assert provider_error({"error": "server_error"}).endswith("server_error")
        assert provider_error({"code": "c1", "state": "abc.def"}) is None

    def test_missing_code(self):
        """No code, no exchange."""
        api = FakeLoginApi()

        outcome = complete_login({"state": "abc"}, _store_with_state("abc"), api)

        assert outcome.status == FAILED
        assert api.exchange_calls == []

    def test_exchange_failure_keeps_message(self):
        """The underlying exchange error is surfaced."""
        api = FakeLoginApi(exchange=ApiResult.fail("application_error", "invalid_grant"))

        outcome = complete_login({"code": "c", "state": "abc"}, _store_with_state("abc"), api)

        assert outcome.status == FAILED
        assert "invalid_grant" in outcome.error
        assert api.session_calls == []

    def test_missing_id_token(self):
        """An exchange without id_token fails before session creation."""
        api = FakeLoginApi(exchange=ApiResult.ok({}))

        outcome = complete_login({"code": "c", "state": "abc"}, _store_with_state("abc"), api)

        assert outcome.status == FAILED
        assert api.session_calls == []

    def test_incomplete_session(self):
        """A session without a token does not sign in."""
        api = FakeLoginApi(session=ApiResult.ok({"user": {"id": "1"}}))
        store = _store_with_state("abc")

        outcome = complete_login({"code": "c", "state": "abc"}, store, api)

        assert outcome.status == FAILED
        assert store.is_authenticated is False
