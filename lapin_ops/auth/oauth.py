"""
LINE Login bootstrap: authorisation code → identity token → app session.

The flow is a short state machine that always ends in one of two terminal
states, ``authenticated`` or ``failed``. Nothing retries automatically; a
failed login is restarted from the login page.
"""
import logging
import re
from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import urlencode

from lapin_ops.api.client import ApiClient
from lapin_ops.auth.session import SessionStore, User
from lapin_ops.config import config

logger = logging.getLogger(__name__)

AUTHENTICATED = "authenticated"
FAILED = "failed"

_SID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{8,64}$")


@dataclass
class CallbackOutcome:
    """Terminal result of one callback run."""
    status: str
    error: Optional[str] = None
    user: Optional[User] = None

    @property
    def ok(self) -> bool:
        return self.status == AUTHENTICATED


def _failed(message: str) -> CallbackOutcome:
    logger.warning("LINE login failed: %s", message)
    return CallbackOutcome(status=FAILED, error=message)


# =============================================================================
# AUTHORISE REDIRECT
# =============================================================================

def sid_from_state(state: Optional[str]) -> Optional[str]:
    """Recover the session id from a returned state, rejecting anything malformed."""
    if not state or "." not in state:
        return None
    sid = state.split(".", 1)[0]
    return sid if _SID_PATTERN.match(sid) else None


def build_authorize_url(state: str,
                        channel_id: Optional[str] = None,
                        callback_url: Optional[str] = None) -> str:
    """Provider authorise URL for the authorisation-code flow."""
    params = {
        "response_type": "code",
        "client_id": config.line_channel_id if channel_id is None else channel_id,
        "redirect_uri": config.line_callback_url if callback_url is None else callback_url,
        "state": state,
        "scope": config.line_scope,
    }
    return f"{config.line_authorize_url}?{urlencode(params)}"


def begin_login(store: SessionStore, sid: str) -> str:
    """
    Issue a fresh single-use nonce and return the URL to redirect to.

    The state is ``<sid>.<nonce>`` so the callback, which arrives in a new
    browser session, can reopen the store that holds the nonce.
    """
    state = store.issue_oauth_state(prefix=f"{sid}.")
    return build_authorize_url(state)


# =============================================================================
# CALLBACK
# =============================================================================

def provider_error(params: Mapping[str, str]) -> Optional[str]:
    """Message for an ``error`` redirect from the provider, else None."""
    error_param = params.get("error")
    if not error_param:
        return None
    description = params.get("error_description") or error_param
    return f"LINE認証がキャンセルされました: {description}"


def complete_login(params: Mapping[str, str],
                   store: SessionStore,
                   api: ApiClient,
                   redirect_uri: Optional[str] = None) -> CallbackOutcome:
    """
    Run the callback state machine against the redirect query parameters.

    Steps: provider error → missing code → state check → code exchange →
    session creation → persist. Each failure is terminal and carries the
    underlying message.
    """
    cancelled = provider_error(params)
    if cancelled:
        return _failed(cancelled)

    code = params.get("code")
    if not code:
        return _failed("認証コードが取得できませんでした")

    expected = store.consume_oauth_state()
    returned = params.get("state")
    if not expected or returned != expected:
        return _failed("認証状態が一致しません。再度ログインしてください。")

    redirect = config.line_callback_url if redirect_uri is None else redirect_uri
    exchange = api.line_token_exchange(code, redirect)
    if not exchange.success:
        return _failed(f"トークン交換に失敗しました: {exchange.error_message}")
    id_token = exchange.get("id_token")
    if not id_token:
        return _failed("トークン交換に失敗しました: id_tokenがありません")

    session = api.create_session(id_token)
    if not session.success:
        return _failed(f"ユーザー情報の取得に失敗しました: {session.error_message}")
    session_token = session.get("session_token")
    raw_user = session.get("user")
    if not session_token or not raw_user:
        return _failed("ユーザー情報の取得に失敗しました: セッション情報が不完全です")

    user = User.from_dict({**raw_user, "status": "active"})
    store.login(user, session_token)
    return CallbackOutcome(status=AUTHENTICATED, user=user)
