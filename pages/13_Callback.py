"""
LINE Login redirect target.
"""
import streamlit as st

st.set_page_config(page_title="ログイン中", page_icon="🐰", layout="centered", initial_sidebar_state="collapsed")

from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from lapin_ops.auth.oauth import complete_login, provider_error, sid_from_state
from lapin_ops.config import configure_logging
from lapin_ops.ui.state import init_state, bind_sid, get_session_store, get_api_client

LOGIN_PAGE = "app.py"
DASHBOARD_PAGE = "pages/1_Dashboard.py"


def main():
    configure_logging()
    init_state()
    params = {key: st.query_params.get(key) for key in st.query_params.keys()}

    cancelled = provider_error(params)
    if cancelled:
        st.error(cancelled)
        st.page_link(LOGIN_PAGE, label="ログイン画面へ戻る", icon="↩️")
        return

    sid = sid_from_state(params.get("state"))
    if sid is None:
        st.error("認証状態が一致しません。再度ログインしてください。")
        st.page_link(LOGIN_PAGE, label="ログイン画面へ戻る", icon="↩️")
        return
    bind_sid(sid)

    with st.spinner("LINEアカウントで認証中..."):
        outcome = complete_login(params, get_session_store(), get_api_client())

    if outcome.ok:
        for key in ("code", "state"):
            st.query_params.pop(key, None)
        st.switch_page(DASHBOARD_PAGE)

    st.error(outcome.error)
    st.page_link(LOGIN_PAGE, label="ログイン画面へ戻る", icon="↩️")


if __name__ == "__main__":
    main()
