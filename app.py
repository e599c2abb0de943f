"""
Lapin Reform Operations Console

Main entry point for Streamlit app (login page).
"""
import streamlit as st
from pathlib import Path

# Page config must be first Streamlit command
st.set_page_config(
    page_title="ラパンリフォーム 業務管理",
    page_icon="🐰",
    layout="centered",
    initial_sidebar_state="collapsed",
)

import sys
sys.path.insert(0, str(Path(__file__).parent))

from lapin_ops.auth.oauth import begin_login, build_authorize_url
from lapin_ops.config import config, configure_logging, COMPANY_NAME
from lapin_ops.ui.state import init_state, get_sid, get_session_store

DASHBOARD_PAGE = "pages/1_Dashboard.py"

DEMO_BUTTONS = [
    ("admin", "社長としてログイン"),
    ("staff", "事務としてログイン"),
    ("sales", "営業としてログイン"),
]


def main():
    """Main app entry point."""
    configure_logging()
    init_state()
    sid = get_sid()
    store = get_session_store()

    if store.is_authenticated:
        st.switch_page(DASHBOARD_PAGE)

    st.title(f"🐰 {COMPANY_NAME}")
    st.caption("業務管理システム")

    # LINE login: reuse the pending nonce so reruns do not invalidate an open redirect.
    pending = store.peek_oauth_state()
    login_url = build_authorize_url(pending) if pending else begin_login(store, sid)
    if config.line_channel_id and config.line_callback_url:
        st.link_button("LINEでログイン", login_url, type="primary", use_container_width=True)
    else:
        st.info("LINEログインは未設定です（LINE_LOGIN_CHANNEL_ID / LINE_LOGIN_CALLBACK_URL）")

    st.divider()
    st.markdown("**デモログイン**")
    for role, label in DEMO_BUTTONS:
        if st.button(label, key=f"demo_{role}", use_container_width=True):
            store.login_as_demo(role)
            st.switch_page(DASHBOARD_PAGE)

    if not config.is_api_configured:
        st.caption("GAS WebアプリURLが未設定のため、データは表示されません。")


if __name__ == "__main__":
    main()
