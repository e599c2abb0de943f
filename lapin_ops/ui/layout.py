"""
Layout components: login guard, sidebar navigation, header.
"""
import logging
import streamlit as st
from dataclasses import dataclass
from typing import List

from lapin_ops.api.client import ApiClient
from lapin_ops.auth.attendance import ACTION_LABELS, STATE_LABELS, TRANSITIONS, InvalidTransition
from lapin_ops.auth.session import SessionStore, User
from lapin_ops.config import ROLE_LABELS, ADMIN_ONLY_PAGES, COMPANY_NAME
from lapin_ops.ui.state import (
    get_session_store, get_api_client, get_punch_clock, get_sid, init_state, reset_state,
)

logger = logging.getLogger(__name__)

LOGIN_PAGE = "app.py"


@dataclass(frozen=True)
class NavItem:
    key: str
    path: str
    label: str
    icon: str


NAV_ITEMS = [
    NavItem("dashboard", "pages/1_Dashboard.py", "ダッシュボード", "📊"),
    NavItem("projects", "pages/2_Projects.py", "案件一覧", "📁"),
    NavItem("expense", "pages/5_Expenses.py", "経費登録", "🧾"),
    NavItem("followup", "pages/6_Followups.py", "追客管理", "📞"),
    NavItem("inspection", "pages/7_Inspections.py", "点検スケジュール", "🗓️"),
    NavItem("map", "pages/8_Customer_Map.py", "顧客マップ", "🗺️"),
    NavItem("thankyou", "pages/9_Thank_You_DM.py", "お礼状・DM", "✉️"),
    NavItem("bonus", "pages/10_Bonus.py", "ボーナス計算", "💴"),
    NavItem("settings", "pages/11_Settings.py", "設定", "👤"),
    NavItem("admin", "pages/12_Admin.py", "管理", "🛠️"),
]


@dataclass
class PageContext:
    """What a page needs after the login guard passed."""
    store: SessionStore
    api: ApiClient
    user: User


def visible_nav_items(user: User) -> List[NavItem]:
    """Admin-only entries are hidden for everyone else."""
    return [item for item in NAV_ITEMS if user.is_admin or item.key not in ADMIN_ONLY_PAGES]


# =============================================================================
# PAGE SETUP
# =============================================================================

def page_setup(title: str) -> PageContext:
    """
    Common page prologue: state, login guard, sidebar and header.

    Anonymous visitors are sent to the login page.
    """
    init_state()
    get_sid()
    store = get_session_store()
    if not store.is_authenticated:
        st.switch_page(LOGIN_PAGE)
    ctx = PageContext(store=store, api=get_api_client(), user=store.user)
    render_sidebar(ctx)
    render_header(ctx, title)
    return ctx


def logout(store: SessionStore):
    store.logout()
    reset_state()
    st.switch_page(LOGIN_PAGE)


# =============================================================================
# SIDEBAR
# =============================================================================

def render_sidebar(ctx: PageContext):
    with st.sidebar:
        st.markdown(f"### 🐰 {COMPANY_NAME}")
        for item in visible_nav_items(ctx.user):
            st.page_link(item.path, label=item.label, icon=item.icon)
        st.divider()
        st.caption(f"{ctx.user.name}（{ROLE_LABELS.get(ctx.user.role, ctx.user.role)}）")
        if st.button("ログアウト", key="sidebar_logout", use_container_width=True):
            logout(ctx.store)


# =============================================================================
# HEADER
# =============================================================================

def render_punch_clock():
    clock = get_punch_clock()
    cols = st.columns(len(TRANSITIONS) + 1)
    with cols[0]:
        st.caption(f"勤怠: **{STATE_LABELS[clock.state]}**")
    available = set(clock.available_actions())
    for col, action in zip(cols[1:], TRANSITIONS):
        with col:
            if st.button(ACTION_LABELS[action], key=f"punch_{action}",
                         disabled=action not in available, use_container_width=True):
                try:
                    result = clock.apply(action)
                except InvalidTransition as e:
                    st.toast(str(e), icon="⚠️")
                    return
                if result.success:
                    st.toast(f"{ACTION_LABELS[action]}を記録しました", icon="✅")
                    st.rerun()
                else:
                    st.toast(f"打刻に失敗しました: {result.error_message}", icon="⚠️")


def render_notifications(store: SessionStore):
    unread = store.unread_count
    with st.popover(f"🔔 {unread}" if unread else "🔔"):
        if not store.notifications:
            st.caption("お知らせはありません")
        for n in store.notifications:
            marker = "" if n.read else "🟢 "
            st.markdown(f"{marker}**{n.title}**  \n{n.message}  \n<small>{n.time}</small>", unsafe_allow_html=True)
            if not n.read and st.button("既読にする", key=f"notif_read_{n.id}"):
                store.mark_notification_read(n.id)
                st.rerun()


def render_header(ctx: PageContext, title: str):
    """Render page header with title, punch clock, notifications and user."""
    col1, col2, col3 = st.columns([3, 5, 1])

    with col1:
        st.title(title)

    with col2:
        render_punch_clock()

    with col3:
        render_notifications(ctx.store)

    st.divider()


def section_header(title: str, subtitle: str = None):
    """Render section header."""
    st.subheader(title)
    if subtitle:
        st.caption(subtitle)
