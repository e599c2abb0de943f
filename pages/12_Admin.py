"""
Administration (admin only): integrations, company profile, employees,
master lists, page permissions and notices.
"""
import streamlit as st

st.set_page_config(page_title="管理", page_icon="🛠️", layout="wide")

from datetime import date
from pathlib import Path
import sys

import pandas as pd

sys.path.insert(0, str(Path(__file__).parent.parent))

from lapin_ops.config import config, ROLE_LABELS, PAGE_KEYS, ADMIN_ONLY_PAGES
from lapin_ops.data.loader import extract_list, employees_frame
from lapin_ops.metrics.employees import (
    FILTER_LABELS, is_retired, filter_employees, retirement_payload, apply_retirement,
)
from lapin_ops.metrics.projects import ValidationError
from lapin_ops.ui.components import error_banner, empty_state, status_badge, toast_result, access_denied
from lapin_ops.ui.formatting import fmt_date
from lapin_ops.ui.layout import page_setup, section_header
from lapin_ops.ui.state import get_state, set_state

MASTER_LABELS = {
    "work_types": "工事種別",
    "acquisition_routes": "集客ルート",
    "expense_categories": "経費カテゴリ",
    "cost_categories": "原価区分",
}

INTEGRATION_FIELDS = {
    "line_channel_id": "チャネルID",
    "line_channel_token": "チャネルアクセストークン",
    "liff_id": "LIFF ID",
    "gas_web_app_url": "GAS WebアプリURL",
}

COMPANY_FIELDS = {
    "company_name": "会社名",
    "trade_name": "屋号",
    "representative": "代表者",
    "address": "住所",
    "phone": "電話番号",
}


def _settings(api) -> dict:
    result = api.get_company_settings()
    if not result.success:
        error_banner(result, "設定の取得に失敗しました")
        return {}
    data = result.get("settings", result.data)
    return data if isinstance(data, dict) else {}


# =============================================================================
# TABS
# =============================================================================

def render_integration(api, settings: dict):
    section_header("LINE・GAS連携")
    with st.form("integration"):
        values = {}
        for key, label in INTEGRATION_FIELDS.items():
            default = settings.get(key) or (config.gas_url if key == "gas_web_app_url" else "")
            values[key] = st.text_input(label, value=default,
                                        type="password" if key == "line_channel_token" else "default")
        if st.form_submit_button("保存", type="primary"):
            toast_result(api.save_company_settings(values), "保存しました", "保存に失敗しました")


def render_company(api, settings: dict):
    section_header("企業情報")
    with st.form("company"):
        values = {key: st.text_input(label, value=settings.get(key) or "") for key, label in COMPANY_FIELDS.items()}
        if st.form_submit_button("保存", type="primary"):
            toast_result(api.save_company_settings(values), "企業情報を保存しました", "保存に失敗しました")


def _employee_rows(api):
    """Employee list cached for the page so local retire/reinstate survives reruns."""
    rows = st.session_state.get("admin_employees")
    if rows is None:
        result = api.get_employees()
        if not result.success:
            error_banner(result, "従業員の取得に失敗しました", retry_key="employees_retry")
            return None
        rows = extract_list(result, "employees")
        st.session_state["admin_employees"] = rows
    return rows


def _set_retired(api, rows, emp_id: str, retired: bool, retired_date=None, reason: str = ""):
    try:
        payload = retirement_payload(emp_id, retired, retired_date, reason)
    except ValidationError as e:
        st.error(str(e))
        return
    result = api.update_employee(payload)
    toast_result(result, "退職処理を実行しました" if retired else "復職処理を実行しました", "更新に失敗しました")
    if result.success:
        st.session_state["admin_employees"] = apply_retirement(
            rows, emp_id, retired, payload["retired_date"], payload["retired_reason"],
        )
        st.rerun()


def render_employee_row(api, rows, emp):
    retired = is_retired(emp)
    with st.container(border=True):
        cols = st.columns([3, 2, 3, 1, 1])
        cols[0].markdown(f"**{emp.get('name') or ''}**")
        cols[1].write(ROLE_LABELS.get(emp.get("role"), emp.get("role") or ""))
        cols[2].caption(emp.get("email") or "")
        cols[3].markdown(status_badge("済" if emp.get("line_user_id") else "未",
                                      "#06C755" if emp.get("line_user_id") else "#9ca3af"), unsafe_allow_html=True)
        cols[4].markdown(status_badge("退職" if retired else "在籍", "#9ca3af" if retired else "#06C755"),
                         unsafe_allow_html=True)

        emp_id = str(emp.get("id"))
        if retired:
            st.caption(f"退職日: {fmt_date(emp.get('retired_date'))}　{emp.get('retired_reason') or ''}")
            if st.button("復職", key=f"reinstate_{emp_id}"):
                _set_retired(api, rows, emp_id, False)
            return
        with st.expander("退職処理"):
            c1, c2 = st.columns(2)
            retired_date = c1.date_input("退職日", value=None, key=f"retire_date_{emp_id}")
            reason = c2.text_input("退職理由", key=f"retire_reason_{emp_id}")
            if st.button("退職", key=f"retire_{emp_id}", type="primary"):
                _set_retired(api, rows, emp_id, True, retired_date, reason)


def render_employees(api):
    rows = _employee_rows(api)
    if rows is None:
        return

    head, flt = st.columns([2, 3])
    head.subheader("従業員一覧")
    mode = flt.radio("表示", list(FILTER_LABELS), format_func=FILTER_LABELS.get, horizontal=True,
                     index=list(FILTER_LABELS).index(get_state("employee_filter")), label_visibility="collapsed")
    set_state("employee_filter", mode)

    frame = employees_frame(rows)
    shown = filter_employees(frame, mode)
    if len(shown) == 0:
        empty_state("該当する従業員がいません", icon="👥")
    shown_ids = set(shown["id"].astype(str)) if len(shown) else set()
    for emp in rows:
        if str(emp.get("id")) in shown_ids:
            render_employee_row(api, rows, emp)

    with st.form("new_employee", clear_on_submit=True):
        st.markdown("**従業員を追加**")
        c1, c2 = st.columns(2)
        name = c1.text_input("氏名")
        role = c2.selectbox("役職", list(ROLE_LABELS), format_func=ROLE_LABELS.get, index=list(ROLE_LABELS).index("sales"))
        email = c1.text_input("メール")
        phone = c2.text_input("電話番号")
        join_date = st.date_input("入社日", value=date.today())
        if st.form_submit_button("追加"):
            if not name.strip():
                st.error("氏名を入力してください")
                return
            result = api.create_employee({
                "name": name.strip(), "role": role, "email": email.strip(),
                "phone": phone.strip(), "join_date": join_date.isoformat(),
            })
            toast_result(result, "従業員を追加しました", "追加に失敗しました")
            if result.success:
                st.session_state.pop("admin_employees", None)
                st.rerun()


def render_masters(api):
    result = api.get_masters()
    if not result.success:
        error_banner(result, "マスタの取得に失敗しました")
        return
    masters = result.get("masters", result.data) or {}
    for master_type, label in MASTER_LABELS.items():
        with st.form(f"master_{master_type}"):
            st.markdown(f"**{label}**")
            text = st.text_area("1行に1項目", value="\n".join(masters.get(master_type) or []), height=140)
            if st.form_submit_button("保存"):
                values = [line.strip() for line in text.splitlines() if line.strip()]
                toast_result(api.save_masters(master_type, values), f"{label}を保存しました", "保存に失敗しました")


def permission_matrix(role_master: dict) -> pd.DataFrame:
    """Roles × page keys grid of booleans; missing cells default to allowed except admin-only pages."""
    rows = []
    for role in ROLE_LABELS:
        granted = role_master.get(role) or {}
        rows.append({key: bool(granted.get(key, role == "admin" or key not in ADMIN_ONLY_PAGES)) for key in PAGE_KEYS})
    return pd.DataFrame(rows, index=[ROLE_LABELS[r] for r in ROLE_LABELS])


def render_permissions(api):
    result = api.get_page_permissions()
    if not result.success:
        error_banner(result, "権限の取得に失敗しました")
        return
    matrix = permission_matrix(result.get("role_master") or {})
    edited = st.data_editor(matrix, use_container_width=True, key="permission_matrix",
                            column_config={k: st.column_config.CheckboxColumn(k) for k in PAGE_KEYS})
    if st.button("権限を保存", type="primary"):
        by_role = dict(zip(ROLE_LABELS, edited.to_dict(orient="records")))
        toast_result(api.save_page_permissions(role_master=by_role), "権限を保存しました", "保存に失敗しました")


def render_notices(api):
    with st.form("notice", clear_on_submit=True):
        st.markdown("**お知らせを投稿**")
        title = st.text_input("タイトル")
        body = st.text_area("本文")
        c1, c2 = st.columns(2)
        category = c1.text_input("カテゴリ")
        pinned = c2.checkbox("ピン留め")
        if st.form_submit_button("投稿", type="primary"):
            if not body.strip():
                st.error("本文を入力してください")
            else:
                toast_result(api.create_notice(body.strip(), title.strip(), category.strip(), pinned),
                             "お知らせを投稿しました", "投稿に失敗しました")

    result = api.get_notices(limit=20)
    if not result.success:
        error_banner(result, "お知らせの取得に失敗しました")
        return
    notices = extract_list(result, "notices")
    if not notices:
        empty_state("お知らせはまだありません", icon="📢")
    for n in notices:
        with st.container(border=True):
            pin = "📌 " if n.get("is_pinned") else ""
            st.markdown(f"{pin}**{n.get('title') or '（無題）'}**　<small>{fmt_date(n.get('created_at'))}</small>",
                        unsafe_allow_html=True)
            st.write(n.get("body") or "")


def main():
    ctx = page_setup("管理")
    if not ctx.user.is_admin:
        access_denied("アクセス権限がありません")
        return

    integration, company, employees, masters, permissions, notices = st.tabs(
        ["連携設定", "企業情報", "従業員管理", "マスタ管理", "ページ権限", "お知らせ"]
    )
    settings = _settings(ctx.api)
    with integration:
        render_integration(ctx.api, settings)
    with company:
        render_company(ctx.api, settings)
    with employees:
        render_employees(ctx.api)
    with masters:
        render_masters(ctx.api)
    with permissions:
        render_permissions(ctx.api)
    with notices:
        render_notices(ctx.api)


if __name__ == "__main__":
    main()
