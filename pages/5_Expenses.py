"""
Expense registration with receipt OCR, plus accounting-import tracking.
"""
import streamlit as st

st.set_page_config(page_title="経費登録", page_icon="🧾", layout="wide")

from datetime import date
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from lapin_ops.api.fanout import fetch_all
from lapin_ops.config import EXPENSE_CATEGORIES, DEFAULT_EXPENSE_CATEGORY
from lapin_ops.data.loader import load_projects, load_expenses
from lapin_ops.metrics.expenses import (
    to_data_url, ocr_prefill, build_expense_payload, toggle_accounting, monthly_progress,
)
from lapin_ops.metrics.projects import ValidationError
from lapin_ops.ui.components import error_banner, empty_state
from lapin_ops.ui.formatting import fmt_yen, fmt_date
from lapin_ops.ui.layout import page_setup
from lapin_ops.ui.state import get_state, set_state

FORM_DEFAULTS = {
    "expense_project": "",
    "expense_amount": 0,
    "expense_date": None,
    "expense_category": DEFAULT_EXPENSE_CATEGORY,
    "expense_memo": "",
}


def _reset_form():
    for key, value in FORM_DEFAULTS.items():
        st.session_state[key] = value if value is not None else date.today()
    st.session_state.pop("expense_receipt", None)
    st.session_state.pop("expense_receipt_digest", None)


def _apply_prefill(prefill: dict):
    mapping = {
        "amount": "expense_amount",
        "expense_date": "expense_date",
        "category": "expense_category",
        "description": "expense_memo",
    }
    for src, key in mapping.items():
        if src in prefill:
            st.session_state[key] = prefill[src]


def render_receipt(api):
    upload = st.file_uploader("レシート・領収書をアップロード", type=["jpg", "jpeg", "png"], key="expense_upload")
    if upload is None:
        return
    raw = upload.getvalue()
    digest = f"{upload.name}:{len(raw)}"
    st.image(raw, caption="レシート", width=240)
    if st.session_state.get("expense_receipt_digest") == digest:
        return

    data_url = to_data_url(raw, upload.type or "image/jpeg")
    st.session_state["expense_receipt"] = data_url
    st.session_state["expense_receipt_digest"] = digest
    with st.spinner("OCR読み取り中..."):
        prefill = ocr_prefill(api.ocr_receipt(data_url))
    if prefill:
        _apply_prefill(prefill)
        st.session_state["expense_ocr"] = prefill
        st.rerun()


def render_form(api, project_options: dict):
    if st.session_state.pop("expense_reset", False):
        _reset_form()
    for key, value in FORM_DEFAULTS.items():
        if key not in st.session_state:
            st.session_state[key] = value if value is not None else date.today()

    if st.session_state.get("expense_ocr"):
        with st.expander("OCR結果（参考）"):
            st.json(st.session_state["expense_ocr"], expanded=True)

    with st.form("expense_form"):
        project = st.selectbox("顧客番号 / 案件", list(project_options), format_func=project_options.get,
                               key="expense_project")
        c1, c2 = st.columns(2)
        amount = c1.number_input("金額", min_value=0, step=100, key="expense_amount")
        expense_date = c2.date_input("日付", key="expense_date")
        category = st.selectbox("カテゴリ", EXPENSE_CATEGORIES, key="expense_category")
        memo = st.text_area("メモ", key="expense_memo")
        submitted = st.form_submit_button("登録する", type="primary")

    if not submitted:
        return
    try:
        payload = build_expense_payload(
            expense_date, amount, category, memo, project,
            st.session_state.get("expense_receipt", ""),
        )
    except ValidationError as e:
        st.error(str(e))
        return

    result = api.create_expense(payload)
    if result.success:
        st.toast("スプレッドシートに登録しました", icon="✅")
        st.session_state.pop("expense_ocr", None)
        set_state("expense_frame", None)
        st.session_state["expense_reset"] = True
        st.rerun()
    else:
        st.error(result.error_message or "登録に失敗しました")


def render_list(api, expenses):
    progress = monthly_progress(expenses)
    st.markdown(f"**今月の会計取込**: {progress['imported']} / {progress['total']}件"
                f"（未取込 {progress['unprocessed']}件）")
    st.progress(progress["rate"] / 100)

    if len(expenses) == 0:
        empty_state("経費データがありません")
        return

    for _, row in expenses.iterrows():
        cols = st.columns([2, 2, 2, 3, 3, 2])
        cols[0].write(fmt_date(row["expense_date"]))
        cols[1].write(row["category"] or "—")
        cols[2].write(fmt_yen(row["amount"]))
        cols[3].write(f"{row['project_number'] or ''} {row['customer_name'] or ''}".strip() or "—")
        cols[4].write(row["description"] or "")
        label = "取込済" if row["accounting_imported"] else "未取込"
        if cols[5].button(label, key=f"acct_{row['id']}", type="primary" if row["accounting_imported"] else "secondary"):
            updated, result = toggle_accounting(expenses, row["id"], api.update_expense_accounting)
            set_state("expense_frame", updated)
            if not result.success:
                st.toast("更新に失敗しました", icon="⚠️")
            st.rerun()


def main():
    ctx = page_setup("経費登録")

    expenses = get_state("expense_frame")
    with st.spinner("読み込み中..."):
        calls = {"projects": lambda: ctx.api.get_projects(limit=200)}
        if expenses is None:
            calls["expenses"] = lambda: ctx.api.get_expenses(limit=100)
        results = fetch_all(calls)

    projects = load_projects(results["projects"])
    project_options = {"": "案件を選択"}
    project_options.update({
        str(p["id"]): f"{p['project_number'] or ''} {p['customer_name'] or ''}".strip()
        for _, p in projects.iterrows()
    })

    if expenses is None:
        expenses = load_expenses(results["expenses"])
        if results["expenses"].success:
            set_state("expense_frame", expenses)
        else:
            error_banner(results["expenses"], "経費の取得に失敗しました", retry_key="expenses_retry")

    left, right = st.columns([2, 3])
    with left:
        st.subheader("新規経費登録")
        render_receipt(ctx.api)
        render_form(ctx.api, project_options)
    with right:
        st.subheader("経費一覧")
        render_list(ctx.api, expenses)


if __name__ == "__main__":
    main()
