"""
Project list with search, status / work-type chips and pagination.
"""
import streamlit as st

st.set_page_config(page_title="案件一覧", page_icon="📁", layout="wide")

from datetime import date
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from lapin_ops.config import STATUS_FILTER_OPTIONS, WORK_TYPE_FILTERS
from lapin_ops.data.loader import load_projects
from lapin_ops.metrics.projects import (
    filter_projects, paginate, total_pages, parse_work_types, status_label,
)
from lapin_ops.ui.components import error_banner, empty_state
from lapin_ops.ui.formatting import fmt_amount_short, fmt_date
from lapin_ops.ui.layout import page_setup
from lapin_ops.ui.state import get_state, set_state

DETAIL_PAGE = "pages/4_Project_Detail.py"
NEW_PAGE = "pages/3_New_Project.py"


def render_search(flt):
    cols = st.columns([2, 2, 2, 1, 1, 1])
    flt.project_number = cols[0].text_input("管理番号", value=flt.project_number, placeholder="例: 2026-001")
    flt.customer_name = cols[1].text_input("お客様名", value=flt.customer_name)
    flt.assigned_name = cols[2].text_input("担当者名", value=flt.assigned_name)

    this_year = date.today().year
    years = [""] + [str(y) for y in range(this_year, this_year - 3, -1)]
    months = [""] + [f"{m:02d}" for m in range(1, 13)]
    flt.year = cols[3].selectbox("年", years, index=years.index(flt.year) if flt.year in years else 0,
                                 format_func=lambda y: f"{y}年" if y else "--")
    flt.month = cols[4].selectbox("月", months, index=months.index(flt.month) if flt.month in months else 0,
                                  format_func=lambda m: f"{m}月" if m else "--")
    with cols[5]:
        st.write("")
        if st.button("リセット", key="projects_reset_search"):
            flt.reset_search()
            set_state("project_page", 1)
            st.rerun()


def render_chips(flt):
    st.markdown("**ステータス**")
    statuses = st.multiselect(
        "ステータス", STATUS_FILTER_OPTIONS, default=sorted(flt.statuses),
        format_func=status_label, label_visibility="collapsed",
    )
    st.markdown("**工事種別**")
    work_types = st.multiselect(
        "工事種別", WORK_TYPE_FILTERS, default=sorted(flt.work_types), label_visibility="collapsed",
    )
    if set(statuses) != flt.statuses or set(work_types) != flt.work_types:
        flt.statuses = set(statuses)
        flt.work_types = set(work_types)
        set_state("project_page", 1)
    if st.button("クリア", key="projects_clear_chips", use_container_width=True):
        flt.clear_chips()
        set_state("project_page", 1)
        st.rerun()


def main():
    ctx = page_setup("案件一覧")

    with st.spinner("読み込み中..."):
        result = ctx.api.get_projects()
    if not result.success:
        error_banner(result, "案件の取得に失敗しました", retry_key="projects_retry")
        return
    projects = load_projects(result)

    flt = get_state("project_filter")
    render_search(flt)

    side, body = st.columns([1, 4])
    with side:
        render_chips(flt)

    filtered = filter_projects(projects, flt)
    pages = total_pages(len(filtered))
    page = min(get_state("project_page"), pages)

    with body:
        head, action = st.columns([4, 1])
        head.subheader(f"案件一覧（{len(filtered)}件）")
        if action.button("＋ 新規登録", type="primary", use_container_width=True):
            st.switch_page(NEW_PAGE)

        rows = paginate(filtered, page)
        if len(rows) == 0:
            empty_state("案件が見つかりません")
        else:
            table = rows.assign(
                work_type=rows["work_type"].map(lambda v: ", ".join(parse_work_types(v))),
                estimated_amount=rows["estimated_amount"].map(lambda v: f"{fmt_amount_short(v)}円"),
                status=rows["status"].map(status_label),
                inquiry_date=rows["inquiry_date"].map(fmt_date),
            )[["project_number", "customer_name", "address", "work_type",
               "estimated_amount", "assigned_to_name", "status", "inquiry_date"]]
            event = st.dataframe(
                table.rename(columns={
                    "project_number": "管理番号", "customer_name": "顧客名", "address": "住所",
                    "work_type": "工事種別", "estimated_amount": "見込み金額",
                    "assigned_to_name": "営業担当者", "status": "ステータス", "inquiry_date": "問い合わせ日",
                }),
                hide_index=True,
                use_container_width=True,
                on_select="rerun",
                selection_mode="single-row",
                key="projects_table",
            )
            selected = event.selection.rows if event else []
            if selected:
                set_state("selected_project_id", str(rows.iloc[selected[0]]["id"]))
                st.switch_page(DETAIL_PAGE)

        prev_col, label_col, next_col = st.columns([1, 2, 1])
        if prev_col.button("前へ", disabled=page <= 1, key="projects_prev"):
            set_state("project_page", max(1, page - 1))
            st.rerun()
        label_col.markdown(f"<div style='text-align:center'>ページ {page} / {pages}</div>", unsafe_allow_html=True)
        if next_col.button("次へ", disabled=page >= pages, key="projects_next"):
            set_state("project_page", min(pages, page + 1))
            st.rerun()


if __name__ == "__main__":
    main()
