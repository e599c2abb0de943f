"""
Customer map: markers for every located project, search and focus.
"""
import streamlit as st

st.set_page_config(page_title="顧客マップ", page_icon="🗺️", layout="wide")

from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from lapin_ops.config import STATUS_LABELS, STATUS_COLORS
from lapin_ops.data.geocode import to_map_customers, resolve_focus, filter_customers, map_center
from lapin_ops.data.loader import load_projects
from lapin_ops.ui.charts import customer_map
from lapin_ops.ui.components import error_banner, empty_state, status_badge
from lapin_ops.ui.layout import page_setup
from lapin_ops.ui.state import get_state, set_state, current_user_id

DETAIL_PAGE = "pages/4_Project_Detail.py"
FOCUS_ZOOM = 16


@st.cache_data(show_spinner=False, ttl=3600)
def locate_focus(projects, customers, project_id: str):
    return resolve_focus(projects, customers, project_id)


def render_info(marker: dict):
    status = marker.get("status")
    st.markdown(f"#### {marker.get('name') or ''}")
    st.markdown(
        status_badge(STATUS_LABELS.get(status, status or "—"), STATUS_COLORS.get(status, "#6b7280")),
        unsafe_allow_html=True,
    )
    st.caption(f"📍 {marker.get('address') or '—'}")
    if marker.get("last_work"):
        st.caption(f"最終工事: {marker['last_work']}")
    if st.button("案件詳細を見る", key="map_open_detail", type="primary"):
        set_state("selected_project_id", marker["id"])
        st.switch_page(DETAIL_PAGE)


def main():
    ctx = page_setup("顧客マップ")

    with st.spinner("読み込み中..."):
        result = ctx.api.get_projects()
    if not result.success:
        error_banner(result, "顧客データの取得に失敗しました", retry_key="map_retry")
        return

    projects = load_projects(result)
    customers = to_map_customers(projects)

    focus = None
    focus_id = st.query_params.get("project_id") or st.session_state.pop("map_focus_id", None)
    if focus_id:
        st.query_params["project_id"] = focus_id
        with st.spinner("住所を検索中..."):
            customers, focus = locate_focus(projects, customers, str(focus_id))
        if focus is None:
            st.warning("指定された案件の位置を特定できませんでした")

    search, mine = st.columns([3, 1])
    query = search.text_input("顧客名・住所で検索", value=get_state("map_query"), key="map_query_input")
    my_only = mine.toggle("自分の顧客のみ", value=get_state("map_my_only"), key="map_my_only_input")
    set_state("map_query", query)
    set_state("map_my_only", my_only)

    shown = filter_customers(customers, query, current_user_id() if my_only else None)
    st.caption(f"表示中: {len(shown)}件 / 全{len(customers)}件　マップエリア: 埼玉県狭山市・入間市周辺")

    if len(shown) == 0:
        empty_state("表示できる顧客がありません", icon="🗺️")
        return

    map_col, info_col = st.columns([3, 1])
    with map_col:
        if focus is not None:
            center, zoom = (focus["lat"], focus["lng"]), FOCUS_ZOOM
        else:
            center, zoom = map_center(shown), None
        st.plotly_chart(customer_map(shown, center=center, zoom=zoom), use_container_width=True, key="customer_map")

    with info_col:
        options = {str(row["id"]): row["name"] or "" for _, row in shown.iterrows()}
        ids = list(options)
        default = ids.index(focus["id"]) if focus is not None and focus["id"] in options else 0
        picked = st.selectbox("顧客", ids, index=default, format_func=options.get)
        render_info(shown[shown["id"] == picked].iloc[0].to_dict())


if __name__ == "__main__":
    main()
