"""
After-care inspection schedule.
"""
import streamlit as st

st.set_page_config(page_title="点検スケジュール", page_icon="🗓️", layout="wide")

from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from lapin_ops.data.loader import extract_list
from lapin_ops.metrics.followups import inspection_type_label, inspection_status_label
from lapin_ops.ui.components import error_banner, empty_state, status_badge
from lapin_ops.ui.layout import page_setup

STATUS_BADGE_COLORS = {
    "scheduled": "#3b82f6",
    "completed": "#06C755",
    "overdue": "#ef4444",
}


def main():
    ctx = page_setup("点検スケジュール")

    with st.spinner("読み込み中..."):
        result = ctx.api.get_inspections()
    if not result.success:
        error_banner(result, "点検データの取得に失敗しました", retry_key="inspections_retry")
        return

    inspections = extract_list(result, "inspections")
    st.subheader(f"点検スケジュール（{len(inspections)}件）")
    if not inspections:
        empty_state("予定されている点検はありません", icon="🗓️")
        return

    for item in inspections:
        status = item.get("status")
        with st.container(border=True):
            st.markdown(
                f"{status_badge(inspection_status_label(status), STATUS_BADGE_COLORS.get(status, '#6b7280'))}　"
                f"**{item.get('customer_name') or ''}** / {item.get('project_number') or ''}　"
                f"{status_badge(inspection_type_label(item.get('inspection_type')), '#3b82f6')}",
                unsafe_allow_html=True,
            )
            if item.get("address"):
                st.caption(f"📍 {item['address']}")
            if item.get("assigned_to_name"):
                st.caption(f"担当: {item['assigned_to_name']}")


if __name__ == "__main__":
    main()
