"""
Followup queue for sent estimates.
"""
import streamlit as st

st.set_page_config(page_title="追客管理", page_icon="📞", layout="wide")

from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from lapin_ops.data.loader import extract_list
from lapin_ops.metrics.followups import (
    followup_badge, elapsed_label, overdue_count, dismiss, BADGE_COLORS,
)
from lapin_ops.ui.components import error_banner, empty_state, status_badge
from lapin_ops.ui.formatting import fmt_date
from lapin_ops.ui.layout import page_setup
from lapin_ops.ui.state import get_state, set_state


def main():
    ctx = page_setup("追客管理")

    with st.spinner("読み込み中..."):
        result = ctx.api.get_followups()
    if not result.success:
        error_banner(result, "追客データの取得に失敗しました", retry_key="followups_retry")
        return

    dismissed = get_state("dismissed_followups")
    followups = extract_list(result, "followups")
    for item_id in dismissed:
        followups = dismiss(followups, item_id)

    head, count = st.columns([3, 1])
    head.subheader(f"追客管理（{len(followups)}件）")
    reported = None if dismissed else result.get("overdue_count")
    count.markdown(f"🔴 期限超過: **{overdue_count(followups, reported)}件**")

    if not followups:
        empty_state("対応が必要な追客はありません", icon="✅")
        return

    for item in followups:
        badge = followup_badge(item.get("is_overdue"), item.get("days_since_estimate"))
        with st.container(border=True):
            info, actions = st.columns([4, 1])
            with info:
                st.markdown(
                    f"**{item.get('customer_name') or ''} / {item.get('project_number') or ''}**　"
                    f"{status_badge(badge, BADGE_COLORS[badge])}　"
                    f"{elapsed_label(item.get('is_overdue'), item.get('days_since_estimate'))}",
                    unsafe_allow_html=True,
                )
                if item.get("estimate_date"):
                    st.caption(f"見積もり日: {fmt_date(item.get('estimate_date'))}")
                if item.get("assigned_to_name"):
                    st.caption(f"担当: {item['assigned_to_name']}")
            with actions:
                done = st.button("対応済み", key=f"fu_done_{item.get('id')}", type="primary", use_container_width=True)
                skip = st.button("スキップ", key=f"fu_skip_{item.get('id')}", use_container_width=True)
                if done or skip:
                    set_state("dismissed_followups", dismissed + [str(item.get("id"))])
                    st.rerun()


if __name__ == "__main__":
    main()
