"""
Thank-you letters and direct mail: template, recipients, preview.
"""
import streamlit as st

st.set_page_config(page_title="お礼状・DM", page_icon="✉️", layout="wide")

from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from lapin_ops.config import MAIL_TEMPLATES
from lapin_ops.data.loader import load_projects
from lapin_ops.metrics.mailing import (
    send_list, toggle_select, toggle_select_all, is_all_selected, render_template,
)
from lapin_ops.ui.components import error_banner, empty_state
from lapin_ops.ui.layout import page_setup
from lapin_ops.ui.state import get_state, set_state


def main():
    ctx = page_setup("お礼状・DM")

    with st.spinner("読み込み中..."):
        result = ctx.api.get_projects()
    if not result.success:
        error_banner(result, "顧客データの取得に失敗しました", retry_key="mail_retry")
        return

    recipients = send_list(load_projects(result))
    selected = get_state("mail_selected")
    all_ids = list(recipients["id"])

    template = st.radio(
        "テンプレート", list(MAIL_TEMPLATES), format_func=lambda k: MAIL_TEMPLATES[k][0],
        index=list(MAIL_TEMPLATES).index(get_state("mail_template")), horizontal=True,
    )
    set_state("mail_template", template)

    left, right = st.columns([3, 2])
    with left:
        head, toggle = st.columns([3, 1])
        head.subheader(f"送付先（{len(selected)}件選択中）")
        label = "全解除" if is_all_selected(selected, all_ids) else "全選択"
        if toggle.button(label, disabled=not all_ids, use_container_width=True):
            set_state("mail_selected", toggle_select_all(selected, all_ids))
            st.rerun()

        if len(recipients) == 0:
            empty_state("送付対象の顧客がいません", icon="✉️")
        for _, row in recipients.iterrows():
            cols = st.columns([1, 3, 4, 2])
            checked = cols[0].checkbox("選択", value=row["id"] in selected, key=f"mail_{row['id']}_{row['id'] in selected}",
                                       label_visibility="collapsed")
            if checked != (row["id"] in selected):
                set_state("mail_selected", toggle_select(selected, row["id"]))
                st.rerun()
            cols[1].write(row["name"] or "")
            cols[2].caption(row["last_work"])
            cols[3].caption(row["status"])

    with right:
        st.subheader("プレビュー")
        first = recipients[recipients["id"].isin(selected)].head(1)
        name = first.iloc[0]["name"] if len(first) else ""
        st.text_area("本文", value=render_template(template, name or ""), height=260, disabled=True)
        if st.button("印刷用に出力", type="primary", disabled=not selected):
            letters = [
                render_template(template, row["name"] or "")
                for _, row in recipients[recipients["id"].isin(selected)].iterrows()
            ]
            st.download_button("テキストをダウンロード", "\n\n\f\n\n".join(letters),
                               file_name=f"{template}.txt", mime="text/plain")


if __name__ == "__main__":
    main()
