"""
Profit-sharing overview for the whole team (admin only).
"""
import streamlit as st

st.set_page_config(page_title="ボーナス計算", page_icon="💴", layout="wide")

from pathlib import Path
import sys

import pandas as pd

sys.path.insert(0, str(Path(__file__).parent.parent))

from lapin_ops.config import ROLE_LABELS
from lapin_ops.data.loader import load_bonus_employees
from lapin_ops.metrics.bonus import bonus_table, breakeven_position, summary_from_payload, surplus
from lapin_ops.ui.charts import bonus_progress_bar
from lapin_ops.ui.components import kpi_strip, error_banner, empty_state, status_badge, access_denied
from lapin_ops.ui.formatting import fmt_man_yen, fmt_man_yen_signed, fmt_percent
from lapin_ops.ui.layout import page_setup, section_header


def render_employee(row):
    with st.container(border=True):
        head, badge = st.columns([4, 1])
        head.markdown(f"**{row['name']}**　<small>{ROLE_LABELS.get(row['role'], row['role'] or '')}</small>",
                      unsafe_allow_html=True)
        badge.markdown(status_badge(row["achievement_label"], row["color"]), unsafe_allow_html=True)

        cols = st.columns(5)
        cols[0].metric("契約件数", f"{int(row['contract_count'] or 0)}件")
        cols[1].metric("粗利", fmt_man_yen(row["gross_profit"]))
        cols[2].metric("固定費", fmt_man_yen(row["fixed_cost"]))
        reported = row["surplus"] if pd.notna(row["surplus"]) else None
        cols[3].metric("粗利 − 固定費", fmt_man_yen_signed(surplus(row["gross_profit"], row["fixed_cost"], reported)))
        cols[4].metric("ボーナス見込み", fmt_man_yen(row["bonus_estimate"]))

        progress = row["progress_pct"] if pd.notna(row["progress_pct"]) else None
        st.plotly_chart(
            bonus_progress_bar(progress, breakeven_position(row["fixed_cost"], row["target_amount"]),
                               row["color"]),
            use_container_width=True, key=f"bonus_bar_{row['user_id']}",
        )
        st.caption(f"目標 {fmt_man_yen(row['target_amount']) if row['target_amount'] else '—'}　"
                   f"達成率 {fmt_percent(progress)}")


def main():
    ctx = page_setup("ボーナス計算")
    if not ctx.user.is_admin:
        access_denied()
        return

    with st.spinner("読み込み中..."):
        result = ctx.api.get_bonus_overview()
    if not result.success:
        error_banner(result, "ボーナスデータの取得に失敗しました", retry_key="bonus_retry")
        return

    period = result.get("period") or {}
    employees = load_bonus_employees(result)
    summary = summary_from_payload(result.get("summary"), employees)

    section_header(f"💴 ボーナス計算（{period.get('label', '')}）", period.get("months"))
    kpi_strip(
        {
            "対象人数": summary["total_employees"],
            "契約件数": summary["total_contract_count"],
            "粗利合計": summary["total_gross_profit"],
            "ボーナス合計": summary["total_bonus"],
        },
        format_map={"対象人数": "text", "契約件数": "count"},
    )

    table = bonus_table(employees)
    if len(table) == 0:
        empty_state("対象となる社員がいません", icon="💴")
        return
    st.divider()
    for _, row in table.iterrows():
        render_employee(row)


if __name__ == "__main__":
    main()
