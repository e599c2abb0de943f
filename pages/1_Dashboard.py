"""
Sales dashboard: period KPIs, bonus progress and breakdown charts.
"""
import streamlit as st

st.set_page_config(page_title="ダッシュボード", page_icon="📊", layout="wide")

from datetime import date
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from lapin_ops.api.retry import RetryPolicy, call_with_retry
from lapin_ops.config import PERIOD_OPTIONS
from lapin_ops.metrics.bonus import achievement_rate, breakeven_position, surplus
from lapin_ops.metrics.periods import resolve_period, monthly_series, share_percentages, month_over_month
from lapin_ops.ui.charts import donut, sales_bar, bonus_progress_bar
from lapin_ops.ui.components import kpi_strip, error_banner, empty_state
from lapin_ops.ui.formatting import fmt_man_yen, fmt_percent, fmt_delta
from lapin_ops.ui.layout import page_setup, section_header
from lapin_ops.ui.state import get_state, set_state, get_generations

GRANULARITY_LABELS = {"month": "月別", "quarter": "四半期", "year": "年間"}


# =============================================================================
# DATA
# =============================================================================

def fetch_dashboard(api, period: str):
    start, end = resolve_period(period)
    generations = get_generations()
    generation = generations.begin("dashboard")
    result = call_with_retry(
        lambda: api.get_dashboard(start, end),
        RetryPolicy.for_dashboard(),
    )
    if not generations.is_current("dashboard", generation):
        return None
    return result


# =============================================================================
# SECTIONS
# =============================================================================

def render_kpis(data: dict):
    kpi = data.get("kpi") or {}
    comparison = data.get("comparison") or {}
    avg = kpi.get("average_contract_amount") or 0

    kpi_strip(
        {
            "担当案件数": kpi.get("assigned_projects_count"),
            "見込み金額": kpi.get("assigned_projects_amount"),
            "見積もり数": kpi.get("sent_estimates_count"),
            "契約数": kpi.get("contract_count"),
            "契約金額": kpi.get("contract_amount"),
            "契約率": kpi.get("contract_rate"),
            "契約平均単価": avg if avg > 0 else None,
            "粗利率": kpi.get("gross_profit_rate"),
        },
        format_map={
            "担当案件数": "count",
            "見積もり数": "count",
            "契約数": "count",
            "契約率": "percent",
            "粗利率": "percent",
        },
        deltas={
            "担当案件数": fmt_delta(comparison.get("assigned_projects_count_change")),
            "契約金額": fmt_delta(comparison.get("contract_amount_change")),
            "契約率": fmt_delta(comparison.get("contract_rate_change")),
        },
    )


def render_bonus_progress(bonus: dict):
    section_header(f"🏆 マイボーナス進捗（{bonus.get('period_label', '')}）", bonus.get("period_months"))

    fixed = bonus.get("fixed_cost") or 0
    gross = bonus.get("gross_profit") or 0
    target = bonus.get("target_amount") or 0
    over_fixed = surplus(gross, fixed, bonus.get("surplus"))

    cols = st.columns(4)
    cols[0].metric("固定費負担額", fmt_man_yen(fixed))
    cols[1].metric("期間粗利", fmt_man_yen(gross))
    cols[2].metric("粗利 − 固定費", ("+" if over_fixed >= 0 else "-") + fmt_man_yen(abs(over_fixed)))
    cols[3].metric("ボーナス見込み", fmt_man_yen(bonus.get("bonus_estimate")),
                   help=f"超過分 × {bonus.get('distribution_rate', 0)}%")

    progress = achievement_rate(gross, target)
    st.plotly_chart(
        bonus_progress_bar(progress, breakeven_position(fixed, target)),
        use_container_width=True,
        config={"displayModeBar": False},
    )
    st.caption(
        f"0 ／ 固定費 {fmt_man_yen(fixed)} ／ 目標 {fmt_man_yen(target) if target > 0 else '—'}　"
        f"現在: {fmt_man_yen(gross)}（達成率 {fmt_percent(progress)}）"
    )


def render_charts(charts: dict):
    monthly = monthly_series(charts.get("monthly_sales") or [])
    if any(monthly):
        granularity = st.radio(
            "表示単位",
            options=list(GRANULARITY_LABELS),
            format_func=GRANULARITY_LABELS.get,
            horizontal=True,
            index=list(GRANULARITY_LABELS).index(get_state("chart_granularity")),
            key="dashboard_granularity",
        )
        set_state("chart_granularity", granularity)
        st.plotly_chart(sales_bar(monthly, granularity, "売上推移"), use_container_width=True)
        change = fmt_delta(month_over_month(monthly, date.today().month))
        if granularity == "month" and change:
            st.caption(f"今月の前月比: {change}")

    routes = charts.get("acquisition_route") or []
    work_types = charts.get("work_type") or []
    col1, col2 = st.columns(2)
    with col1:
        if routes:
            counts = [r.get("count") or 0 for r in routes]
            st.plotly_chart(donut([r.get("route") for r in routes], counts, "集客ルート別案件数"),
                            use_container_width=True)
            shares = share_percentages(counts)
            st.caption(" ／ ".join(f"{r.get('route')} {s:.0f}%" for r, s in zip(routes, shares)))
    with col2:
        if work_types:
            st.plotly_chart(
                donut([w.get("type") for w in work_types], [w.get("amount") or 0 for w in work_types], "工事種別別売上"),
                use_container_width=True,
            )


def main():
    ctx = page_setup("ダッシュボード")

    period = st.selectbox(
        "期間",
        PERIOD_OPTIONS,
        index=PERIOD_OPTIONS.index(get_state("dashboard_period")),
        key="dashboard_period_select",
    )
    set_state("dashboard_period", period)

    with st.spinner("読み込み中..."):
        result = fetch_dashboard(ctx.api, period)
    if result is None:
        st.stop()

    if not result.success or not result.data:
        error_banner(result, "ダッシュボードデータの取得に失敗しました", retry_key="dashboard_retry")
        empty_state("GAS WebアプリURLが正しく設定されているか確認してください", icon="☁️")
        return

    data = result.data
    st.subheader(f"営業ダッシュボード: {data.get('user_name') or ctx.user.name}")
    render_kpis(data)

    if data.get("bonus_progress"):
        st.divider()
        render_bonus_progress(data["bonus_progress"])

    st.divider()
    render_charts(data.get("charts") or {})


if __name__ == "__main__":
    main()
