"""
Reusable UI components and blocks.
"""
import streamlit as st
import pandas as pd
from typing import Optional, Dict, Any

from lapin_ops.api.envelope import ApiResult
from lapin_ops.api.envelope import NOT_CONFIGURED
from lapin_ops.ui.formatting import fmt_man_yen, fmt_percent, fmt_count, fmt_yen


def kpi_strip(metrics: Dict[str, Any],
              format_map: Optional[Dict[str, str]] = None,
              deltas: Optional[Dict[str, Optional[str]]] = None,
              columns: int = 4):
    """
    Render rows of KPI cards.

    Args:
        metrics: Dict of {label: value}
        format_map: Dict of {label: format_type} where format_type is
                    'man_yen', 'yen', 'percent', 'count', 'text'
        deltas: Optional preformatted delta per label
        columns: Cards per row
    """
    format_map = format_map or {}
    deltas = deltas or {}

    formatters = {
        "man_yen": fmt_man_yen,
        "yen": fmt_yen,
        "percent": fmt_percent,
        "count": fmt_count,
        "text": lambda x: str(x) if x is not None and pd.notna(x) else "—",
    }

    items = list(metrics.items())
    for start in range(0, len(items), columns):
        cols = st.columns(columns)
        for col, (label, value) in zip(cols, items[start:start + columns]):
            with col:
                formatter = formatters.get(format_map.get(label, "man_yen"), str)
                st.metric(label=label, value=formatter(value), delta=deltas.get(label))


def error_banner(result: ApiResult, title: str, retry_key: Optional[str] = None):
    """Render a failed result with an optional manual retry button."""
    if result.error and result.error.code == NOT_CONFIGURED:
        st.warning(f"{title}: GAS WebアプリURLが設定されていません（GAS_WEB_APP_URL）")
    else:
        st.error(f"{title}: {result.error_message or '不明なエラー'}")
    if retry_key and st.button("再読み込み", key=retry_key):
        st.rerun()


def toast_result(result: ApiResult, success_message: str, failure_message: str = "失敗しました"):
    if result.success:
        st.toast(success_message, icon="✅")
    else:
        st.toast(f"{failure_message}: {result.error_message or ''}", icon="⚠️")


def empty_state(message: str, icon: str = "📭"):
    """Render empty state placeholder."""
    st.markdown(
        f"""
        <div style="text-align: center; padding: 40px; color: #6c757d;">
            <div style="font-size: 40px;">{icon}</div>
            <div>{message}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )


def status_badge(label: str, color: str) -> str:
    """Inline HTML badge."""
    return (
        f'<span style="background:{color}22;color:{color};padding:2px 8px;'
        f'border-radius:10px;font-size:12px;font-weight:600;">{label}</span>'
    )


def access_denied(message: str = "このページは社長（管理者）専用です。"):
    st.markdown("### 🔒 アクセスできません")
    st.info(message)
