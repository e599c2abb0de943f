"""
Standard chart wrappers using Plotly.
"""
import plotly.express as px
import plotly.graph_objects as go
import pandas as pd
from typing import List, Optional

from lapin_ops.config import STATUS_COLORS, STATUS_LABELS, config
from lapin_ops.metrics.periods import bucket_quarterly, bucket_yearly


# =============================================================================
# CHART THEME
# =============================================================================

CHART_COLORS = ["#06C755", "#3b82f6", "#f59e0b", "#8b5cf6", "#ef4444", "#6366f1", "#10b981"]

CHART_TEMPLATE = "plotly_white"

DEFAULT_LAYOUT = {
    "template": CHART_TEMPLATE,
    "font": {"family": "Noto Sans JP, sans-serif", "size": 12},
    "margin": {"l": 40, "r": 20, "t": 40, "b": 40},
    "hoverlabel": {"bgcolor": "white"},
}

MONTH_LABELS = [f"{m}月" for m in range(1, 13)]
QUARTER_LABELS = ["Q1", "Q2", "Q3", "Q4"]


def apply_layout(fig: go.Figure, **kwargs) -> go.Figure:
    """Apply standard layout to figure."""
    layout = {**DEFAULT_LAYOUT, **kwargs}
    fig.update_layout(**layout)
    return fig


# =============================================================================
# DASHBOARD
# =============================================================================

def donut(labels: List[str], values: List[float], title: str = "") -> go.Figure:
    fig = go.Figure(go.Pie(
        labels=labels,
        values=values,
        hole=0.55,
        marker={"colors": CHART_COLORS[:len(labels)]},
        sort=False,
    ))
    fig.update_layout(title=title, legend={"orientation": "h", "y": -0.1})
    return apply_layout(fig, height=320)


def sales_bar(monthly: List[float], granularity: str = "month", title: str = "") -> go.Figure:
    """
    Sales bars from twelve monthly slots, optionally bucketed.

    Args:
        monthly: Output of ``monthly_series``.
        granularity: month | quarter | year
    """
    if granularity == "quarter":
        x, y = QUARTER_LABELS, bucket_quarterly(monthly)
    elif granularity == "year":
        x, y = ["通年"], bucket_yearly(monthly)
    else:
        x, y = MONTH_LABELS, monthly

    fig = go.Figure(go.Bar(x=x, y=y, marker_color=CHART_COLORS[0]))
    fig.update_layout(title=title, yaxis={"tickformat": ",.0f", "ticksuffix": "円"})
    return apply_layout(fig, height=320)


# =============================================================================
# BONUS
# =============================================================================

def bonus_progress_bar(progress_pct: Optional[float],
                       breakeven_pct: Optional[float],
                       color: str = CHART_COLORS[0]) -> go.Figure:
    """
    Horizontal 0..100 bar with the fixed-cost marker.

    A None progress renders an empty track; a None breakeven hides the marker.
    """
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=[100], y=[""], orientation="h",
        marker_color="#e5e7eb", hoverinfo="skip", showlegend=False,
    ))
    if progress_pct is not None:
        fig.add_trace(go.Bar(
            x=[progress_pct], y=[""], orientation="h",
            marker_color=color, showlegend=False,
            hovertemplate="%{x:.1f}%<extra></extra>",
        ))
    if breakeven_pct is not None:
        fig.add_vline(x=breakeven_pct, line_width=2, line_dash="dash", line_color="#374151")
    fig.update_layout(
        barmode="overlay",
        xaxis={"range": [0, 100], "ticksuffix": "%", "showgrid": False},
        yaxis={"showticklabels": False},
    )
    return apply_layout(fig, height=90, margin={"l": 10, "r": 10, "t": 10, "b": 25})


# =============================================================================
# MAP
# =============================================================================

def customer_map(customers: pd.DataFrame,
                 center: Optional[tuple] = None,
                 zoom: Optional[int] = None) -> go.Figure:
    """OpenStreetMap-tiled marker map coloured by project status."""
    df = customers.copy()
    df["status_label"] = df["status"].map(lambda s: STATUS_LABELS.get(s, s))
    color_map = {STATUS_LABELS.get(k, k): v for k, v in STATUS_COLORS.items()}
    lat, lng = center or (config.map_center_lat, config.map_center_lng)

    fig = px.scatter_map(
        df,
        lat="lat",
        lon="lng",
        color="status_label",
        color_discrete_map=color_map,
        hover_name="name",
        hover_data={"address": True, "last_work": True, "lat": False, "lng": False, "status_label": False},
        custom_data=["id"],
        zoom=zoom if zoom is not None else config.map_zoom,
        center={"lat": lat, "lon": lng},
        map_style="open-street-map",
    )
    fig.update_traces(marker={"size": 12})
    return apply_layout(fig, height=560, margin={"l": 0, "r": 0, "t": 0, "b": 0},
                        legend={"orientation": "h", "y": 1.02, "title": None})
