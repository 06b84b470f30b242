"""
Per-account cost trend bar charts.

Figures are built with plotly and written as PNG through kaleido.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import plotly.graph_objects as go

from ..analysis.models import AccountCostReport, TrendPoint

logger = logging.getLogger(__name__)

BAR_COLOR = "#FF9900"


@dataclass(frozen=True)
class ChartResult:
    """Outcome of one chart write."""

    profile: str
    account_id: str
    path: Path | None
    success: bool
    skipped: bool = False
    error_message: str | None = None


def chart_filename(profile: str, account_id: str) -> str:
    return f"cost_trend_profile_{profile}_account_{account_id}.png"


def y_axis_upper_bound(points: Sequence[TrendPoint], headroom: float = 100.0) -> float:
    """Largest cost rounded up, at least 1, plus a fixed headroom."""
    max_cost = max((point.total_cost for point in points), default=0.0)
    return max(math.ceil(max_cost), 1) + headroom


def build_cost_trend_figure(
    points: Sequence[TrendPoint], config: dict[str, Any] | None = None
) -> go.Figure:
    """One bar per period, in chronological order."""
    config = config or {}
    fig = go.Figure()
    fig.add_trace(
        go.Bar(
            x=[point.month for point in points],
            y=[point.total_cost for point in points],
            marker_color=BAR_COLOR,
            marker_line=dict(width=1, color="rgba(0,0,0,0.3)"),
            hovertemplate="Period: %{x}<br>Cost: $%{y:.2f}<extra></extra>",
        )
    )
    fig.update_layout(
        title=config.get("title", "Cost Trend Analysis"),
        xaxis_title="Month",
        yaxis_title="Cost (USD)",
        yaxis=dict(range=[0, y_axis_upper_bound(points, float(config.get("headroom", 100.0)))]),
        xaxis=dict(type="category"),
        width=int(config.get("width", 800)),
        height=int(config.get("height", 600)),
        showlegend=False,
        plot_bgcolor="white",
        paper_bgcolor="white",
    )
    return fig


def save_cost_trend_chart(
    report: AccountCostReport,
    output_dir: str | Path = ".",
    config: dict[str, Any] | None = None,
) -> ChartResult:
    """
    Write the trend chart of one account.

    Accounts without trend points are skipped. Write failures are reported
    in the result rather than raised.
    """
    if not report.cost_trend:
        logger.warning(
            f"No cost trend data for profile {report.profile} account {report.account_id}"
        )
        return ChartResult(
            profile=report.profile,
            account_id=report.account_id,
            path=None,
            success=False,
            skipped=True,
        )

    path = Path(output_dir) / chart_filename(report.profile, report.account_id)
    try:
        fig = build_cost_trend_figure(report.cost_trend, config)
        fig.write_image(str(path), format="png")
    except Exception as e:
        logger.error(f"Failed to write chart {path}: {e}")
        return ChartResult(
            profile=report.profile,
            account_id=report.account_id,
            path=path,
            success=False,
            error_message=str(e),
        )

    logger.info(f"Cost trend chart written to {path}")
    return ChartResult(profile=report.profile, account_id=report.account_id, path=path, success=True)


def save_all_charts(
    reports: Sequence[AccountCostReport],
    output_dir: str | Path = ".",
    config: dict[str, Any] | None = None,
) -> list[ChartResult]:
    return [save_cost_trend_chart(report, output_dir, config) for report in reports]
