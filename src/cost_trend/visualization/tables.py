"""
Plain-text console tables for cost reports.

Wide views (unified matrix, service consumption) are paginated over the
recent-window periods so each page fits a fixed column limit.
"""

import logging
from collections.abc import Sequence

from ..analysis.models import AccountCostReport, ReportSet
from .pagination import paginate_periods

logger = logging.getLogger(__name__)

UNIFIED_IDENTITY_HEADERS = ["Profile", "Account ID", "Account Name"]
TREND_HEADERS = ["Month", "Total Cost (USD)", "MoM Change (%)"]


def format_money(value: float) -> str:
    return f"{value:.2f}"


def format_percent(value: float) -> str:
    return f"{value:.1f}"


def format_table(
    headers: Sequence[str], rows: Sequence[Sequence[str]], numeric_from: int = 1
) -> str:
    """
    Format rows as a fixed-width table with a dashed header separator.

    Columns at index ``numeric_from`` and beyond are right-aligned.
    """
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def _line(cells: Sequence[str]) -> str:
        parts = []
        for i, cell in enumerate(cells):
            if i >= numeric_from:
                parts.append(f"{cell:>{widths[i]}}")
            else:
                parts.append(f"{cell:<{widths[i]}}")
        return "  ".join(parts).rstrip()

    header = _line(headers)
    lines = [header, "-" * len(header)]
    lines.extend(_line(row) for row in rows)
    return "\n".join(lines)


class ReportTableRenderer:
    """Renders a finished report set as console text."""

    def __init__(
        self,
        max_columns: int = 10,
        unified_reserved_columns: int = 3,
        service_reserved_columns: int = 2,
    ):
        self.max_columns = max_columns
        self.unified_reserved_columns = unified_reserved_columns
        self.service_reserved_columns = service_reserved_columns

    def render_unified_view(self, report_set: ReportSet) -> list[str]:
        """One block per page of recent-window periods."""
        blocks = []
        pages = paginate_periods(
            report_set.recent_periods, self.max_columns, self.unified_reserved_columns
        )
        for page in pages:
            headers = UNIFIED_IDENTITY_HEADERS + list(page.periods)
            rows = [
                [row.profile, row.account_id, row.account_name]
                + [format_money(row.cost_for(period)) for period in page.periods]
                for row in report_set.unified_view
            ]
            blocks.append(
                f"Unified Cost View (Past 6 Months) - Page {page.number}:\n"
                + format_table(headers, rows, numeric_from=len(UNIFIED_IDENTITY_HEADERS))
            )
        return blocks

    def render_trend(self, report: AccountCostReport, report_set: ReportSet) -> str:
        rows = [
            [point.month, format_money(point.total_cost), format_percent(point.mom_change_percent)]
            for point in report.cost_trend
        ]
        return "\n".join(
            [
                f"Cost Trend Analysis for Profile {report.profile} "
                f"Account {report.account_id} ({report.account_name}):",
                format_table(TREND_HEADERS, rows),
                f"Total Cost ({report_set.start_date} to {report_set.end_date}): "
                f"${format_money(report.total_cost)}",
                f"Average Monthly Cost: ${format_money(report.average_monthly_cost)}",
            ]
        )

    def render_services(self, report: AccountCostReport, report_set: ReportSet) -> list[str]:
        blocks = []
        pages = paginate_periods(
            report_set.recent_periods, self.max_columns, self.service_reserved_columns
        )
        for page in pages:
            headers = (
                ["Service"] + list(page.periods) + ["Total Cost (USD)", "Percent of Total (%)"]
            )
            rows = [
                [share.service]
                + [format_money(share.monthly_costs.get(period, 0.0)) for period in page.periods]
                + [format_money(share.total_cost), format_percent(share.percent_of_total)]
                for share in report.service_consumption
            ]
            blocks.append(
                f"Service Consumption Summary for Profile {report.profile} "
                f"Account {report.account_id} ({report_set.start_date} to "
                f"{report_set.end_date}) - Page {page.number}:\n" + format_table(headers, rows)
            )
        return blocks

    def render_global_summary(self, report_set: ReportSet) -> str:
        summary = report_set.global_summary
        return "\n".join(
            [
                "Global Summary (All Accounts):",
                f"Total Cost ({report_set.start_date} to {report_set.end_date}): "
                f"${format_money(summary.total_cost)}",
                f"Average Monthly Cost: ${format_money(summary.average_monthly_cost)}",
            ]
        )

    def render(self, report_set: ReportSet) -> str:
        """
        Full console report.

        Order: unified view pages, then each account's trend table followed
        by its service pages, then the global summary.
        """
        blocks = self.render_unified_view(report_set)
        for report in report_set.accounts:
            blocks.append(self.render_trend(report, report_set))
            blocks.extend(self.render_services(report, report_set))
        blocks.append(self.render_global_summary(report_set))
        logger.debug(f"Rendered {len(blocks)} table blocks")
        return "\n\n".join(blocks)
