"""
CSV export of cost reports.

Every artifact is written on its own: a failed file is reported in its
``ExportResult`` and the remaining files are still written.
"""

import csv
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from ..analysis.models import AccountCostReport, ReportSet
from ..visualization.tables import format_money, format_percent

logger = logging.getLogger(__name__)

Row = Sequence[str]


@dataclass(frozen=True)
class ExportResult:
    """Outcome of one CSV file."""

    kind: str
    path: Path
    success: bool
    error_message: str | None = None
    description: str = ""


def csv_base(path: str | Path) -> str:
    """Base path with any trailing ``.csv`` removed."""
    base = str(path)
    while base.endswith(".csv"):
        base = base[: -len(".csv")]
    return base


class CSVReportExporter:
    """Writes trend, service, global summary and unified view files."""

    def __init__(self, base_path: str | Path, service_periods: str = "recent"):
        """
        Args:
            base_path: Output prefix; a trailing ``.csv`` is stripped
            service_periods: ``recent`` for the recent-window periods or
                ``all`` for every period of the run
        """
        if service_periods not in ("recent", "all"):
            raise ValueError(f"service_periods must be 'recent' or 'all', got {service_periods!r}")
        self.base = csv_base(base_path)
        self.service_periods = service_periods

    def _periods(self, report_set: ReportSet) -> tuple[str, ...]:
        if self.service_periods == "all":
            return report_set.period_universe
        return report_set.recent_periods

    def _write(
        self, kind: str, path: Path, header: Row, rows: Iterable[Row], description: str
    ) -> ExportResult:
        try:
            with open(path, "w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                writer.writerow(header)
                writer.writerows(rows)
        except OSError as e:
            logger.error(f"Failed to write {kind} CSV {path}: {e}")
            return ExportResult(kind=kind, path=path, success=False, error_message=str(e))

        logger.info(f"Exported {kind} CSV to {path}")
        return ExportResult(kind=kind, path=path, success=True, description=description)

    def trend_path(self, report: AccountCostReport) -> Path:
        return Path(f"{self.base}_trend_profile_{report.profile}_account_{report.account_id}.csv")

    def service_path(self, report: AccountCostReport) -> Path:
        return Path(
            f"{self.base}_service_summary_profile_{report.profile}_account_{report.account_id}.csv"
        )

    def global_path(self) -> Path:
        return Path(f"{self.base}_global_summary.csv")

    def unified_path(self) -> Path:
        return Path(f"{self.base}_unified_view.csv")

    def export_trend(self, report: AccountCostReport) -> ExportResult:
        rows = [
            [point.month, format_money(point.total_cost), format_percent(point.mom_change_percent)]
            for point in report.cost_trend
        ]
        return self._write(
            "trend",
            self.trend_path(report),
            ["Month", "Total Cost (USD)", "MoM Change (%)"],
            rows,
            f"trend report for profile {report.profile} account {report.account_id}",
        )

    def export_services(self, report: AccountCostReport, periods: Sequence[str]) -> ExportResult:
        rows = [
            [share.service]
            + [format_money(share.monthly_costs.get(period, 0.0)) for period in periods]
            + [format_money(share.total_cost), format_percent(share.percent_of_total)]
            for share in report.service_consumption
        ]
        return self._write(
            "service_summary",
            self.service_path(report),
            ["Service", *periods, "Total Cost (USD)", "Percent of Total (%)"],
            rows,
            f"service summary for profile {report.profile} account {report.account_id}",
        )

    def export_global_summary(self, report_set: ReportSet) -> ExportResult:
        summary = report_set.global_summary
        rows = [
            ["Total Cost (USD)", format_money(summary.total_cost)],
            ["Average Monthly Cost (USD)", format_money(summary.average_monthly_cost)],
        ]
        return self._write(
            "global_summary", self.global_path(), ["Metric", "Value"], rows, "global summary"
        )

    def export_unified_view(self, report_set: ReportSet, periods: Sequence[str]) -> ExportResult:
        rows = [
            [row.profile, row.account_id, row.account_name]
            + [format_money(row.cost_for(period)) for period in periods]
            for row in report_set.unified_view
        ]
        return self._write(
            "unified_view",
            self.unified_path(),
            ["Profile", "Account ID", "Account Name", *periods],
            rows,
            "unified view",
        )

    def export(
        self, report_set: ReportSet, on_result: Callable[[ExportResult], None] | None = None
    ) -> list[ExportResult]:
        """Write every file and return one result per file, in write order."""
        periods = self._periods(report_set)
        results = []

        def _record(result: ExportResult):
            results.append(result)
            if on_result:
                on_result(result)

        for report in report_set.accounts:
            _record(self.export_trend(report))
            _record(self.export_services(report, periods))
        _record(self.export_global_summary(report_set))
        _record(self.export_unified_view(report_set, periods))

        failed = [r for r in results if not r.success]
        if failed:
            logger.warning(f"{len(failed)} of {len(results)} CSV files failed to export")
        return results
