"""
Tests for the console table renderer.

Uses the shared report set: two accounts over January to March 2025.
"""

from datetime import date

from cost_trend.analysis.models import ReportSet, UnifiedAccountRow
from cost_trend.visualization.tables import ReportTableRenderer, format_table


class TestFormatTable:
    """Test cases for fixed-width table formatting."""

    def test_header_separator_and_alignment(self):
        table = format_table(["Name", "Cost"], [["EC2", "10.00"], ["S3", "2.50"]])

        assert table.splitlines() == [
            "Name   Cost",
            "-----------",
            "EC2   10.00",
            "S3     2.50",
        ]

    def test_no_rows(self):
        assert format_table(["Month", "Total"], []).splitlines() == ["Month  Total", "------------"]


class TestReportTableRenderer:
    """Test cases for the full console report."""

    def test_section_order(self, sample_report_set):
        output = ReportTableRenderer().render(sample_report_set)

        positions = [
            output.index("Unified Cost View (Past 6 Months) - Page 1:"),
            output.index("Cost Trend Analysis for Profile dev Account 111111111111 (Development):"),
            output.index("Service Consumption Summary for Profile dev Account 111111111111"),
            output.index("Cost Trend Analysis for Profile prod Account 222222222222 (Production):"),
            output.index("Global Summary (All Accounts):"),
        ]
        assert positions == sorted(positions)

    def test_trend_block(self, sample_report_set):
        renderer = ReportTableRenderer()
        block = renderer.render_trend(sample_report_set.accounts[0], sample_report_set)
        lines = block.splitlines()

        assert lines[1].split() == ["Month", "Total", "Cost", "(USD)", "MoM", "Change", "(%)"]
        assert lines[3].split() == ["2025-01-01", "100.00", "0.0"]
        assert lines[4].split() == ["2025-02-01", "150.00", "50.0"]
        assert lines[5].split() == ["2025-03-01", "0.00", "-100.0"]
        assert lines[-2] == "Total Cost (2025-01-01 to 2025-04-01): $250.00"
        assert lines[-1] == "Average Monthly Cost: $83.33"

    def test_service_block(self, sample_report_set):
        blocks = ReportTableRenderer().render_services(
            sample_report_set.accounts[0], sample_report_set
        )

        assert len(blocks) == 1
        lines = blocks[0].splitlines()
        assert lines[0] == (
            "Service Consumption Summary for Profile dev Account 111111111111 "
            "(2025-01-01 to 2025-04-01) - Page 1:"
        )
        assert lines[3].split() == ["EC2", "80.00", "120.00", "0.00", "200.00", "80.0"]
        assert lines[4].split() == ["S3", "20.00", "30.00", "0.00", "50.00", "20.0"]

    def test_global_summary(self, sample_report_set):
        block = ReportTableRenderer().render_global_summary(sample_report_set)

        assert block.splitlines() == [
            "Global Summary (All Accounts):",
            "Total Cost (2025-01-01 to 2025-04-01): $365.00",
            "Average Monthly Cost: $121.67",
        ]

    def test_unified_view_pages(self):
        periods = tuple(f"2025-{m:02d}-01" for m in range(1, 13)) + ("2026-01-01", "2026-02-01")
        report_set = ReportSet(
            start_date=date(2025, 1, 1),
            end_date=date(2026, 2, 1),
            unified_view=(
                UnifiedAccountRow(
                    profile="dev",
                    account_id="1",
                    account_name="Dev",
                    monthly_costs={"2025-01-01": 12.5},
                ),
            ),
            period_universe=periods,
            recent_periods=periods,
        )

        blocks = ReportTableRenderer(10, 3, 2).render_unified_view(report_set)

        assert len(blocks) == 2
        assert blocks[0].startswith("Unified Cost View (Past 6 Months) - Page 1:")
        assert blocks[1].startswith("Unified Cost View (Past 6 Months) - Page 2:")
        header_page_1 = blocks[0].splitlines()[1].split()
        assert header_page_1[-7:] == list(periods[:7])
        assert blocks[0].splitlines()[3].split() == ["dev", "1", "Dev", "12.50"] + ["0.00"] * 6

    def test_render_is_repeatable(self, sample_report_set):
        renderer = ReportTableRenderer()
        assert renderer.render(sample_report_set) == renderer.render(sample_report_set)
