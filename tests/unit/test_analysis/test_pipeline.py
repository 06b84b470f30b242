"""
Tests for the report pipeline.

Covers report options validation, per-profile and per-account skips and
the assembled report set.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from cost_trend.analysis.pipeline import CostTrendPipeline, ReportOptions
from cost_trend.providers.base import (
    Account,
    AuthenticationError,
    GroupingDimension,
    GroupingOptions,
    TagFilter,
    TimeGranularity,
)


class TestReportOptions:
    """Test cases for run parameter validation."""

    def test_defaults(self):
        options = ReportOptions(start_date=date(2025, 1, 1), end_date=date(2025, 6, 30))

        assert options.granularity == TimeGranularity.MONTHLY
        assert options.grouping.dimension == GroupingDimension.SERVICE
        assert options.account_ids is None
        assert options.recent_window_days == 180
        assert options.span_days == 180

    def test_end_before_start_rejected(self):
        with pytest.raises(ValidationError, match="must not be before"):
            ReportOptions(start_date=date(2025, 2, 1), end_date=date(2025, 1, 1))

    def test_non_positive_window_rejected(self):
        with pytest.raises(ValidationError):
            ReportOptions(
                start_date=date(2025, 1, 1), end_date=date(2025, 2, 1), recent_window_days=0
            )

    def test_options_are_frozen(self):
        options = ReportOptions(start_date=date(2025, 1, 1), end_date=date(2025, 2, 1))
        with pytest.raises(ValidationError):
            options.end_date = date(2025, 3, 1)


class TestCostTrendPipeline:
    """Test cases for collection and report set assembly."""

    async def test_run_builds_report_set(self, report_options, client_factory):
        report_set = await CostTrendPipeline(report_options, client_factory).run(["dev", "prod"])

        assert report_set.period_universe == ("2025-01-01", "2025-02-01", "2025-03-01")
        assert [a.account_id for a in report_set.accounts] == ["111111111111", "222222222222"]
        assert [r.profile for r in report_set.unified_view] == ["dev", "prod"]
        assert report_set.global_summary.total_cost == 365.0
        assert report_set.skipped == ()
        assert not report_set.is_empty

    async def test_every_trend_matches_universe(self, report_options, client_factory):
        report_set = await CostTrendPipeline(report_options, client_factory).run(["dev", "prod"])

        for account in report_set.accounts:
            assert len(account.cost_trend) == len(report_set.period_universe)

    async def test_options_forwarded_to_source(self, fake_accounts, make_source, make_resolver):
        source = make_source({})
        resolver = make_resolver(fake_accounts)

        async def factory(profile):
            return resolver, source

        options = ReportOptions(
            start_date=date(2025, 1, 1),
            end_date=date(2025, 1, 5),
            granularity=TimeGranularity.DAILY,
            tag_filter=TagFilter(key="env", value="prod"),
        )
        await CostTrendPipeline(options, factory).run(["dev"])

        call = source.calls[0]
        assert call["account_id"] == "111111111111"
        assert call["granularity"] == TimeGranularity.DAILY
        assert call["grouping"] == GroupingOptions()
        assert call["tag_filter"] == TagFilter(key="env", value="prod")

    async def test_unknown_profile_skipped(self, report_options, client_factory):
        messages = []
        pipeline = CostTrendPipeline(report_options, client_factory, reporter=messages.append)

        report_set = await pipeline.run(["dev", "ghost"])

        assert [a.profile for a in report_set.accounts] == ["dev"]
        assert len(report_set.skipped) == 1
        skip = report_set.skipped[0]
        assert (skip.stage, skip.profile, skip.error_type) == (
            "profile",
            "ghost",
            "AccountResolutionError",
        )
        assert "Processing profile: ghost" in messages
        assert skip.describe() in messages

    async def test_unparseable_amounts_reported(
        self, report_options, fake_accounts, make_period, make_source, make_resolver
    ):
        source = make_source({"111111111111": [make_period("2025-01-01", {"EC2": "abc", "S3": 10})]})
        resolver = make_resolver(fake_accounts)

        async def factory(profile):
            return resolver, source

        messages = []
        report_set = await CostTrendPipeline(
            report_options, factory, reporter=messages.append
        ).run(["dev"])

        assert [a.total_cost for a in report_set.accounts] == [10.0]
        assert (
            "Warning: 1 cost amount(s) for account 111111111111 (profile dev) "
            "could not be parsed and were counted as 0.0"
        ) in messages

    async def test_client_factory_failure_skips_profile(self, report_options, client_factory):
        async def factory(profile):
            if profile == "broken":
                raise AuthenticationError("The config profile (broken) could not be found")
            return await client_factory(profile)

        report_set = await CostTrendPipeline(report_options, factory).run(["broken", "prod"])

        assert [a.profile for a in report_set.accounts] == ["prod"]
        assert report_set.skipped[0].error_type == "AuthenticationError"

    async def test_failing_account_skipped_others_continue(
        self, report_options, sample_results, make_source, make_resolver
    ):
        resolver = make_resolver(
            {"org": [Account(id="111111111111"), Account(id="222222222222")]}
        )
        source = make_source(sample_results, failing={"111111111111"})

        async def factory(profile):
            return resolver, source

        report_set = await CostTrendPipeline(report_options, factory).run(["org"])

        assert [a.account_id for a in report_set.accounts] == ["222222222222"]
        skip = report_set.skipped[0]
        assert skip.stage == "account"
        assert skip.account_id == "111111111111"
        assert skip.describe() == (
            "Error fetching cost data for account 111111111111 (profile org): "
            "Access denied for 111111111111. Skipping account."
        )
        # Failed accounts contribute no periods
        assert report_set.period_universe == ("2025-02-01", "2025-03-01")

    async def test_account_filter(self, sample_results, make_source, make_resolver):
        resolver = make_resolver(
            {"org": [Account(id="111111111111"), Account(id="222222222222")]}
        )
        source = make_source(sample_results)

        async def factory(profile):
            return resolver, source

        options = ReportOptions(
            start_date=date(2025, 1, 1),
            end_date=date(2025, 4, 1),
            account_ids=frozenset({"222222222222"}),
        )
        report_set = await CostTrendPipeline(options, factory).run(["org"])

        assert [a.account_id for a in report_set.accounts] == ["222222222222"]
        assert [c["account_id"] for c in source.calls] == ["222222222222"]

    async def test_account_filter_without_match(self, client_factory):
        options = ReportOptions(
            start_date=date(2025, 1, 1),
            end_date=date(2025, 4, 1),
            account_ids=frozenset({"999999999999"}),
        )

        report_set = await CostTrendPipeline(options, client_factory).run(["dev"])

        assert report_set.is_empty
        assert report_set.skipped[0].message == (
            "No accounts found for profile dev for account IDs ['999999999999']"
        )

    async def test_no_data_is_empty_not_error(self, report_options, fake_accounts, make_source, make_resolver):
        resolver = make_resolver(fake_accounts)

        async def factory(profile):
            return resolver, make_source({})

        report_set = await CostTrendPipeline(report_options, factory).run(["dev"])

        # The account was reached but returned no periods
        assert report_set.period_universe == ()
        assert report_set.accounts[0].cost_trend == ()
        assert report_set.global_summary.total_cost == 0.0
        assert report_set.is_empty

    async def test_recent_periods_follow_window(self, client_factory):
        options = ReportOptions(
            start_date=date(2025, 1, 1), end_date=date(2025, 4, 1), recent_window_days=60
        )

        report_set = await CostTrendPipeline(options, client_factory).run(["dev", "prod"])

        assert report_set.recent_periods == ("2025-02-01", "2025-03-01")
        assert report_set.global_summary.total_cost == 265.0
