"""
Report pipeline orchestration.

Profiles and their accounts are processed one at a time. Each account yields
either an isolated aggregate or a skip reason; aggregates are then folded
into the period universe and global totals, and the finished report set is
built from that fold.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import date

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..providers.base import (
    Account,
    AccountResolver,
    BillingDataSource,
    CloudProviderError,
    GroupingOptions,
    TagFilter,
    TimeGranularity,
)
from .aggregator import aggregate_account, merge_aggregates
from .models import AccountOutcome, ReportSet, SkipReason
from .periods import DEFAULT_RECENT_WINDOW_DAYS
from .reports import AccountReportBuilder
from .unified import UnifiedViewBuilder

logger = logging.getLogger(__name__)

ProfileClients = tuple[AccountResolver, BillingDataSource]
ClientFactory = Callable[[str], Awaitable[ProfileClients]]


class ReportOptions(BaseModel):
    """Validated parameters of one report run."""

    model_config = ConfigDict(frozen=True)

    start_date: date
    end_date: date
    granularity: TimeGranularity = TimeGranularity.MONTHLY
    account_ids: frozenset[str] | None = None
    grouping: GroupingOptions = Field(default_factory=GroupingOptions)
    tag_filter: TagFilter | None = None
    recent_window_days: int = Field(DEFAULT_RECENT_WINDOW_DAYS, gt=0)

    @model_validator(mode="after")
    def validate_dates(self):
        if self.end_date < self.start_date:
            raise ValueError(
                f"End date {self.end_date} must not be before start date {self.start_date}"
            )
        return self

    @property
    def span_days(self) -> int:
        return (self.end_date - self.start_date).days


class CostTrendPipeline:
    """Runs fetch, aggregation and report assembly for a list of profiles."""

    def __init__(
        self,
        options: ReportOptions,
        client_factory: ClientFactory,
        reporter: Callable[[str], None] | None = None,
    ):
        """
        Args:
            options: Run parameters
            client_factory: Coroutine returning the account resolver and billing
                data source of a profile; raises CloudProviderError on failure
            reporter: Optional sink for operator-facing progress and skip messages
        """
        self.options = options
        self.client_factory = client_factory
        self.reporter = reporter

    def _report(self, message: str) -> None:
        if self.reporter:
            self.reporter(message)

    def _skip(self, reason: SkipReason) -> AccountOutcome:
        logger.warning(reason.describe())
        self._report(reason.describe())
        account = Account(id=reason.account_id) if reason.account_id else None
        return AccountOutcome(profile=reason.profile, account=account, skip=reason)

    def _filter_accounts(self, accounts: Sequence[Account]) -> list[Account]:
        if self.options.account_ids is None:
            return list(accounts)
        return [account for account in accounts if account.id in self.options.account_ids]

    async def _collect_profile(self, profile: str) -> list[AccountOutcome]:
        self._report(f"Processing profile: {profile}")
        try:
            resolver, source = await self.client_factory(profile)
            accounts = await resolver.resolve_accounts(profile)
        except CloudProviderError as e:
            return [
                self._skip(
                    SkipReason(
                        stage="profile",
                        profile=profile,
                        error_type=type(e).__name__,
                        message=str(e),
                    )
                )
            ]

        accounts = self._filter_accounts(accounts)
        if not accounts:
            suffix = ""
            if self.options.account_ids is not None:
                suffix = f" for account IDs {sorted(self.options.account_ids)}"
            return [
                self._skip(
                    SkipReason(
                        stage="profile",
                        profile=profile,
                        error_type="NoAccounts",
                        message=f"No accounts found for profile {profile}{suffix}",
                    )
                )
            ]

        outcomes = []
        for account in accounts:
            outcomes.append(await self._collect_account(profile, account, source))
        return outcomes

    async def _collect_account(
        self, profile: str, account: Account, source: BillingDataSource
    ) -> AccountOutcome:
        try:
            results = await source.get_cost_results(
                account.id,
                self.options.start_date,
                self.options.end_date,
                granularity=self.options.granularity,
                grouping=self.options.grouping,
                tag_filter=self.options.tag_filter,
            )
        except CloudProviderError as e:
            return self._skip(
                SkipReason(
                    stage="account",
                    profile=profile,
                    account_id=account.id,
                    error_type=type(e).__name__,
                    message=str(e),
                )
            )

        aggregate = aggregate_account(profile, account, results)
        if aggregate.degraded_entries:
            self._report(
                f"Warning: {aggregate.degraded_entries} cost amount(s) for account "
                f"{account.id} (profile {profile}) could not be parsed and were counted as 0.0"
            )
        logger.info(
            f"Aggregated {len(aggregate.periods)} periods for account {account.id} "
            f"(profile {profile}): {aggregate.total_cost:.2f}"
        )
        return AccountOutcome(profile=profile, account=account, aggregate=aggregate)

    async def collect(self, profiles: Sequence[str]) -> list[AccountOutcome]:
        """Fetch and aggregate every account of every profile, in order."""
        outcomes: list[AccountOutcome] = []
        for profile in profiles:
            outcomes.extend(await self._collect_profile(profile))
        return outcomes

    def build_report_set(self, outcomes: Sequence[AccountOutcome]) -> ReportSet:
        """Fold the collected partials and build the immutable report set."""
        aggregates = [o.aggregate for o in outcomes if o.aggregate is not None]
        skipped = tuple(o.skip for o in outcomes if o.skip is not None)

        merged = merge_aggregates(aggregates)
        report_builder = AccountReportBuilder(merged.period_universe)
        unified_builder = UnifiedViewBuilder(
            self.options.end_date, self.options.recent_window_days
        )

        return ReportSet(
            start_date=self.options.start_date,
            end_date=self.options.end_date,
            accounts=tuple(report_builder.build_all(aggregates)),
            unified_view=tuple(unified_builder.build_rows(aggregates)),
            global_summary=unified_builder.build_global_summary(
                merged.global_monthly_totals, merged.period_universe
            ),
            period_universe=merged.period_universe,
            recent_periods=tuple(unified_builder.recent_periods(merged.period_universe)),
            skipped=skipped,
        )

    async def run(self, profiles: Sequence[str]) -> ReportSet:
        outcomes = await self.collect(profiles)
        return self.build_report_set(outcomes)
