"""Cross-account unified view and global summary."""

import logging
from collections.abc import Mapping, Sequence
from datetime import date

from .models import AccountAggregate, GlobalSummary, UnifiedAccountRow
from .periods import DEFAULT_RECENT_WINDOW_DAYS, filter_recent_periods

logger = logging.getLogger(__name__)


class UnifiedViewBuilder:
    """Assembles the cross-account period matrix and the all-account summary."""

    def __init__(self, end_date: date, recent_window_days: int = DEFAULT_RECENT_WINDOW_DAYS):
        self.end_date = end_date
        self.recent_window_days = recent_window_days

    def build_rows(self, aggregates: Sequence[AccountAggregate]) -> list[UnifiedAccountRow]:
        """One row per account, straight from its raw period totals."""
        return [
            UnifiedAccountRow(
                profile=aggregate.profile,
                account_id=aggregate.account.id,
                account_name=aggregate.account.name,
                monthly_costs=dict(aggregate.monthly_totals),
            )
            for aggregate in aggregates
        ]

    def recent_periods(self, period_universe: Sequence[str]) -> list[str]:
        return filter_recent_periods(period_universe, self.end_date, self.recent_window_days)

    def build_global_summary(
        self, global_monthly_totals: Mapping[str, float], period_universe: Sequence[str]
    ) -> GlobalSummary:
        """
        Total and average over the recent window only.

        Periods outside the window, or without a parseable date, do not count
        toward either figure.
        """
        recent = self.recent_periods(period_universe)
        total = sum(global_monthly_totals.get(period, 0.0) for period in recent)
        average = total / len(recent) if recent else 0.0
        logger.debug(
            f"Global summary over {len(recent)} of {len(period_universe)} periods: {total:.2f}"
        )
        return GlobalSummary(total_cost=total, average_monthly_cost=average, periods=tuple(recent))
