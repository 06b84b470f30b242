"""
Cost record aggregation.

Turns the parsed billing results of one account into an isolated partial
(period totals and per-group period costs), and folds all partials of a run
into the shared period universe and the global period totals.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from ..providers.base import Account, PeriodResult
from ..utils.numbers import parse_amount
from .models import AccountAggregate, CostEntry
from .periods import normalize_period, sort_periods

logger = logging.getLogger(__name__)


def parse_cost_entries(results: Iterable[PeriodResult]) -> tuple[list[CostEntry], int]:
    """
    Flatten period results into cost entries.

    Amounts that are missing or not finite degrade to 0.0 so a single bad
    group does not cost the whole account its report.

    Returns:
        The entries in input order and the number of degraded amounts
    """
    entries = []
    degraded = 0
    for result in results:
        period = normalize_period(result.period)
        for group in result.groups:
            amount = parse_amount(group.amount)
            if amount is None:
                degraded += 1
                logger.debug(
                    f"Unparseable amount {group.amount!r} for {group.key.label} in {period}, using 0.0"
                )
                amount = 0.0
            entries.append(CostEntry(period=period, key=group.key, amount=amount))
    return entries, degraded


class CostRecordAggregator:
    """Accumulates the cost entries of exactly one account."""

    def __init__(self, profile: str, account: Account):
        self.profile = profile
        self.account = account
        self._monthly_totals: dict[str, float] = {}
        self._group_costs: dict = {}
        self._periods: list[str] = []
        self._seen_periods: set[str] = set()
        self._degraded = 0

    def _register_period(self, period: str) -> None:
        if period not in self._seen_periods:
            self._seen_periods.add(period)
            self._periods.append(period)

    def add_entry(self, entry: CostEntry) -> None:
        """Add one entry; repeated (period, group) pairs are summed."""
        self._register_period(entry.period)
        self._monthly_totals[entry.period] = (
            self._monthly_totals.get(entry.period, 0.0) + entry.amount
        )
        group_months = self._group_costs.setdefault(entry.key, {})
        group_months[entry.period] = group_months.get(entry.period, 0.0) + entry.amount

    def add_results(self, results: Iterable[PeriodResult]) -> "CostRecordAggregator":
        """Add every group of the given period results."""
        results = list(results)
        entries, degraded = parse_cost_entries(results)
        self._degraded += degraded

        # Periods without any group still count as observed, at zero cost
        for result in results:
            period = normalize_period(result.period)
            self._register_period(period)
            self._monthly_totals.setdefault(period, 0.0)

        for entry in entries:
            self.add_entry(entry)
        return self

    def build(self) -> AccountAggregate:
        if self._degraded:
            logger.warning(
                f"Account {self.account.id} (profile {self.profile}): "
                f"{self._degraded} cost amount(s) could not be parsed and were counted as 0.0"
            )
        return AccountAggregate(
            profile=self.profile,
            account=self.account,
            monthly_totals=dict(self._monthly_totals),
            group_costs={key: dict(months) for key, months in self._group_costs.items()},
            periods=tuple(self._periods),
            degraded_entries=self._degraded,
        )


def aggregate_account(
    profile: str, account: Account, results: Iterable[PeriodResult]
) -> AccountAggregate:
    """Aggregate the billing results of one account into its partial."""
    return CostRecordAggregator(profile, account).add_results(results).build()


@dataclass(frozen=True)
class MergedAggregates:
    """Fold of all account partials of a run."""

    period_universe: tuple[str, ...]
    global_monthly_totals: dict[str, float]


def merge_aggregates(aggregates: Iterable[AccountAggregate]) -> MergedAggregates:
    """
    Reduce account partials into the period universe and global period totals.

    The fold is order independent: the universe is sorted and totals are sums.
    """
    periods: list[str] = []
    global_totals: dict[str, float] = defaultdict(float)
    for aggregate in aggregates:
        periods.extend(aggregate.periods)
        for period, cost in aggregate.monthly_totals.items():
            global_totals[period] += cost

    universe = tuple(sort_periods(periods))
    return MergedAggregates(
        period_universe=universe,
        global_monthly_totals={period: global_totals.get(period, 0.0) for period in universe},
    )
