"""Per-account report assembly."""

from collections.abc import Sequence

from .models import AccountAggregate, AccountCostReport
from .services import calculate_service_shares
from .trends import calculate_trend


class AccountReportBuilder:
    """Builds the trend and consumption report of one account against the run's periods."""

    def __init__(self, period_universe: Sequence[str]):
        self.period_universe = list(period_universe)

    def build(self, aggregate: AccountAggregate) -> AccountCostReport:
        total_cost = aggregate.total_cost
        average = total_cost / len(self.period_universe) if self.period_universe else 0.0

        return AccountCostReport(
            profile=aggregate.profile,
            account_id=aggregate.account.id,
            account_name=aggregate.account.name,
            cost_trend=tuple(calculate_trend(self.period_universe, aggregate.monthly_totals)),
            service_consumption=tuple(calculate_service_shares(aggregate.group_costs)),
            total_cost=total_cost,
            average_monthly_cost=average,
        )

    def build_all(self, aggregates: Sequence[AccountAggregate]) -> list[AccountCostReport]:
        return [self.build(aggregate) for aggregate in aggregates]
