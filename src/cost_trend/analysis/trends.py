"""Month-over-month trend series."""

from collections.abc import Mapping, Sequence

from ..utils.numbers import round_half_away
from .models import TrendPoint


def mom_change_percent(current: float, previous: float | None) -> float:
    """
    Percent change against the previous period.

    0 for the first period and whenever the previous cost is exactly 0.0.
    """
    if previous is None or previous == 0.0:
        return 0.0
    return round_half_away((current - previous) / previous * 100.0)


def calculate_trend(
    periods: Sequence[str], monthly_costs: Mapping[str, float]
) -> list[TrendPoint]:
    """
    Build one trend point per period, in chronological order.

    Periods the account has no cost for are reported at 0.0, never skipped.
    """
    trend = []
    previous: float | None = None
    for period in sorted(periods):
        cost = monthly_costs.get(period, 0.0)
        trend.append(
            TrendPoint(
                month=period,
                total_cost=cost,
                mom_change_percent=mom_change_percent(cost, previous),
            )
        )
        previous = cost
    return trend
