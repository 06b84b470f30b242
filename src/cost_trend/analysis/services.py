"""Per-service (or per-tag) consumption shares of one account."""

import logging
from collections.abc import Mapping

from ..providers.base import ServiceGroup, TagGroup
from ..utils.numbers import safe_percent
from .models import ServiceShare

logger = logging.getLogger(__name__)


def calculate_service_shares(
    group_costs: Mapping[ServiceGroup | TagGroup, Mapping[str, float]],
) -> list[ServiceShare]:
    """
    Rank the groups of one account by total cost.

    Groups whose total is zero or negative (net credits and refunds) are left
    out. Shares are percentages of the sum of the remaining totals. Ties keep
    the order in which the groups were first seen.
    """
    surviving = []
    for group, months in group_costs.items():
        total = sum(months.values())
        if total <= 0:
            logger.debug(f"Dropping {group.label} from consumption ranking (total {total:.2f})")
            continue
        surviving.append((group, months, total))

    total_service_cost = sum(total for _, _, total in surviving)

    shares = [
        ServiceShare(
            group=group,
            monthly_costs=dict(months),
            total_cost=total,
            percent_of_total=safe_percent(total, total_service_cost),
        )
        for group, months, total in surviving
    ]
    return sorted(shares, key=lambda share: share.total_cost, reverse=True)
