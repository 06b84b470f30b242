"""
Data structures of the cost trend model.

Report models are frozen pydantic models: they are built once per run and
handed read-only to every renderer. Month maps are stored with sorted keys so
serialized output is deterministic.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from ..providers.base import Account, GroupingKey, ServiceGroup, TagGroup


def _sorted_costs(v: dict[str, float]) -> dict[str, float]:
    return {period: float(cost) for period, cost in sorted(v.items())}


class CostEntry(BaseModel):
    """One parsed (period, group, amount) observation."""

    model_config = ConfigDict(frozen=True)

    period: str
    key: GroupingKey
    amount: float


class TrendPoint(BaseModel):
    """Cost of one period and its change against the previous period."""

    model_config = ConfigDict(frozen=True)

    month: str = Field(..., description="Period key")
    total_cost: float
    mom_change_percent: float = 0.0


class ServiceShare(BaseModel):
    """Consumption of one service (or tag value) within an account."""

    model_config = ConfigDict(frozen=True)

    group: GroupingKey
    monthly_costs: dict[str, float] = Field(default_factory=dict)
    total_cost: float
    percent_of_total: float

    @field_validator("monthly_costs")
    @classmethod
    def sort_monthly_costs(cls, v: dict[str, float]) -> dict[str, float]:
        return _sorted_costs(v)

    @computed_field
    @property
    def service(self) -> str:
        return self.group.label


class AccountCostReport(BaseModel):
    """Trend and consumption report of one (profile, account) pair."""

    model_config = ConfigDict(frozen=True)

    profile: str
    account_id: str
    account_name: str
    cost_trend: tuple[TrendPoint, ...] = ()
    service_consumption: tuple[ServiceShare, ...] = ()
    total_cost: float = 0.0
    average_monthly_cost: float = 0.0


class UnifiedAccountRow(BaseModel):
    """One account's raw period costs in the cross-account matrix."""

    model_config = ConfigDict(frozen=True)

    profile: str
    account_id: str
    account_name: str
    monthly_costs: dict[str, float] = Field(default_factory=dict)

    @field_validator("monthly_costs")
    @classmethod
    def sort_monthly_costs(cls, v: dict[str, float]) -> dict[str, float]:
        return _sorted_costs(v)

    def cost_for(self, period: str) -> float:
        return self.monthly_costs.get(period, 0.0)


class GlobalSummary(BaseModel):
    """All-account totals over the recent window."""

    model_config = ConfigDict(frozen=True)

    total_cost: float = 0.0
    average_monthly_cost: float = 0.0
    periods: tuple[str, ...] = Field(default=(), exclude=True)


class SkipReason(BaseModel):
    """Why a profile or an account did not make it into the report."""

    model_config = ConfigDict(frozen=True)

    stage: Literal["profile", "account"]
    profile: str
    account_id: str | None = None
    error_type: str
    message: str

    def describe(self) -> str:
        if self.stage == "profile":
            return f"Skipping profile {self.profile}: {self.message}"
        return (
            f"Error fetching cost data for account {self.account_id} "
            f"(profile {self.profile}): {self.message}. Skipping account."
        )


@dataclass(frozen=True)
class AccountAggregate:
    """Isolated per-account partial result of the aggregation step."""

    profile: str
    account: Account
    monthly_totals: dict[str, float] = field(default_factory=dict)
    group_costs: dict[ServiceGroup | TagGroup, dict[str, float]] = field(default_factory=dict)
    periods: tuple[str, ...] = ()
    degraded_entries: int = 0

    @property
    def total_cost(self) -> float:
        return sum(self.monthly_totals.values())


@dataclass(frozen=True)
class AccountOutcome:
    """Either an aggregate or the reason the account was skipped."""

    profile: str
    account: Account | None = None
    aggregate: AccountAggregate | None = None
    skip: SkipReason | None = None


class ReportSet(BaseModel):
    """The finished, read-only result of one pipeline run."""

    model_config = ConfigDict(frozen=True)

    start_date: date
    end_date: date
    accounts: tuple[AccountCostReport, ...] = ()
    unified_view: tuple[UnifiedAccountRow, ...] = ()
    global_summary: GlobalSummary = Field(default_factory=GlobalSummary)
    period_universe: tuple[str, ...] = ()
    recent_periods: tuple[str, ...] = ()
    skipped: tuple[SkipReason, ...] = ()

    @property
    def is_empty(self) -> bool:
        """No account produced any period of cost data."""
        return not self.accounts or not self.period_universe

    def to_document(self) -> dict[str, Any]:
        """JSON-ready document of accounts, unified view and global summary."""
        return {
            "accounts": [a.model_dump(mode="json") for a in self.accounts],
            "unified_view": [row.model_dump(mode="json") for row in self.unified_view],
            "global_summary": self.global_summary.model_dump(mode="json"),
        }
