"""
Pytest configuration and shared fixtures for cost-trend tests.

This module provides common fixtures used across all test modules:
Cost Explorer responses, in-memory billing collaborators and a finished
report set.
"""

import asyncio
import os
import tempfile
from collections.abc import Generator
from datetime import date
from pathlib import Path
from typing import Any

import pytest

from cost_trend.analysis.pipeline import CostTrendPipeline, ReportOptions
from cost_trend.providers.base import (
    Account,
    AccountResolutionError,
    AccountResolver,
    APIError,
    BillingDataSource,
    PeriodResult,
    RawCostGroup,
    ServiceGroup,
)


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "aws: mark test as AWS-specific")


# Temporary directory fixture
@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# Environment fixture
@pytest.fixture
def clean_env() -> Generator[dict[str, str], None, None]:
    """Provide an environment without AWS or cost-trend overrides."""
    original_env = os.environ.copy()
    for var in list(os.environ):
        if var.startswith(("AWS_", "COSTTREND")):
            os.environ.pop(var, None)

    yield os.environ

    os.environ.clear()
    os.environ.update(original_env)


def service_period(period: str, costs: dict[str, Any]) -> PeriodResult:
    """Build a period result grouped by service."""
    return PeriodResult(
        period=period,
        groups=tuple(
            RawCostGroup(key=ServiceGroup(name=name), amount=None if amount is None else str(amount))
            for name, amount in costs.items()
        ),
    )


class FakeBillingSource(BillingDataSource):
    """In-memory billing data keyed by account id."""

    def __init__(self, results: dict[str, list[PeriodResult]], failing: set[str] | None = None):
        super().__init__({})
        self.results = results
        self.failing = failing or set()
        self.calls: list[dict[str, Any]] = []

    def _get_provider_name(self) -> str:
        return "fake"

    async def get_cost_results(
        self, account_id, start_date, end_date, granularity=None, grouping=None, tag_filter=None
    ):
        self.calls.append(
            {
                "account_id": account_id,
                "start_date": start_date,
                "end_date": end_date,
                "granularity": granularity,
                "grouping": grouping,
                "tag_filter": tag_filter,
            }
        )
        if account_id in self.failing:
            raise APIError(f"Access denied for {account_id}", status_code=403, provider="fake")
        return self.results.get(account_id, [])


class FakeAccountResolver(AccountResolver):
    """Resolves profiles from a fixed table."""

    def __init__(self, accounts: dict[str, list[Account]]):
        self.accounts = accounts

    async def resolve_accounts(self, profile: str) -> list[Account]:
        if profile not in self.accounts:
            raise AccountResolutionError(f"No accounts for profile {profile}", profile=profile)
        return self.accounts[profile]


@pytest.fixture
def sample_ce_response() -> dict[str, Any]:
    """A two-month Cost Explorer response grouped by service."""
    return {
        "ResultsByTime": [
            {
                "TimePeriod": {"Start": "2025-01-01", "End": "2025-02-01"},
                "Total": {},
                "Groups": [
                    {
                        "Keys": ["Amazon Elastic Compute Cloud - Compute"],
                        "Metrics": {"UnblendedCost": {"Amount": "80.00", "Unit": "USD"}},
                    },
                    {
                        "Keys": ["Amazon Simple Storage Service"],
                        "Metrics": {"UnblendedCost": {"Amount": "20.00", "Unit": "USD"}},
                    },
                ],
                "Estimated": False,
            },
            {
                "TimePeriod": {"Start": "2025-02-01", "End": "2025-03-01"},
                "Total": {},
                "Groups": [
                    {
                        "Keys": ["Amazon Elastic Compute Cloud - Compute"],
                        "Metrics": {"UnblendedCost": {"Amount": "120.00", "Unit": "USD"}},
                    },
                    {
                        "Keys": ["Amazon Simple Storage Service"],
                        "Metrics": {"UnblendedCost": {"Amount": "30.00", "Unit": "USD"}},
                    },
                ],
                "Estimated": True,
            },
        ],
        "DimensionValueAttributes": [],
    }


@pytest.fixture
def sample_results() -> dict[str, list[PeriodResult]]:
    """Billing results of two accounts with overlapping periods."""
    return {
        "111111111111": [
            service_period("2025-01-01", {"EC2": 80, "S3": 20}),
            service_period("2025-02-01", {"EC2": 120, "S3": 30}),
        ],
        "222222222222": [
            service_period("2025-02-01", {"RDS": 50}),
            service_period("2025-03-01", {"RDS": 70, "Support": -5}),
        ],
    }


@pytest.fixture
def fake_accounts() -> dict[str, list[Account]]:
    return {
        "dev": [Account(id="111111111111", name="Development")],
        "prod": [Account(id="222222222222", name="Production")],
    }


@pytest.fixture
def fake_source(sample_results) -> FakeBillingSource:
    return FakeBillingSource(sample_results)


@pytest.fixture
def client_factory(fake_accounts, fake_source):
    """Client factory returning the fake resolver and source for any profile."""
    resolver = FakeAccountResolver(fake_accounts)

    async def _factory(profile: str):
        return resolver, fake_source

    return _factory


@pytest.fixture
def report_options() -> ReportOptions:
    return ReportOptions(start_date=date(2025, 1, 1), end_date=date(2025, 4, 1))


@pytest.fixture
def make_period():
    """Factory for service-grouped period results."""
    return service_period


@pytest.fixture
def make_source():
    """Factory for in-memory billing sources."""
    return FakeBillingSource


@pytest.fixture
def make_resolver():
    """Factory for fixed-table account resolvers."""
    return FakeAccountResolver


@pytest.fixture
def sample_report_set(report_options, client_factory):
    """Finished report set for the dev and prod profiles."""
    pipeline = CostTrendPipeline(report_options, client_factory)
    return asyncio.run(pipeline.run(["dev", "prod"]))
