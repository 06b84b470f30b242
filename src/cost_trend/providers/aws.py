"""
AWS billing collaborators.

Cost data comes from the Cost Explorer API; accounts come from a static
profile mapping, AWS Organizations, or the caller identity as a last resort.
"""

import logging
from collections.abc import Callable
from datetime import date
from typing import Any

try:
    from botocore.config import Config
    from botocore.exceptions import BotoCoreError, ClientError

    AWS_AVAILABLE = True
except ImportError:
    AWS_AVAILABLE = False

from ..analysis.periods import format_period
from ..utils.auth import AWSProfileAuthenticator
from .base import (
    Account,
    AccountResolutionError,
    AccountResolver,
    APIError,
    AuthenticationError,
    BillingDataSource,
    ConfigurationError,
    GroupingDimension,
    GroupingOptions,
    PeriodResult,
    ProviderFactory,
    RateLimitError,
    RawCostGroup,
    ServiceGroup,
    TagFilter,
    TagGroup,
    TimeGranularity,
)

logger = logging.getLogger(__name__)

# Cost Explorer and Organizations are only served from us-east-1
GLOBAL_API_REGION = "us-east-1"


def _client_config(config: dict[str, Any]) -> "Config":
    return Config(
        region_name=GLOBAL_API_REGION,
        retries={"max_attempts": int(config.get("max_attempts", 3)), "mode": "adaptive"},
    )


def _fallback_account_name(account_id: str) -> str:
    return f"Account-{account_id}"


class AWSCostExplorerSource(BillingDataSource):
    """Cost Explorer ``get_cost_and_usage`` as a billing data source."""

    def __init__(self, session: Any, config: dict[str, Any] | None = None):
        super().__init__(config or {})
        self.cost_metric = self.config.get("cost_metric", "UnblendedCost")
        self.granularity_mapping = {
            TimeGranularity.DAILY: "DAILY",
            TimeGranularity.MONTHLY: "MONTHLY",
            TimeGranularity.HOURLY: "HOURLY",
        }
        self.cost_explorer_client = session.client("ce", config=_client_config(self.config))

    def _get_provider_name(self) -> str:
        return "aws"

    def _build_time_period(
        self, start_date: date, end_date: date, granularity: TimeGranularity
    ) -> dict[str, str]:
        # Hourly queries take full timestamps, the others plain dates
        return {
            "Start": format_period(start_date, granularity),
            "End": format_period(end_date, granularity),
        }

    def _build_filter(self, account_id: str, tag_filter: TagFilter | None) -> dict[str, Any]:
        account_filter = {"Dimensions": {"Key": "LINKED_ACCOUNT", "Values": [account_id]}}
        if not tag_filter:
            return account_filter
        return {
            "And": [
                account_filter,
                {"Tags": {"Key": tag_filter.key, "Values": [tag_filter.value]}},
            ]
        }

    def _build_group_by(self, grouping: GroupingOptions) -> list[dict[str, str]]:
        if grouping.dimension == GroupingDimension.TAG:
            return [{"Type": "TAG", "Key": grouping.tag_key}]
        return [{"Type": "DIMENSION", "Key": "SERVICE"}]

    def build_request(
        self,
        account_id: str,
        start_date: date,
        end_date: date,
        granularity: TimeGranularity,
        grouping: GroupingOptions,
        tag_filter: TagFilter | None,
    ) -> dict[str, Any]:
        """Request parameters for ``get_cost_and_usage``."""
        if granularity not in self.granularity_mapping:
            raise ConfigurationError(f"Unsupported granularity: {granularity}")
        return {
            "TimePeriod": self._build_time_period(start_date, end_date, granularity),
            "Granularity": self.granularity_mapping[granularity],
            "Metrics": [self.cost_metric],
            "GroupBy": self._build_group_by(grouping),
            "Filter": self._build_filter(account_id, tag_filter),
        }

    def _parse_group_key(self, keys: list[str], grouping: GroupingOptions) -> ServiceGroup | TagGroup:
        if grouping.dimension == GroupingDimension.TAG:
            # Tag keys come back as "<key>$<value>"
            raw = keys[0] if keys else ""
            key, _, value = raw.partition("$")
            return TagGroup(key=key or grouping.tag_key, value=value)
        return ServiceGroup(name=", ".join(keys) if keys else "Unknown")

    def parse_response(self, response: dict[str, Any], grouping: GroupingOptions) -> list[PeriodResult]:
        """Parse one response page into period results."""
        results = []
        for result in response.get("ResultsByTime", []):
            period = result.get("TimePeriod", {}).get("Start", "")
            if not period:
                logger.warning("🔵 AWS: Skipping result without a time period")
                continue

            groups = []
            for group in result.get("Groups", []):
                metric = group.get("Metrics", {}).get(self.cost_metric, {})
                groups.append(
                    RawCostGroup(
                        key=self._parse_group_key(group.get("Keys", []), grouping),
                        amount=metric.get("Amount"),
                    )
                )
            results.append(PeriodResult(period=period, groups=groups))
        return results

    def _handle_client_error(self, error: "ClientError"):
        """Translate AWS client errors into provider errors."""
        error_code = error.response.get("Error", {}).get("Code", "Unknown")
        error_message = error.response.get("Error", {}).get("Message", str(error))

        if error_code in ("Throttling", "ThrottlingException", "LimitExceededException"):
            raise RateLimitError(
                f"AWS Cost Explorer API rate limit exceeded: {error_message}",
                provider=self.provider_name,
            ) from error
        elif error_code in ("UnauthorizedOperation", "AccessDeniedException", "AccessDenied"):
            raise AuthenticationError(f"AWS unauthorized: {error_message}") from error
        elif error_code in ("InvalidParameterValue", "ValidationException"):
            raise ConfigurationError(f"AWS invalid parameter: {error_message}") from error
        else:
            raise APIError(
                f"AWS Cost Explorer API error ({error_code}): {error_message}",
                status_code=error.response.get("ResponseMetadata", {}).get("HTTPStatusCode"),
                provider=self.provider_name,
            ) from error

    async def get_cost_results(
        self,
        account_id: str,
        start_date: date,
        end_date: date,
        granularity: TimeGranularity = TimeGranularity.MONTHLY,
        grouping: GroupingOptions | None = None,
        tag_filter: TagFilter | None = None,
    ) -> list[PeriodResult]:
        """Retrieve every page of grouped costs for one linked account."""
        grouping = grouping or GroupingOptions()
        params = self.build_request(
            account_id, start_date, end_date, granularity, grouping, tag_filter
        )

        results: list[PeriodResult] = []
        token = None
        page = 0
        try:
            while True:
                page += 1
                request = dict(params, NextPageToken=token) if token else params
                response = self.cost_explorer_client.get_cost_and_usage(**request)
                results.extend(self.parse_response(response, grouping))
                token = response.get("NextPageToken")
                if not token:
                    break
        except ClientError as e:
            self._handle_client_error(e)
        except BotoCoreError as e:
            raise APIError(
                f"AWS cost data retrieval failed: {e}", provider=self.provider_name
            ) from e

        logger.info(
            f"🔵 AWS: Retrieved {len(results)} periods in {page} page(s) for account {account_id}"
        )
        return results


class AWSAccountResolver(AccountResolver):
    """Resolves accounts from a static mapping, Organizations, then STS."""

    def __init__(
        self,
        session: Any,
        account_map: dict[str, list[str]] | None = None,
        config: dict[str, Any] | None = None,
        reporter: Callable[[str], None] | None = None,
    ):
        self.session = session
        self.account_map = account_map or {}
        self.config = config or {}
        self.reporter = reporter

    def _mapped_accounts(self, profile: str) -> list[Account]:
        return [
            Account(id=account_id, name=_fallback_account_name(account_id))
            for account_id in self.account_map[profile]
        ]

    def _organization_accounts(self) -> list[Account]:
        client = self.session.client("organizations", config=_client_config(self.config))
        accounts = []
        for page in client.get_paginator("list_accounts").paginate():
            for item in page.get("Accounts", []):
                if not item.get("Id"):
                    continue
                accounts.append(Account(id=item["Id"], name=item.get("Name") or "N/A"))
        return accounts

    def _caller_account(self, profile: str) -> list[Account]:
        client = self.session.client("sts", region_name=self.config.get("region", GLOBAL_API_REGION))
        try:
            identity = client.get_caller_identity()
        except (ClientError, BotoCoreError) as e:
            raise AccountResolutionError(
                f"Error fetching account ID via STS for profile {profile}: {e}", profile=profile
            ) from e

        account_id = identity.get("Account")
        if not account_id:
            raise AccountResolutionError(
                f"No account ID returned by STS for profile {profile}", profile=profile
            )
        return [Account(id=account_id, name=_fallback_account_name(account_id))]

    async def resolve_accounts(self, profile: str) -> list[Account]:
        if profile in self.account_map:
            logger.info(f"🔵 AWS: Using mapped accounts for profile {profile}")
            return self._mapped_accounts(profile)

        try:
            accounts = self._organization_accounts()
            logger.info(f"🔵 AWS: Organizations listed {len(accounts)} accounts for {profile}")
            return accounts
        except (ClientError, BotoCoreError) as e:
            message = (
                f"Error fetching accounts for profile {profile} via Organizations: {e}. "
                "Attempting STS fallback."
            )
            logger.warning(message)
            if self.reporter:
                self.reporter(message)

        return self._caller_account(profile)


async def create_profile_clients(
    profile: str,
    config: dict[str, Any] | None = None,
    account_map: dict[str, list[str]] | None = None,
    reporter: Callable[[str], None] | None = None,
) -> tuple[AccountResolver, BillingDataSource]:
    """Authenticate a profile and build its account resolver and data source."""
    config = config or {}
    auth_result = await AWSProfileAuthenticator(profile, config).authenticate()
    if not auth_result.success:
        raise AuthenticationError(
            f"AWS profile {profile} unavailable: {auth_result.error_message}"
        )

    session = auth_result.credentials
    try:
        resolver = ProviderFactory.create_account_resolver(
            "aws", session, account_map, config, reporter
        )
        source = ProviderFactory.create_data_source("aws", session, config)
    except BotoCoreError as e:
        raise AuthenticationError(f"AWS clients for profile {profile} failed: {e}") from e
    return resolver, source


# Register the AWS collaborators with the factory
if AWS_AVAILABLE:
    ProviderFactory.register_provider("aws", AWSCostExplorerSource, AWSAccountResolver)
else:
    logger.warning("AWS SDK not available, AWS provider not registered")
