"""
Abstract billing collaborators for cost trend analysis.

Defines the parsed shape of a billing response, the grouping key variants and
the interfaces every billing data source and account resolver must follow.
"""

from abc import ABC, abstractmethod
from datetime import date
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TimeGranularity(Enum):
    """Supported time granularities for cost queries."""

    DAILY = "daily"
    MONTHLY = "monthly"
    HOURLY = "hourly"


class GroupingDimension(Enum):
    """Axis used to split cost within a period. One run uses exactly one."""

    SERVICE = "service"
    TAG = "tag"


class ServiceGroup(BaseModel):
    """Cost grouped under a billed service name."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["service"] = "service"
    name: str

    @property
    def label(self) -> str:
        return self.name


class TagGroup(BaseModel):
    """Cost grouped under one value of a cost allocation tag."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tag"] = "tag"
    key: str
    value: str = ""

    @property
    def label(self) -> str:
        # Untagged resources come back with an empty value
        return f"{self.key}={self.value}" if self.value else f"{self.key} (untagged)"


GroupingKey = Annotated[ServiceGroup | TagGroup, Field(discriminator="kind")]


class TagFilter(BaseModel):
    """Restrict a cost query to resources carrying ``key=value``."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str

    @field_validator("key", "value")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Tag filter key and value must not be blank")
        return stripped


class GroupingOptions(BaseModel):
    """What a cost query groups by: services, or the values of one tag key."""

    model_config = ConfigDict(frozen=True)

    dimension: GroupingDimension = GroupingDimension.SERVICE
    tag_key: str | None = None

    @field_validator("tag_key")
    @classmethod
    def validate_tag_key_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        stripped = v.strip()
        if not stripped:
            raise ValueError("Tag key must not be blank")
        return stripped

    @model_validator(mode="after")
    def validate_tag_key(self):
        if self.dimension == GroupingDimension.TAG and not self.tag_key:
            raise ValueError("Grouping by tag requires a tag key")
        if self.dimension == GroupingDimension.SERVICE and self.tag_key:
            raise ValueError("Service grouping does not take a tag key")
        return self

    @classmethod
    def from_tag_options(cls, tag_key: str | None, tag_value: str | None) -> "GroupingOptions":
        """
        Derive grouping from the tag options.

        A tag key without a value groups by that tag; a key with a value is a
        filter, and grouping stays on services.
        """
        if tag_key and not tag_value:
            return cls(dimension=GroupingDimension.TAG, tag_key=tag_key)
        return cls(dimension=GroupingDimension.SERVICE)


class RawCostGroup(BaseModel):
    """One grouped amount exactly as the billing API returned it."""

    model_config = ConfigDict(frozen=True)

    key: GroupingKey
    amount: str | None = None


class PeriodResult(BaseModel):
    """All grouped amounts of one granularity bucket."""

    model_config = ConfigDict(frozen=True)

    period: str
    groups: tuple[RawCostGroup, ...] = ()

    @field_validator("period")
    @classmethod
    def validate_period(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Period key must not be empty")
        return stripped


class Account(BaseModel):
    """A billed account as resolved for a profile."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = "N/A"

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Account id must not be empty")
        return stripped


class CloudProviderError(Exception):
    """Base exception for cloud provider errors."""

    pass


class AuthenticationError(CloudProviderError):
    """Authentication-related errors."""

    pass


class APIError(CloudProviderError):
    """API-related errors."""

    def __init__(self, message: str, status_code: int | None = None, provider: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.provider = provider


class RateLimitError(APIError):
    """Rate limiting errors."""

    def __init__(self, message: str, provider: str | None = None):
        super().__init__(message, status_code=429, provider=provider)


class ConfigurationError(CloudProviderError):
    """Configuration-related errors."""

    pass


class AccountResolutionError(CloudProviderError):
    """No account could be resolved for a profile."""

    def __init__(self, message: str, profile: str | None = None):
        super().__init__(message)
        self.profile = profile


class BillingDataSource(ABC):
    """Abstract source of grouped, time-bucketed billing data."""

    def __init__(self, config: dict[str, Any]):
        """
        Initialize the data source with configuration.

        Args:
            config: Provider-specific configuration dictionary
        """
        self.config = config
        self.provider_name = self._get_provider_name()

    @abstractmethod
    def _get_provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def get_cost_results(
        self,
        account_id: str,
        start_date: date,
        end_date: date,
        granularity: TimeGranularity = TimeGranularity.MONTHLY,
        grouping: GroupingOptions | None = None,
        tag_filter: TagFilter | None = None,
    ) -> list[PeriodResult]:
        """
        Retrieve grouped cost results for one account.

        Args:
            account_id: Account whose costs are queried
            start_date: Start of the requested range
            end_date: End of the requested range
            granularity: Bucket size of each returned period
            grouping: Dimension to split costs by (services when omitted)
            tag_filter: Optional tag restriction

        Returns:
            Period results in the order the provider returned them

        Raises:
            APIError: If the API call fails
            ConfigurationError: If the request cannot be built
        """
        pass


class AccountResolver(ABC):
    """Abstract resolver from a profile to the accounts it can see."""

    @abstractmethod
    async def resolve_accounts(self, profile: str) -> list[Account]:
        """
        Resolve the accounts billed under a profile.

        Raises:
            AccountResolutionError: If no account can be resolved
        """
        pass


class ProviderFactory:
    """Factory class for creating billing collaborators per provider."""

    _providers: dict[str, tuple[type, type]] = {}

    @classmethod
    def register_provider(cls, name: str, source_class: type, resolver_class: type):
        """Register the data source and account resolver classes of a provider."""
        cls._providers[name.lower()] = (source_class, resolver_class)

    @classmethod
    def _lookup(cls, name: str) -> tuple[type, type]:
        name = name.lower()
        if name not in cls._providers:
            available = ", ".join(cls._providers.keys())
            raise ValueError(f"Unknown provider '{name}'. Available providers: {available}")
        return cls._providers[name]

    @classmethod
    def create_data_source(cls, name: str, *args: Any, **kwargs: Any) -> BillingDataSource:
        source_class, _ = cls._lookup(name)
        return source_class(*args, **kwargs)

    @classmethod
    def create_account_resolver(cls, name: str, *args: Any, **kwargs: Any) -> AccountResolver:
        _, resolver_class = cls._lookup(name)
        return resolver_class(*args, **kwargs)
