"""Billing provider integrations."""

# Import provider implementations to register them with ProviderFactory
from . import aws

# Make key classes available at package level
from .base import (
    Account,
    AccountResolutionError,
    AccountResolver,
    APIError,
    AuthenticationError,
    BillingDataSource,
    CloudProviderError,
    ConfigurationError,
    GroupingDimension,
    GroupingOptions,
    ProviderFactory,
    RateLimitError,
    TagFilter,
    TimeGranularity,
)

__all__ = [
    "aws",
    "Account",
    "AccountResolutionError",
    "AccountResolver",
    "APIError",
    "AuthenticationError",
    "BillingDataSource",
    "CloudProviderError",
    "ConfigurationError",
    "GroupingDimension",
    "GroupingOptions",
    "ProviderFactory",
    "RateLimitError",
    "TagFilter",
    "TimeGranularity",
]
