"""
AWS profile authentication utilities.

Resolves named AWS profiles from the local credential and config files into
boto3 sessions, reporting failures as results rather than exceptions.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field, field_validator

try:
    import boto3
    from botocore.exceptions import BotoCoreError

    AWS_AVAILABLE = True
except ImportError:
    AWS_AVAILABLE = False

logger = logging.getLogger(__name__)


class AuthenticationResult(BaseModel):
    """Result of an authentication attempt with validation."""

    success: bool = Field(..., description="Whether authentication was successful")
    profile: str = Field(..., min_length=1, max_length=256, description="AWS profile name")
    method: str = Field(..., min_length=1, max_length=100, description="Authentication method used")
    error_message: str | None = Field(
        None, max_length=1000, description="Error message if authentication failed"
    )
    credentials: Any | None = Field(None, description="Authenticated session object")

    @classmethod
    def create_success(cls, profile: str, method: str, credentials: Any) -> "AuthenticationResult":
        """Create a successful authentication result."""
        return cls(
            success=True,
            profile=profile,
            method=method,
            credentials=credentials,
            error_message=None,
        )

    @classmethod
    def create_failure(cls, profile: str, method: str, error_message: str) -> "AuthenticationResult":
        """Create a failed authentication result."""
        return cls(
            success=False,
            profile=profile,
            method=method,
            error_message=error_message[:1000],
            credentials=None,
        )

    @field_validator("error_message")
    @classmethod
    def validate_error_message(cls, v: str | None) -> str | None:
        """Validate error message."""
        if v is not None:
            stripped = v.strip()
            return stripped if stripped else None
        return v


class AWSProfileAuthenticator:
    """Creates a boto3 session for one named profile."""

    def __init__(self, profile: str, config: dict[str, Any] | None = None):
        self.profile = profile
        self.config = config or {}

    async def authenticate(self) -> AuthenticationResult:
        """Build a session for the profile; credentials are validated on first use."""
        if not AWS_AVAILABLE:
            return AuthenticationResult.create_failure(
                profile=self.profile,
                method="none",
                error_message="AWS SDK (boto3) not available",
            )

        try:
            session = boto3.Session(
                profile_name=self.profile, region_name=self.config.get("region", "us-east-1")
            )
        except BotoCoreError as e:
            logger.debug(f"AWS profile {self.profile} could not be loaded: {e}")
            return AuthenticationResult.create_failure(
                profile=self.profile, method="profile", error_message=str(e)
            )

        logger.debug(f"AWS session created for profile {self.profile}")
        return AuthenticationResult.create_success(
            profile=self.profile, method="profile", credentials=session
        )


def discover_profiles() -> list[str]:
    """Every profile named in ``~/.aws/credentials`` and ``~/.aws/config``."""
    if not AWS_AVAILABLE:
        return []
    try:
        return sorted(boto3.Session().available_profiles)
    except BotoCoreError as e:
        logger.warning(f"Could not read AWS profiles: {e}")
        return []
