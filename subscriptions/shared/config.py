"""
Configuration Management

Pydantic-settings based configuration for the email subscription custom resource.
All settings can be overridden via environment variables.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables are prefixed with SUBSCRIPTIONS_ and are case-insensitive.
    Example: SUBSCRIPTIONS_CALLBACK_TIMEOUT_SECONDS=30
    """

    model_config = SettingsConfigDict(
        env_prefix="SUBSCRIPTIONS_",
        env_file=[".env.local", ".env"],  # Try .env.local first
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # SNS Configuration
    sns_endpoint_url: str | None = Field(
        default=None,
        description="SNS endpoint URL (for local development)",
    )

    # CloudFormation callback Configuration
    callback_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Connect and read timeout for the ResponseURL PUT",
    )
    callback_max_reason_length: int = Field(
        default=1024,
        ge=16,
        description="Maximum length of the Reason field sent to CloudFormation",
    )
    callback_user_agent: str = Field(
        default="email-subscription-custom-resource",
        description="User-Agent header sent with the callback",
    )

    # AWS Configuration
    aws_region: str = Field(
        default="us-east-1",
        description="AWS region",
    )

    # Application Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    @property
    def sns_config(self) -> dict:
        """SNS client configuration."""
        config = {"region_name": self.aws_region}
        if self.sns_endpoint_url:
            config["endpoint_url"] = self.sns_endpoint_url
        return config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are loaded only once.
    Call get_settings.cache_clear() in tests after changing the environment.
    """
    return Settings()
