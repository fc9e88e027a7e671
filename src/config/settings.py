"""
Module: settings.py
Description: Relay configuration using pydantic-settings.

Reads the downstream endpoint, credential and retry settings from
environment variables once at process start. Supports .env files for
local development.
"""

import re
from functools import lru_cache
from typing import Any, FrozenSet

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from delivery.errors import ConfigurationError
from models.delivery import RetryPolicy

_TRUTHY = re.compile(r"^(1|true|yes)$", re.IGNORECASE)


class Settings(BaseSettings):
    """Relay settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True
    )

    log_level: str = Field(default="INFO", description="Logging level")

    # Downstream settings
    downstream_function_url: str = Field(
        default="",
        description="Downstream endpoint receiving blob notifications"
    )
    downstream_function_key: str = Field(
        default="",
        description="Optional key sent as x-functions-key"
    )
    fail_on_non_2xx: bool = Field(
        default=True,
        description="Raise when the final downstream response is not 2xx"
    )

    # Retry settings
    max_retries: int = Field(default=3, ge=0, description="Retries after the first attempt")
    timeout_ms: int = Field(default=8000, gt=0, description="Per-attempt timeout in milliseconds")
    retry_base_ms: int = Field(default=400, ge=0, description="Backoff base in milliseconds")
    retry_status_codes: str = Field(
        default="408,429,500,502,503,504",
        description="Comma-separated HTTP status codes treated as transient"
    )

    @field_validator('fail_on_non_2xx', mode='before')
    @classmethod
    def parse_flag(cls, v: Any) -> bool:
        """Only 1/true/yes (any case) switch the flag on."""
        if isinstance(v, bool):
            return v
        return bool(_TRUTHY.match(str(v).strip()))

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()

    @property
    def retryable_status_codes(self) -> FrozenSet[int]:
        """Parsed retry_status_codes; entries that are not integers are dropped."""
        codes = set()
        for part in self.retry_status_codes.split(","):
            part = part.strip()
            try:
                codes.add(int(part))
            except ValueError:
                continue
        return frozenset(codes)

    def retry_policy(self) -> RetryPolicy:
        """Build the read-only retry policy shared by every delivery."""
        return RetryPolicy(
            max_retries=self.max_retries,
            per_attempt_timeout=self.timeout_ms / 1000,
            backoff_base=self.retry_base_ms / 1000,
            retryable_status_codes=self.retryable_status_codes
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load settings once per process.

    Raises:
        ConfigurationError: If an environment value fails validation
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid relay configuration: {e}") from e
