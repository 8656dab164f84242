# SPDX-License-Identifier: Apache-2.0
"""Environment-backed settings for the CRPT documents client.

All settings load from ``CRPT_``-prefixed environment variables or a local
``.env`` file:

    CRPT_BASE_URL: True-API base URL
    CRPT_AUTH_TOKEN: Auth token (the Bearer prefix is optional)
    CRPT_PRODUCT_GROUP: Product group code, e.g. ``milk``
    CRPT_REQUEST_LIMIT: Requests allowed per interval
    CRPT_INTERVAL: Interval unit name (SECONDS, MINUTES, ...)
    CRPT_TIMEOUT: Request timeout in seconds
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from crptapi.client.documents_client import CrptApiClient
from crptapi.client.models import DEFAULT_TIMEOUT
from crptapi.client.rate_limit import TimeUnit, interval_seconds
from crptapi.security.mask import mask

# Configuration versioning constants
CURRENT_CONFIG_VERSION = "1"
MIN_SUPPORTED_VERSION = "1"


class CrptSettings(BaseSettings):
    """Validated client settings."""

    model_config = SettingsConfigDict(
        env_prefix="CRPT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    config_version: str = Field(
        default=CURRENT_CONFIG_VERSION, description="Configuration schema version"
    )
    base_url: Optional[str] = Field(None, description="True-API base URL")
    auth_token: Optional[str] = Field(None, description="Auth token, Bearer prefix optional")
    product_group: Optional[str] = Field(None, description="Product group code (pg)")
    request_limit: int = Field(10, ge=1, description="Requests allowed per interval")
    interval: TimeUnit = Field(TimeUnit.MINUTES, description="Rate limit window unit")
    timeout: float = Field(DEFAULT_TIMEOUT, gt=0, description="Request timeout in seconds")

    @field_validator("interval", mode="before")
    @classmethod
    def validate_interval(cls, v: Any) -> Any:
        """Accept unit names in any case."""
        if isinstance(v, str):
            name = v.strip().upper()
            if name not in TimeUnit.__members__:
                raise ValueError(
                    f"Unknown interval unit: {v}. Valid units: {list(TimeUnit.__members__)}"
                )
            return TimeUnit[name]
        return v

    @field_validator("interval")
    @classmethod
    def validate_interval_length(cls, v: TimeUnit) -> TimeUnit:
        interval_seconds(v)
        return v

    def build_client(self, **overrides: Any) -> CrptApiClient:
        """Construct a client from these settings.

        Keyword arguments are passed to :class:`CrptApiClient` and win over
        the settings (useful to inject a transport).
        """
        kwargs: dict[str, Any] = {
            "interval": self.interval,
            "request_limit": self.request_limit,
            "base_url": self.base_url,
            "auth_token": self.auth_token,
            "product_group": self.product_group,
            "timeout": self.timeout,
        }
        kwargs.update(overrides)
        return CrptApiClient(**kwargs)

    def describe(self) -> dict[str, Any]:
        """Settings as a dict with the auth token masked."""
        data = self.model_dump()
        data["auth_token"] = mask(self.auth_token)
        data["interval"] = self.interval.name
        return data


__all__ = ["CrptSettings", "CURRENT_CONFIG_VERSION", "MIN_SUPPORTED_VERSION"]
