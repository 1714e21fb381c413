"""
Configuration models for hecrelay using Pydantic v2 Settings.

Settings are read from the process environment once per process (see
`get_settings`) and passed explicitly into each invocation. Nested groups
map to ``HECRELAY_<GROUP>__<FIELD>`` variables; the legacy
``SPLUNK_HEC_URL`` / ``SPLUNK_HEC_TOKEN`` names used by earlier Lambda
deployments are honoured when the prefixed variables are unset.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import (  # type: ignore[import-not-found]
    BaseSettings,
    SettingsConfigDict,
)

LEGACY_URL_ENV = "SPLUNK_HEC_URL"
LEGACY_TOKEN_ENV = "SPLUNK_HEC_TOKEN"


class CoreSettings(BaseModel):
    """Process-level logging and metrics settings."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum level for diagnostics output",
    )
    log_received_event: bool = Field(
        default=False,
        description=("Log the full invocation event on receipt (DEBUG level)"),
    )
    enable_metrics: bool = Field(
        default=False,
        description=("Enable Prometheus-compatible metrics"),
    )


class HecSettings(BaseModel):
    """Splunk HTTP Event Collector endpoint and event defaults.

    ``url`` and ``token`` are deliberately optional: a missing value only
    surfaces as a `ConfigurationError` when the forwarder tries to send.
    """

    url: str | None = Field(
        default=None,
        description="HEC endpoint, e.g. https://host:8088/services/collector",
    )
    token: str | None = Field(default=None, description="HEC token")
    auth_scheme: Literal["Splunk", "Bearer"] = Field(
        default="Splunk",
        description="Scheme used in the Authorization header",
    )
    host: str | None = Field(default=None, description="Default event host")
    source: str | None = Field(default=None, description="Default event source")
    sourcetype: str | None = Field(
        default=None, description="Default event sourcetype"
    )
    index: str | None = Field(default=None, description="Default target index")
    timeout_seconds: float | None = Field(
        default=None,
        gt=0.0,
        description=("Request timeout; httpx default applies when unset"),
    )
    verify_tls: bool = Field(
        default=True,
        description="Verify the endpoint's TLS certificate",
    )
    max_batch_events: int | None = Field(
        default=None,
        ge=1,
        description=(
            "Split the flush into requests of at most this many events; "
            "unset sends everything in one request"
        ),
    )
    include_lambda_context: bool = Field(
        default=False,
        description=(
            "Attribute events with the Lambda function name and request id"
        ),
    )

    @field_validator("url", "token", mode="before")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class DecoderSettings(BaseModel):
    """Which records of an incoming batch are decoded."""

    strategy: Literal["all", "last"] = Field(
        default="all",
        description=(
            "'all' decodes every record; 'last' decodes only the final "
            "record of the batch"
        ),
    )


class Settings(BaseSettings):
    """Top-level configuration model."""

    core: CoreSettings = Field(default_factory=CoreSettings)
    hec: HecSettings = Field(default_factory=HecSettings)
    decoder: DecoderSettings = Field(default_factory=DecoderSettings)

    model_config = SettingsConfigDict(
        env_prefix="HECRELAY_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def _apply_legacy_env(self) -> "Settings":
        legacy_url = os.getenv(LEGACY_URL_ENV)
        legacy_token = os.getenv(LEGACY_TOKEN_ENV)
        updates: dict[str, str] = {}
        if self.hec.url is None and legacy_url and legacy_url.strip():
            updates["url"] = legacy_url.strip()
        if self.hec.token is None and legacy_token and legacy_token.strip():
            updates["token"] = legacy_token.strip()
        if updates:
            self.hec = self.hec.model_copy(update=updates)
        return self

    def to_dict(self, *, redact_token: bool = True) -> dict[str, object]:
        data = self.model_dump(exclude_none=True)
        hec = data.get("hec")
        if redact_token and isinstance(hec, dict) and "token" in hec:
            hec["token"] = "***"
        return data


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, loaded on first use."""
    return Settings()


# Mark Pydantic validators as used for vulture
_VULTURE_USED: tuple[object, ...] = (
    HecSettings._blank_to_none,
    Settings._apply_legacy_env,
)
