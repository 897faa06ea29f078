"""
Gateway Configuration
=====================
Settings loaded once from the environment at process start and injected
into every component through `app.state`. Invalid configuration is fatal.
"""

import os
from typing import Mapping, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError

DEFAULT_LOG_RETENTION_DAYS = 30
DEFAULT_MAX_SKEW_MS = 300_000
DEFAULT_QUERY_TIMEOUT_MS = 30_000
DEFAULT_ADMIN_TIMEOUT_MS = 120_000

# Settings field -> environment variable
ENV_VARS = {
    "query_webhook_url": "RAG_QUERY_WEBHOOK_URL",
    "ingest_webhook_url": "RAG_INGEST_WEBHOOK_URL",
    "admin_webhook_url": "RAG_ADMIN_WEBHOOK_URL",
    "webhook_shared_secret": "RAG_WEBHOOK_SHARED_SECRET",
    "admin_user": "ADMIN_BASIC_USER",
    "admin_password": "ADMIN_BASIC_PASS",
    "session_secret": "SESSION_SECRET",
    "log_retention_days": "LOG_RETENTION_DAYS",
    "signature_max_skew_ms": "RAG_SIGNATURE_MAX_SKEW_MS",
    "query_timeout_ms": "UPSTREAM_QUERY_TIMEOUT_MS",
    "admin_timeout_ms": "UPSTREAM_ADMIN_TIMEOUT_MS",
    "log_level": "LOG_LEVEL",
    "log_json": "LOG_JSON",
}


class GatewaySettings(BaseModel):
    """Validated, read-only gateway configuration."""

    model_config = ConfigDict(frozen=True)

    query_webhook_url: str
    ingest_webhook_url: str
    admin_webhook_url: str
    webhook_shared_secret: str = Field(min_length=24, repr=False)
    admin_user: str = Field(min_length=1)
    admin_password: str = Field(min_length=8, repr=False)
    session_secret: str = Field(min_length=16, repr=False)
    log_retention_days: int = Field(default=DEFAULT_LOG_RETENTION_DAYS, ge=1, le=3650)
    signature_max_skew_ms: int = Field(default=DEFAULT_MAX_SKEW_MS, gt=0)
    query_timeout_ms: int = Field(default=DEFAULT_QUERY_TIMEOUT_MS, gt=0)
    admin_timeout_ms: int = Field(default=DEFAULT_ADMIN_TIMEOUT_MS, gt=0)
    log_level: str = "INFO"
    log_json: bool = True

    @field_validator("query_webhook_url", "ingest_webhook_url", "admin_webhook_url")
    @classmethod
    def _check_webhook_url(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except (httpx.InvalidURL, TypeError) as e:
            raise ValueError(f"invalid URL: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError("must be an absolute http(s) URL")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError("must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return level


def load_settings(environ: Optional[Mapping[str, str]] = None) -> GatewaySettings:
    """
    Read and validate gateway settings from the environment.

    Empty strings count as unset, so optional variables fall back to their
    defaults and required ones are reported as missing.

    Raises:
        ConfigurationError: listing every invalid or missing variable
    """
    if environ is None:
        environ = os.environ

    raw = {}
    for field_name, env_name in ENV_VARS.items():
        value = environ.get(env_name)
        if value is not None and value != "":
            raw[field_name] = value

    try:
        return GatewaySettings.model_validate(raw)
    except ValidationError as e:
        issues = []
        for error in e.errors(include_url=False):
            field_name = str(error["loc"][0]) if error["loc"] else ""
            issues.append(f"{ENV_VARS.get(field_name, field_name)}: {error['msg']}")
        raise ConfigurationError(
            "Invalid environment configuration: " + "; ".join(issues)
        ) from None
