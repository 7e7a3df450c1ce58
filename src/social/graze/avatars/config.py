"""
Configuration Module for the Avatar Federation Resolver

Settings are loaded from environment variables through pydantic-settings, with
defaults matching the public Libravatar deployment. The Settings object is frozen:
once constructed it is shared read-only by every resolution.

Key configuration areas include:
- Default protocol class (plain HTTP or HTTPS)
- Fallback hosts used when a domain publishes no avatar service
- DNS SRV service names queried for federation
- Cache lifetime and DNS timeout
- Monitoring and error reporting
"""

import logging
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from social.graze.avatars.errors import ConfigurationError


logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Resolver settings.

    Environment variables map directly onto field names, for example
    FALLBACK_HOST or CACHE_TTL. Statsd settings keep the TELEGRAF_* aliases used
    across our other services.
    """

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    debug: bool = False
    """
    Enable verbose logging.
    Set with DEBUG=true environment variable.
    """

    use_https: bool = False
    """
    Resolve the secure (avatars-sec / HTTPS) service by default.
    Set with USE_HTTPS environment variable.
    """

    fallback_host: str = "cdn.libravatar.org"
    """
    Host used for plain HTTP when a domain publishes no avatar service.
    Set with FALLBACK_HOST environment variable.
    """

    secure_fallback_host: str = "seccdn.libravatar.org"
    """
    Host used for HTTPS when a domain publishes no avatar service.
    Set with SECURE_FALLBACK_HOST environment variable.
    """

    service_base: str = "avatars"
    """
    SRV service name queried for plain HTTP federation (_avatars._tcp.domain).
    Set with SERVICE_BASE environment variable.
    """

    secure_service_base: str = "avatars-sec"
    """
    SRV service name queried for HTTPS federation (_avatars-sec._tcp.domain).
    Set with SECURE_SERVICE_BASE environment variable.
    """

    cache_ttl: int = 86400  # 24 hours
    """
    Seconds a resolved (or fallback) location stays usable without re-querying DNS.
    Set with CACHE_TTL environment variable.
    Default: 86400 (1 day, the minimum recommended by the Libravatar federation docs)
    """

    dns_timeout: float = 5.0
    """
    Seconds to wait for an SRV answer before treating discovery as timed out.
    Set with DNS_TIMEOUT environment variable.
    """

    # Monitoring and error reporting
    sentry_dsn: Optional[str] = None
    """
    Sentry DSN for error reporting. Optional, no error reporting if not set.
    Set with SENTRY_DSN environment variable.
    """

    metrics_backend: str = "none"
    """
    Metrics backend: 'telegraf' or 'none'.
    Set with METRICS_BACKEND environment variable.
    """

    statsd_host: str = Field(alias="TELEGRAF_HOST", default="telegraf")
    """
    StatsD/Telegraf host for metrics collection.
    Set with TELEGRAF_HOST environment variable.
    """

    statsd_port: int = Field(alias="TELEGRAF_PORT", default=8125)
    """
    StatsD/Telegraf port for metrics collection.
    Set with TELEGRAF_PORT environment variable.
    """

    statsd_prefix: str = "avatars"
    """Prefix for all StatsD metrics from this service."""

    @field_validator(
        "fallback_host",
        "secure_fallback_host",
        "service_base",
        "secure_service_base",
    )
    @classmethod
    def require_hostname(cls, v: str) -> str:
        """Reject empty hosts and service names; strip whitespace and trailing dots."""
        v = v.strip().rstrip(".")
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("cache_ttl", "dns_timeout")
    @classmethod
    def require_positive(cls, v):
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("metrics_backend")
    @classmethod
    def normalize_metrics_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("none", "telegraf"):
            raise ValueError("must be 'none' or 'telegraf'")
        return v


def _configuration_error(e: ValidationError) -> ConfigurationError:
    fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
    logger.error("Invalid resolver configuration: %s", ", ".join(fields))
    return ConfigurationError(
        f"Invalid resolver configuration: {', '.join(fields)}",
        details={"errors": e.errors(include_url=False)},
    )


def load_settings(**overrides) -> Settings:
    """
    Build validated Settings from the environment plus keyword overrides.

    Raises:
        ConfigurationError: If any setting is invalid. The pydantic
            ValidationError is chained as the cause.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise _configuration_error(e) from e


def validate_settings(settings: Settings) -> Settings:
    """
    Re-run validation on a Settings instance built elsewhere.

    model_copy(update=...) and model_construct skip the field validators, so an
    injected instance is checked again before use. The environment is not read.

    Raises:
        ConfigurationError: If any setting is invalid.
    """
    try:
        return Settings.model_validate(settings.model_dump())
    except ValidationError as e:
        raise _configuration_error(e) from e
