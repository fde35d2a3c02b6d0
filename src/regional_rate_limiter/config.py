# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Client Configuration for Regional Rate Limiter

This module provides the configuration consumed by RegionalClient and the
per-region schedulers it creates. Values are resolved once, up front; no
component reads process state on its own.
"""

import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .exceptions import ConfigurationError
from .types.limits import LimitSpec

ENV_API_KEY = "RIOT_API_KEY"
ENV_REDIS_URL = "REDIS_URL"
ENV_NAMESPACE = "RATE_LIMITER_ENV"


@dataclass
class ClientConfig:
    """
    Configuration for the regional rate-limited client.
    """

    # === Credentials and Routing ===

    api_key: str = ""
    """API key sent with every request."""

    url_prefix: str = "https://%s.api.riotgames.com"
    """Base URL; ``%s`` is replaced by the region identifier."""

    # === Application Limits ===

    app_limits: tuple[str, str] = ("20:1", "100:120")
    """The two application-wide limits, short burst window first."""

    min_spacing_multiplier: float = 1.0
    """Safety multiplier applied to the even-spread minimum spacing."""

    spread_to_slowest: bool = False
    """Also enforce minimum spacing for the slower application limit."""

    # === Retry Handling ===

    max_retries: int = 3
    """Maximum retries for rate-limited and transient server failures."""

    retry_ms: int = 1000
    """Default delay in milliseconds before the first retry."""

    exceeded_callback: Callable[[dict[str, Any]], Any] | None = None
    """Invoked with headers and URL whenever a 429 is received."""

    # === Shared State ===

    env_namespace: str = ""
    """Prefix for every shared-store key, isolating deployments."""

    redis_url: str | None = None
    """Redis URL for the shared store; in-memory when unset."""

    # === Transport ===

    request_timeout: float = 10.0
    """Transport timeout in seconds."""

    # === Diagnostics ===

    show_warnings: bool = True
    """Log a warning for every 429 received."""

    debug: bool = False
    """Enable verbose debug logging for the package."""

    metrics_enabled: bool = True
    """Record Prometheus metrics."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if len(self.app_limits) != 2:
            raise ValueError("app_limits must contain exactly two limits")
        for limit in self.app_limits:
            try:
                LimitSpec.parse(limit)
            except ConfigurationError as e:
                raise ValueError(str(e)) from e
        if self.min_spacing_multiplier < 0:
            raise ValueError("min_spacing_multiplier must not be negative")
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.retry_ms <= 0:
            raise ValueError("retry_ms must be positive")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if "%s" not in self.url_prefix:
            raise ValueError("url_prefix must contain a %s placeholder for the region")

    @property
    def app_limit_specs(self) -> tuple[LimitSpec, LimitSpec]:
        return LimitSpec.parse(self.app_limits[0]), LimitSpec.parse(self.app_limits[1])

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientConfig":
        """
        Build a configuration from environment variables.

        Environment Variables:
            RIOT_API_KEY: API key
            REDIS_URL: Shared store URL
            RATE_LIMITER_ENV: Namespace prefix for shared-store keys

        Keyword arguments take precedence over the environment.
        """
        values: dict[str, Any] = {
            "api_key": os.environ.get(ENV_API_KEY, ""),
            "redis_url": os.environ.get(ENV_REDIS_URL) or None,
            "env_namespace": os.environ.get(ENV_NAMESPACE, ""),
        }
        values.update(overrides)
        return cls(**values)


__all__ = ["ClientConfig"]
