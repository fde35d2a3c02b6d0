# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Regional Rate Limiter - Client-side request scheduling for rate-limited APIs.

This library keeps a client inside a server's published rate limits by
queueing requests per region and pacing them against several rolling
windows at once.

Key Features:
    - Per-region admission queues with a high-priority lane
    - Two application-wide limits plus one limit per endpoint group
    - Endpoint limits learned from response headers and shared between processes
    - Retry with server-directed delay on 429 and exponential backoff on 5xx
    - In-memory or Redis shared store

Quick Start:
    >>> from regional_rate_limiter import ClientConfig, Priority, RegionalClient
    >>>
    >>> async with RegionalClient(ClientConfig(api_key="...")) as client:
    ...     summoner = await client.get("na1", "summoner.by_name", "someone")
    ...     league = await client.get(
    ...         "na1", "league.positions", summoner["id"], priority=Priority.HIGH
    ...     )

Main Exports:
    - RegionalClient: Request facade owning one scheduler per region
    - ClientConfig: Configuration options
    - EndpointCatalog, DEFAULT_ENDPOINTS: Endpoint templates and default limits
    - MemoryStore, RedisStore: Shared stores
    - HttpxTransport: Default transport

Note: RedisStore requires the 'redis' extra. Install with:
    pip install regional-rate-limiter[redis]

Version: 1.0.0
"""

__version__ = "1.0.0"

from typing import TYPE_CHECKING

from .catalog import DEFAULT_ENDPOINTS, EndpointCatalog, EndpointDescriptor
from .client import RegionalClient
from .config import ClientConfig
from .exceptions import (
    BackendConnectionError,
    BackendOperationError,
    ConfigurationError,
    EndpointNotFoundError,
    PathArgumentError,
    RateLimiterError,
    RateLimitExceededError,
    RequestFailedError,
    ServerFaultError,
    TransportFaultError,
)
from .region import Region
from .stores import BaseStore, HealthCheckResult, MemoryStore
from .transport import HttpxTransport, Transport
from .types import LimitSpec, OutcomeKind, Priority, TransportResponse

# Lazy import for optional redis store
if TYPE_CHECKING:
    from .stores import RedisStore

__all__ = [
    "DEFAULT_ENDPOINTS",
    "BackendConnectionError",
    "BackendOperationError",
    # Stores
    "BaseStore",
    # Configuration
    "ClientConfig",
    "ConfigurationError",
    # Catalog
    "EndpointCatalog",
    "EndpointDescriptor",
    "EndpointNotFoundError",
    "HealthCheckResult",
    "HttpxTransport",
    # Types
    "LimitSpec",
    "MemoryStore",
    "OutcomeKind",
    "PathArgumentError",
    "Priority",
    "RateLimitExceededError",
    # Exceptions
    "RateLimiterError",
    "RedisStore",  # Lazy loaded - requires redis extra
    "Region",
    # Client
    "RegionalClient",
    "RequestFailedError",
    "ServerFaultError",
    # Transport
    "Transport",
    "TransportFaultError",
    "TransportResponse",
]


def __getattr__(name: str) -> type:
    """Lazy import for optional redis store."""
    if name == "RedisStore":
        from .stores import RedisStore

        return RedisStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
