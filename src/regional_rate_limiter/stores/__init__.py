# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Shared store implementations.

Available stores:
- BaseStore: Abstract base class defining the store interface
- MemoryStore: In-memory store for single-process deployments
- RedisStore: Redis-based store for cooperating processes (requires redis extra)

Note: RedisStore is lazily imported to avoid requiring the redis package
when only using MemoryStore.
"""

from typing import TYPE_CHECKING, cast

from regional_rate_limiter.stores.base import (
    BaseStore,
    HealthCheckResult,
    sliding_window_wait,
)
from regional_rate_limiter.stores.memory import MemoryStore

# Lazy import for optional redis store
if TYPE_CHECKING:
    from regional_rate_limiter.stores.redis import RedisStore

__all__ = [
    "BaseStore",
    "HealthCheckResult",
    "MemoryStore",
    # Redis store (lazy loaded)
    "RedisStore",
    "sliding_window_wait",
]


def __getattr__(name: str) -> type:
    """Lazy import for the optional redis store."""
    if name == "RedisStore":
        try:
            from regional_rate_limiter.stores import redis as redis_module

            return cast(type, redis_module.RedisStore)
        except ImportError as e:  # pragma: no cover
            raise ImportError(  # pragma: no cover
                f"'{name}' requires the 'redis' extra. "
                "Install with: pip install regional-rate-limiter[redis]"
            ) from e
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
