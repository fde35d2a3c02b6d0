# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
RedisStore for Regional Rate Limiter

This module provides the RedisStore that shares rate-limit state between
cooperating processes.

Key Features:
- One sorted set per rolling-window bucket, scored by millisecond timestamps
- Prune, read, record and expire executed in a single MULTI transaction
- Plain string keys for persisted endpoint-group limits
"""

import asyncio
import logging
import math
import os
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Any, cast

from redis.asyncio import Redis
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from ..exceptions import BackendConnectionError, BackendOperationError
from .base import BaseStore, HealthCheckResult, sliding_window_wait

logger = logging.getLogger(__name__)


def _decode(value: Any) -> str | None:
    """Normalize a reply from clients created without decode_responses."""
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


class RedisStore(BaseStore):
    """
    A distributed Redis store.

    Deployment Requirements:
    - Redis 2.6+ (PEXPIRE)
    - All cooperating processes must use the same env_namespace for their
      keys to converge
    """

    store_type = "redis"

    def __init__(
        self,
        redis_url: str | None = None,
        redis_client: Any | None = None,
        max_connections: int = 10,
        socket_timeout: float = 5.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the Redis store.

        Args:
            redis_url: Redis connection URL. If not provided, falls back to REDIS_URL
                environment variable, then to "redis://localhost:6379".
            redis_client: Optional pre-configured ``redis.asyncio`` client
            max_connections: Maximum connections in the pool
            socket_timeout: Connect and read timeout in seconds
            clock: Time source returning seconds since the epoch

        Environment Variables:
            REDIS_URL: Default Redis connection URL when redis_url parameter is not provided.
        """
        self.redis_url = (
            redis_url or os.environ.get("REDIS_URL") or "redis://localhost:6379"
        )
        self.max_connections = max_connections
        self.socket_timeout = socket_timeout
        self._clock = clock

        self._redis: Any | None = redis_client
        self._owned_redis = redis_client is None
        self._connected = redis_client is not None
        self._connection_lock = asyncio.Lock()

    async def _ensure_connected(self) -> Any:
        """Create the client on first use and verify it with a ping."""
        if self._redis is not None and self._connected:
            return self._redis

        async with self._connection_lock:
            if self._redis is not None and self._connected:
                return self._redis

            if self._redis is None:
                self._redis = Redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=self.socket_timeout,
                    socket_timeout=self.socket_timeout,
                    max_connections=self.max_connections,
                )
            try:
                await asyncio.wait_for(
                    cast(Awaitable[bool], self._redis.ping()),
                    timeout=self.socket_timeout,
                )
            except (ConnectionError, TimeoutError, asyncio.TimeoutError) as e:
                logger.warning(f"Redis unavailable at {self.redis_url}: {e}")
                raise BackendConnectionError(
                    f"Cannot connect to Redis at {self.redis_url}"
                ) from e

            self._connected = True
            logger.info(f"Connected to Redis at {self.redis_url}")
            return self._redis

    async def get(self, key: str) -> str | None:
        redis_client = await self._ensure_connected()
        try:
            value = await redis_client.get(key)
        except RedisError as e:
            raise BackendOperationError(f"GET {key} failed: {e}") from e
        return _decode(value)

    async def set(self, key: str, value: str) -> None:
        redis_client = await self._ensure_connected()
        try:
            await redis_client.set(key, value)
        except RedisError as e:
            raise BackendOperationError(f"SET {key} failed: {e}") from e

    async def attempt(
        self,
        key: str,
        interval_ms: int,
        max_in_interval: int,
        min_difference_ms: int = 0,
    ) -> float:
        redis_client = await self._ensure_connected()

        now = self._clock() * 1000.0
        clear_before = now - interval_ms
        # Members must be unique across processes recording in the same millisecond
        member = f"{now:.3f}:{uuid.uuid4().hex[:12]}"

        try:
            pipe = redis_client.pipeline(transaction=True)
            pipe.zremrangebyscore(key, 0, clear_before)
            pipe.zrange(key, 0, -1, withscores=True)
            pipe.zadd(key, {member: now})
            pipe.pexpire(key, math.ceil(interval_ms))
            results = await pipe.execute()
        except RedisError as e:
            raise BackendOperationError(f"Attempt on {key} failed: {e}") from e

        existing = sorted(float(score) for _, score in results[1])
        return sliding_window_wait(
            existing, now, interval_ms, max_in_interval, min_difference_ms
        )

    async def health_check(self) -> HealthCheckResult:
        """Perform health check on the store."""
        try:
            redis_client = await self._ensure_connected()
            test_key = f"health_check_{int(self._clock())}"
            await redis_client.set(test_key, "test", ex=60)
            result = await redis_client.get(test_key)
            await redis_client.delete(test_key)
            return HealthCheckResult(
                healthy=_decode(result) == "test",
                store_type=self.store_type,
                metadata={"redis_url": self.redis_url, "connected": self._connected},
            )
        except (RedisError, BackendConnectionError) as e:
            return HealthCheckResult(
                healthy=False, store_type=self.store_type, error=str(e)
            )

    async def close(self) -> None:
        """Close the client if this store created it."""
        if self._redis is None or not self._owned_redis:
            return
        connection = self._redis
        self._redis = None
        self._connected = False
        try:
            if hasattr(connection, "aclose"):
                await connection.aclose()
            else:
                await connection.close()
        except RedisError as e:
            logger.error(f"Error during connection cleanup: {e}")


__all__ = ["RedisStore"]
