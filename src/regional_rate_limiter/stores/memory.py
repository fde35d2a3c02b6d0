# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
MemoryStore for Regional Rate Limiter

This module provides an in-memory store that doesn't require Redis.
Perfect for testing, development, and single-process applications.
"""

import asyncio
import logging
import time
from collections import defaultdict, deque
from collections.abc import Callable

from .base import BaseStore, HealthCheckResult, sliding_window_wait

logger = logging.getLogger(__name__)


class MemoryStore(BaseStore):
    """
    An in-memory store implementation.

    Key Features:
    - Pure dict-based key-value storage
    - Rolling windows kept as deques of millisecond timestamps
    - Async-safe operations using asyncio.Lock

    Note:
        This store is NOT suitable for multi-process applications; limits
        discovered by one process are not seen by another.
    """

    store_type = "memory"

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """
        Initialize the in-memory store.

        Args:
            clock: Time source returning seconds since the epoch
        """
        self._clock = clock
        self._values: dict[str, str] = {}
        self._windows: dict[str, deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()

        logger.debug("Initialized MemoryStore")

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    async def get(self, key: str) -> str | None:
        async with self._lock:
            return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            self._values[key] = value

    async def attempt(
        self,
        key: str,
        interval_ms: int,
        max_in_interval: int,
        min_difference_ms: int = 0,
    ) -> float:
        async with self._lock:
            now = self._now_ms()
            window = self._windows[key]
            clear_before = now - interval_ms
            while window and window[0] <= clear_before:
                window.popleft()

            existing = list(window)
            window.append(now)

            return sliding_window_wait(
                existing, now, interval_ms, max_in_interval, min_difference_ms
            )

    async def health_check(self) -> HealthCheckResult:
        return HealthCheckResult(
            healthy=True,
            store_type=self.store_type,
            metadata={"keys": len(self._values), "windows": len(self._windows)},
        )

    async def clear(self) -> None:
        """Drop every stored value and window."""
        async with self._lock:
            self._values.clear()
            self._windows.clear()


__all__ = ["MemoryStore"]
