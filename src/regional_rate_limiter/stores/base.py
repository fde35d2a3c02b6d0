# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Base Store for Regional Rate Limiter

This module provides the BaseStore abstract class that defines the interface
for the shared state used by cooperating processes:

- a plain key-value pair space for persisting discovered endpoint limits
- a rolling-window attempt counter backing every rate-limit gate

"""

import abc
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class HealthCheckResult:
    """
    Structured health check result for store monitoring.

    Attributes:
        healthy: Whether the store is operational
        store_type: Type of store (e.g., 'redis', 'memory')
        error: Error message if unhealthy
        metadata: Additional store-specific information
    """

    healthy: bool
    store_type: str
    error: str | None = None
    metadata: dict[str, Any] | None = None


def sliding_window_wait(
    existing: Sequence[float],
    now: float,
    interval_ms: float,
    max_in_interval: int,
    min_difference_ms: float = 0,
) -> float:
    """
    Compute how long an action recorded at ``now`` would have had to wait.

    Args:
        existing: Timestamps (ms, ascending) still inside the window, not
            including the action being recorded
        now: Timestamp of the action being recorded (ms)
        interval_ms: Window length
        max_in_interval: Maximum actions inside one window
        min_difference_ms: Minimum distance between two consecutive actions

    Returns:
        Milliseconds until the action would have been allowed; 0 if allowed
    """
    too_many = len(existing) >= max_in_interval
    since_last = now - existing[-1] if existing else None
    too_soon = (
        min_difference_ms > 0
        and since_last is not None
        and since_last < min_difference_ms
    )

    if not (too_many or too_soon):
        return 0.0

    wait = 0.0
    if too_many:
        wait = existing[len(existing) - max_in_interval] - now + interval_ms
    if too_soon and since_last is not None:
        wait = max(wait, min_difference_ms - since_last)
    return max(wait, 0.0)


class BaseStore(abc.ABC):
    """
    Abstract interface for the state shared between cooperating processes.

    Implementations must make ``attempt`` atomic with respect to other callers
    of the same key, so that every process sees the same rolling window.
    """

    store_type = "base"

    # ==========================================================================
    # Key-Value
    # ==========================================================================

    @abc.abstractmethod
    async def get(self, key: str) -> str | None:
        """
        Get the value stored under a key.

        Returns:
            The stored string, or None if absent
        """
        pass

    @abc.abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store a value under a key."""
        pass

    # ==========================================================================
    # Rolling Window
    # ==========================================================================

    @abc.abstractmethod
    async def attempt(
        self,
        key: str,
        interval_ms: int,
        max_in_interval: int,
        min_difference_ms: int = 0,
    ) -> float:
        """
        Record an action against a rolling-window bucket.

        The action is always recorded, even when it exceeds the limit.

        Args:
            key: Bucket key
            interval_ms: Window length in milliseconds
            max_in_interval: Maximum actions per window
            min_difference_ms: Minimum spacing between actions (0 disables)

        Returns:
            Milliseconds the action would have had to wait; 0 if allowed
        """
        pass

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    @abc.abstractmethod
    async def health_check(self) -> HealthCheckResult:
        """Check whether the store is usable."""
        pass

    async def close(self) -> None:  # noqa: B027
        """Release any resources held by the store."""
        pass


__all__ = ["BaseStore", "HealthCheckResult", "sliding_window_wait"]
