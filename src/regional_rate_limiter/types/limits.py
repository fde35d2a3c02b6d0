# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Rate limit specifications.

Limits are written as ``"maxRequests:intervalSeconds"`` strings, both in the
static endpoint catalog and in the ``X-Method-Rate-Limit`` response header.
"""

import math
from dataclasses import dataclass

from ..exceptions import ConfigurationError


@dataclass(frozen=True)
class LimitSpec:
    """
    One rate-limit bucket: at most ``max_requests`` in ``interval_ms``.

    Attributes:
        max_requests: Maximum number of actions inside one interval
        interval_ms: Length of the rolling window in milliseconds
    """

    max_requests: int
    interval_ms: int

    @classmethod
    def parse(cls, value: str) -> "LimitSpec":
        """
        Parse a ``"max:intervalSeconds"`` limit string.

        Servers may report several comma-separated pairs (``"20:10,100:600"``);
        only the first pair is used.

        Raises:
            ConfigurationError: If the string is not a valid limit
        """
        first = value.split(",", 1)[0].strip()
        parts = first.split(":")
        if len(parts) != 2:
            raise ConfigurationError(f"Invalid rate limit {value!r}")
        try:
            max_requests = int(parts[0])
            interval_seconds = int(parts[1])
        except ValueError as e:
            raise ConfigurationError(f"Invalid rate limit {value!r}") from e
        if max_requests < 1 or interval_seconds < 1:
            raise ConfigurationError(f"Rate limit must be positive, got {value!r}")
        return cls(max_requests=max_requests, interval_ms=interval_seconds * 1000)

    def min_spacing_ms(self, multiplier: float) -> int:
        """Minimum distance between two actions when spreading the budget evenly."""
        return math.ceil(self.interval_ms / self.max_requests * multiplier)

    def __str__(self) -> str:
        return f"{self.max_requests}:{self.interval_ms // 1000}"


__all__ = ["LimitSpec"]
