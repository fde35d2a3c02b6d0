# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Attempt gates and the per-region limiter set.

A region is governed by three gates at once: two application-wide gates with
different windows, and one gate for the endpoint group being called. The
endpoint-group gate is created lazily, may be seeded from a limit discovered
by another process, and is replaced whenever a response reports a different
limit.
"""

import asyncio
import logging
from dataclasses import dataclass

from .config import ClientConfig
from .exceptions import (
    BackendConnectionError,
    BackendOperationError,
    ConfigurationError,
)
from .observability import SchedulerMetrics
from .stores.base import BaseStore
from .types.limits import LimitSpec

logger = logging.getLogger(__name__)

# Wait applied when the store cannot answer an attempt
ATTEMPT_ERROR_BACKOFF_MS = 500.0


class AttemptGate:
    """
    One rate-limit bucket backed by the shared store.

    ``attempt()`` never blocks on the limit itself: it records the action and
    reports how long the caller would have had to wait.
    """

    def __init__(
        self,
        store: BaseStore,
        key: str,
        spec: LimitSpec,
        min_difference_ms: int = 0,
        metrics: SchedulerMetrics | None = None,
        region: str = "",
    ) -> None:
        self.store = store
        self.key = key
        self.spec = spec
        self.min_difference_ms = min_difference_ms
        self.metrics = metrics
        self.region = region

    async def attempt(self) -> float:
        """
        Record an attempt and return the required wait in milliseconds.

        Store failures are answered with ATTEMPT_ERROR_BACKOFF_MS rather than
        failing the request.
        """
        try:
            return await self.store.attempt(
                self.key,
                self.spec.interval_ms,
                self.spec.max_requests,
                self.min_difference_ms,
            )
        except (BackendConnectionError, BackendOperationError) as e:
            logger.warning(
                f"Attempt on {self.key} failed, backing off "
                f"{ATTEMPT_ERROR_BACKOFF_MS:.0f}ms: {e}"
            )
            if self.metrics is not None:
                self.metrics.record_gate_error(self.region)
            return ATTEMPT_ERROR_BACKOFF_MS

    def __repr__(self) -> str:
        return (
            f"AttemptGate(key={self.key!r}, spec={self.spec}, "
            f"min_difference_ms={self.min_difference_ms})"
        )


@dataclass(frozen=True)
class EndpointLimiter:
    """The current gate of an endpoint group and the limit string it was built from."""

    limit: str
    gate: AttemptGate


class LimiterSet:
    """
    All gates of one region.

    Attributes:
        region: Region identifier
        app_gates: The two application-wide gates
        endpoint_limiters: Current limiter per endpoint group
    """

    def __init__(
        self,
        region: str,
        store: BaseStore,
        config: ClientConfig,
        metrics: SchedulerMetrics | None = None,
    ) -> None:
        self.region = region
        self.store = store
        self.config = config
        self.metrics = metrics or SchedulerMetrics(enabled=False)

        short_spec, long_spec = config.app_limit_specs
        multiplier = config.min_spacing_multiplier
        self.app_gates: tuple[AttemptGate, AttemptGate] = (
            AttemptGate(
                store,
                self._app_key(0),
                short_spec,
                short_spec.min_spacing_ms(multiplier),
                metrics=self.metrics,
                region=region,
            ),
            AttemptGate(
                store,
                self._app_key(1),
                long_spec,
                long_spec.min_spacing_ms(multiplier)
                if config.spread_to_slowest
                else 0,
                metrics=self.metrics,
                region=region,
            ),
        )

        self.endpoint_limiters: dict[str, EndpointLimiter] = {}
        self._endpoint_locks: dict[str, asyncio.Lock] = {}

    # ==========================================================================
    # Store keys
    # ==========================================================================

    def _app_key(self, index: int) -> str:
        return f"{self.config.env_namespace}{self.region}app_{index}"

    def endpoint_key(self, group: str) -> str:
        """Key of the rolling window for an endpoint group."""
        return f"{self.config.env_namespace}{self.region}{group}"

    def limit_key(self, group: str) -> str:
        """Key under which a discovered endpoint-group limit is persisted."""
        return f"{self.endpoint_key(group)}_limit"

    # ==========================================================================
    # Endpoint-group limiters
    # ==========================================================================

    def _build(self, group: str, limit: str) -> EndpointLimiter:
        spec = LimitSpec.parse(limit)
        gate = AttemptGate(
            self.store,
            self.endpoint_key(group),
            spec,
            spec.min_spacing_ms(self.config.min_spacing_multiplier),
            metrics=self.metrics,
            region=self.region,
        )
        return EndpointLimiter(limit=limit, gate=gate)

    async def ensure_endpoint_limiter(
        self, group: str, default_limit: str
    ) -> EndpointLimiter:
        """
        Get the limiter of an endpoint group, creating it on first use.

        A limit persisted by another process takes precedence over the
        catalog default.
        """
        limiter = self.endpoint_limiters.get(group)
        if limiter is not None:
            return limiter  # Fast path - no lock needed

        # setdefault keeps lock creation atomic across coroutines
        lock = self._endpoint_locks.setdefault(group, asyncio.Lock())
        async with lock:
            limiter = self.endpoint_limiters.get(group)
            if limiter is not None:
                return limiter  # Double-check pattern

            try:
                stored = await self.store.get(self.limit_key(group))
            except (BackendConnectionError, BackendOperationError) as e:
                logger.warning(f"Could not read stored limit for {group}: {e}")
                stored = None

            limiter = None
            if stored is not None:
                logger.debug(f"Got limit for {group} from store: {stored}")
                try:
                    limiter = self._build(group, stored)
                except ConfigurationError as e:
                    logger.warning(f"Ignoring stored limit for {group}: {e}")
            if limiter is None:
                limiter = self._build(group, default_limit)

            self.endpoint_limiters[group] = limiter
            logger.debug(
                f"New endpoint limiter for {group} in {self.region}: {limiter.limit}"
            )
            return limiter

    async def adjust_endpoint_limit(self, group: str, reported: str | None) -> bool:
        """
        Replace an endpoint group's limiter when the server reports a new limit.

        The new limit is persisted so sibling processes converge on it.

        Returns:
            True if the limiter was rebuilt
        """
        if reported is None:
            return False
        current = self.endpoint_limiters.get(group)
        if current is not None and current.limit == reported:
            return False

        try:
            replacement = self._build(group, reported)
        except ConfigurationError as e:
            logger.warning(f"Ignoring unparseable limit for {group}: {e}")
            return False

        self.endpoint_limiters[group] = replacement
        logger.debug(
            f"Endpoint limit for {group} in {self.region} changed: "
            f"{current.limit if current else None} -> {reported}"
        )
        self.metrics.record_limit_update(self.region, group)

        try:
            await self.store.set(self.limit_key(group), reported)
        except (BackendConnectionError, BackendOperationError) as e:
            logger.warning(f"Could not persist limit for {group}: {e}")
        return True

    # ==========================================================================
    # Combined wait
    # ==========================================================================

    async def wait_ms(self, group: str) -> float:
        """
        Consult both application gates and the endpoint-group gate.

        The three attempts run concurrently; the worst case governs.
        The endpoint-group limiter must already exist.
        """
        endpoint_gate = self.endpoint_limiters[group].gate
        waits = await asyncio.gather(
            *(gate.attempt() for gate in self.app_gates),
            endpoint_gate.attempt(),
        )
        return max(waits)


__all__ = [
    "ATTEMPT_ERROR_BACKOFF_MS",
    "AttemptGate",
    "EndpointLimiter",
    "LimiterSet",
]
