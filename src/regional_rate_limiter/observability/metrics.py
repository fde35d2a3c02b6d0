# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Prometheus metrics for the regional scheduler.

Metrics are registered once per process with the default registry. Each
RegionalClient holds a SchedulerMetrics recorder; when metrics are disabled
the recorder's methods do nothing.
"""

from __future__ import annotations

import logging
import threading

from prometheus_client import Counter, Gauge, Histogram

from .constants import (
    ENDPOINT_LIMIT_UPDATES_TOTAL,
    GATE_ERRORS_TOTAL,
    LIMIT_EXCEEDED_TOTAL,
    LIMITER_WAIT_SECONDS,
    QUEUE_DEPTH,
    QUEUE_WAIT_SECONDS,
    REQUESTS_COMPLETED_TOTAL,
    REQUESTS_DISPATCHED_TOTAL,
    RETRIES_TOTAL,
    WAIT_BUCKETS,
)

logger = logging.getLogger(__name__)

_registration_lock = threading.Lock()
_metrics: dict[str, Counter | Gauge | Histogram] = {}


def _get_metrics() -> dict[str, Counter | Gauge | Histogram]:
    """Register the metric families on first use."""
    with _registration_lock:
        if not _metrics:
            _metrics[REQUESTS_DISPATCHED_TOTAL] = Counter(
                REQUESTS_DISPATCHED_TOTAL,
                "Requests handed to the transport",
                ["region", "endpoint"],
            )
            _metrics[REQUESTS_COMPLETED_TOTAL] = Counter(
                REQUESTS_COMPLETED_TOTAL,
                "Requests settled by outcome",
                ["region", "outcome"],
            )
            _metrics[RETRIES_TOTAL] = Counter(
                RETRIES_TOTAL,
                "Retries scheduled by reason",
                ["region", "reason"],
            )
            _metrics[LIMIT_EXCEEDED_TOTAL] = Counter(
                LIMIT_EXCEEDED_TOTAL,
                "429 responses received",
                ["region", "endpoint"],
            )
            _metrics[ENDPOINT_LIMIT_UPDATES_TOTAL] = Counter(
                ENDPOINT_LIMIT_UPDATES_TOTAL,
                "Endpoint-group limiters rebuilt from response headers",
                ["region", "endpoint"],
            )
            _metrics[GATE_ERRORS_TOTAL] = Counter(
                GATE_ERRORS_TOTAL,
                "Attempt gate store failures",
                ["region"],
            )
            _metrics[QUEUE_DEPTH] = Gauge(
                QUEUE_DEPTH,
                "Pending items per region and queue",
                ["region", "queue"],
            )
            _metrics[LIMITER_WAIT_SECONDS] = Histogram(
                LIMITER_WAIT_SECONDS,
                "Time slept before dispatch",
                ["region"],
                buckets=WAIT_BUCKETS,
            )
            _metrics[QUEUE_WAIT_SECONDS] = Histogram(
                QUEUE_WAIT_SECONDS,
                "Time from submission to dispatch",
                ["region", "priority"],
                buckets=WAIT_BUCKETS,
            )
            logger.debug("Registered scheduler metrics")
        return _metrics


class SchedulerMetrics:
    """
    Recorder for scheduler metrics.

    Example:
        >>> metrics = SchedulerMetrics(enabled=True)
        >>> metrics.record_dispatch("na1", "summoner.by_name")
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._families = _get_metrics() if enabled else {}

    def record_dispatch(self, region: str, endpoint: str) -> None:
        if self.enabled:
            self._families[REQUESTS_DISPATCHED_TOTAL].labels(
                region=region, endpoint=endpoint
            ).inc()

    def record_completion(self, region: str, outcome: str) -> None:
        if self.enabled:
            self._families[REQUESTS_COMPLETED_TOTAL].labels(
                region=region, outcome=outcome
            ).inc()

    def record_retry(self, region: str, reason: str) -> None:
        if self.enabled:
            self._families[RETRIES_TOTAL].labels(region=region, reason=reason).inc()

    def record_limit_exceeded(self, region: str, endpoint: str) -> None:
        if self.enabled:
            self._families[LIMIT_EXCEEDED_TOTAL].labels(
                region=region, endpoint=endpoint
            ).inc()

    def record_limit_update(self, region: str, endpoint: str) -> None:
        if self.enabled:
            self._families[ENDPOINT_LIMIT_UPDATES_TOTAL].labels(
                region=region, endpoint=endpoint
            ).inc()

    def record_gate_error(self, region: str) -> None:
        if self.enabled:
            self._families[GATE_ERRORS_TOTAL].labels(region=region).inc()

    def set_queue_depth(self, region: str, queue: str, depth: int) -> None:
        if self.enabled:
            self._families[QUEUE_DEPTH].labels(region=region, queue=queue).set(depth)

    def observe_wait(self, region: str, seconds: float) -> None:
        if self.enabled:
            self._families[LIMITER_WAIT_SECONDS].labels(region=region).observe(seconds)

    def observe_queue_wait(self, region: str, priority: str, seconds: float) -> None:
        if self.enabled:
            self._families[QUEUE_WAIT_SECONDS].labels(
                region=region, priority=priority
            ).observe(seconds)


__all__ = ["SchedulerMetrics"]
