# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metric name constants following Prometheus naming conventions.

All metric names use the `regional_rl_` prefix.

Naming Conventions:
    - Counter metrics end with `_total`
    - Histogram metrics for time end with `_seconds`
    - Gauges use present-tense descriptive names

Label Best Practices:
    Use only categorical labels:
    - `region` - Routing scope (na1, euw1, ...)
    - `endpoint` - Dotted endpoint group path
    - `priority` - Queue the item was admitted to (high, normal)
    - `reason` / `outcome` - Enum values

    NEVER use summoner names, match ids or URLs as label values.
"""


METRIC_PREFIX = "regional_rl"
"""Prefix for all Prometheus metrics in this library."""


# =============================================================================
# Scheduling Metrics (region.py)
# =============================================================================

REQUESTS_DISPATCHED_TOTAL = f"{METRIC_PREFIX}_requests_dispatched_total"
"""Total requests handed to the transport."""

REQUESTS_COMPLETED_TOTAL = f"{METRIC_PREFIX}_requests_completed_total"
"""Total requests settled, labelled by outcome."""

RETRIES_TOTAL = f"{METRIC_PREFIX}_retries_total"
"""Total retries scheduled, labelled by reason."""

LIMIT_EXCEEDED_TOTAL = f"{METRIC_PREFIX}_limit_exceeded_total"
"""Total 429 responses received."""

QUEUE_DEPTH = f"{METRIC_PREFIX}_queue_depth"
"""Current number of pending items per region and queue."""

LIMITER_WAIT_SECONDS = f"{METRIC_PREFIX}_limiter_wait_seconds"
"""Time spent sleeping before dispatch (histogram)."""

QUEUE_WAIT_SECONDS = f"{METRIC_PREFIX}_queue_wait_seconds"
"""Time from submission to dispatch, retries included (histogram)."""


# =============================================================================
# Limiter Metrics (limiter.py)
# =============================================================================

ENDPOINT_LIMIT_UPDATES_TOTAL = f"{METRIC_PREFIX}_endpoint_limit_updates_total"
"""Total endpoint-group limiter rebuilds triggered by response headers."""

GATE_ERRORS_TOTAL = f"{METRIC_PREFIX}_gate_errors_total"
"""Total attempt-gate store failures answered with a fixed backoff."""


WAIT_BUCKETS = (0.0, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0)
"""Histogram buckets for limiter waits in seconds."""
