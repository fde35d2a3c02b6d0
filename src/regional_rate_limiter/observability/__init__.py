# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Prometheus metrics for the regional scheduler."""

from .constants import METRIC_PREFIX
from .metrics import SchedulerMetrics

__all__ = ["METRIC_PREFIX", "SchedulerMetrics"]
