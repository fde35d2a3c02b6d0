# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Type definitions and constants."""

from .limits import LimitSpec
from .outcome import (
    METHOD_LIMIT_HEADER,
    RETRY_AFTER_HEADER,
    OutcomeKind,
    TransportResponse,
    classify,
)
from .queue import Priority, QueueItem

__all__ = [
    "METHOD_LIMIT_HEADER",
    "RETRY_AFTER_HEADER",
    # Rate limit types
    "LimitSpec",
    # Transport outcomes
    "OutcomeKind",
    # Queue types
    "Priority",
    "QueueItem",
    "TransportResponse",
    "classify",
]
