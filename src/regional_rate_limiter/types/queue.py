# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Queue types for the per-region admission queue.

This module defines the priority marker and the QueueItem carried through the
admission queue, the scheduler loop and the retry controller.
"""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class Priority(Enum):
    """Admission priority. HIGH items always preempt NORMAL items."""

    HIGH = 1
    NORMAL = 0


@dataclass
class QueueItem:
    """
    A request waiting in a region's admission queue.

    The future is the single-shot continuation pair: it is settled exactly once,
    either with the response body or with an exception.

    Attributes:
        region: Routing scope the request belongs to
        endpoint: Dotted endpoint path in the catalog
        path_args: Positional arguments substituted into the URL template
        query: Query string parameters
        future: Future resolved with the result of the request
        priority: Queue the item is admitted to
        retry_count: Number of retries performed so far
        retry_ms: Accumulated extra delay applied before the next dispatch
        queue_entry_time: UTC timestamp when the item was first submitted; kept
            across retries
    """

    region: str
    endpoint: str
    path_args: tuple[Any, ...]
    query: Mapping[str, Any]
    future: "asyncio.Future[Any]"
    priority: Priority = Priority.NORMAL
    retry_count: int = 0
    retry_ms: float = 0
    queue_entry_time: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def queued_seconds(self) -> float:
        """Seconds elapsed since the item was first submitted."""
        return (datetime.now(timezone.utc) - self.queue_entry_time).total_seconds()

    @property
    def settled(self) -> bool:
        """Whether the item's result has already been delivered."""
        return self.future.done()

    def resolve(self, value: Any) -> bool:
        """Deliver a successful result. Returns False if already settled."""
        if self.future.done():
            logger.debug(f"Ignoring second result for {self.endpoint} in {self.region}")
            return False
        self.future.set_result(value)
        return True

    def reject(self, error: BaseException) -> bool:
        """Deliver a failure. Returns False if already settled."""
        if self.future.done():
            logger.debug(f"Ignoring second error for {self.endpoint} in {self.region}")
            return False
        self.future.set_exception(error)
        return True


__all__ = ["Priority", "QueueItem"]
