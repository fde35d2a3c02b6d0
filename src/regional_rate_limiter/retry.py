# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Retry and backoff decisions.

The RetryController turns a classified transport outcome into one of three
actions: resolve the caller, retry the item, or fail it with a structured
error. It never touches the queues itself; the region applies the decision.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import (
    RateLimitExceededError,
    RequestFailedError,
    ServerFaultError,
    TransportFaultError,
)
from .types.outcome import OutcomeKind, TransportResponse, classify
from .types.queue import Priority, QueueItem

logger = logging.getLogger(__name__)


class RetryAction(Enum):
    RESOLVE = "resolve"
    RETRY = "retry"
    FAIL = "fail"


@dataclass
class RetryDecision:
    """
    What to do with an item after a transport outcome.

    Attributes:
        action: Resolve, retry or fail
        kind: Classified outcome that led to the decision
        value: Result delivered to the caller on RESOLVE
        delay_ms: Accumulated delay to apply before the next dispatch on RETRY
        priority: Queue to re-enter on RETRY
        error: Structured error delivered to the caller on FAIL
    """

    action: RetryAction
    kind: OutcomeKind
    value: Any = None
    delay_ms: float = 0
    priority: Priority = Priority.NORMAL
    error: RequestFailedError | None = None


class RetryController:
    """
    Decide between resolve, retry and fail for each transport outcome.

    Attributes:
        max_retries: Retries allowed per item before failing terminally
        retry_ms: Delay of the first retry when the server gives no hint
    """

    def __init__(self, max_retries: int = 3, retry_ms: float = 1000) -> None:
        self.max_retries = max_retries
        self.retry_ms = retry_ms

    def has_budget(self, item: QueueItem) -> bool:
        return item.retry_count < self.max_retries

    def backoff_ms(self, item: QueueItem) -> float:
        """Exponential backoff: retry_ms first, then double the previous delay."""
        return self.retry_ms if item.retry_ms == 0 else item.retry_ms * 2

    def decide(
        self, item: QueueItem, response: TransportResponse, url: str | None = None
    ) -> RetryDecision:
        """
        Classify a response and decide the item's fate.

        Args:
            item: The item that was dispatched
            response: The transport response
            url: Requested URL, carried into structured errors
        """
        kind = classify(response)

        if kind is OutcomeKind.SUCCESS:
            return RetryDecision(RetryAction.RESOLVE, kind, value=response.body)

        if kind is OutcomeKind.NOT_FOUND:
            return RetryDecision(RetryAction.RESOLVE, kind, value=None)

        if kind is OutcomeKind.RATE_LIMITED:
            if self.has_budget(item):
                retry_after = response.retry_after_ms
                if retry_after is not None:
                    delay: float = retry_after
                elif item.retry_ms > 0:
                    delay = item.retry_ms
                else:
                    delay = self.retry_ms
                # 429 retries always re-enter the priority queue
                return RetryDecision(
                    RetryAction.RETRY, kind, delay_ms=delay, priority=Priority.HIGH
                )
            return RetryDecision(
                RetryAction.FAIL,
                kind,
                error=RateLimitExceededError(
                    f"429 - Aborting request after retrying {item.retry_count} times: "
                    f"{response.message}",
                    status_code=response.status_code,
                    url=url,
                    retries=item.retry_count,
                ),
            )

        if kind is OutcomeKind.SERVER_FAULT:
            if self.has_budget(item):
                return RetryDecision(
                    RetryAction.RETRY,
                    kind,
                    delay_ms=self.backoff_ms(item),
                    priority=item.priority,
                )
            return RetryDecision(
                RetryAction.FAIL,
                kind,
                error=ServerFaultError(
                    f"Aborting request after retrying {item.retry_count} times: "
                    f"{response.message}",
                    status_code=response.status_code,
                    url=url,
                    retries=item.retry_count,
                ),
            )

        return RetryDecision(
            RetryAction.FAIL,
            kind,
            error=TransportFaultError(
                response.message or f"Request failed with status {response.status_code}",
                status_code=response.status_code,
                url=url,
            ),
        )

    def apply(self, item: QueueItem, decision: RetryDecision) -> None:
        """Record a RETRY decision on the item; the retry counter moves exactly once."""
        if decision.action is not RetryAction.RETRY:
            raise ValueError(f"Cannot apply {decision.action.value} decision as retry")
        item.retry_count += 1
        item.retry_ms = decision.delay_ms
        item.priority = decision.priority
        logger.debug(
            f"Retry {item.retry_count}/{self.max_retries} for {item.endpoint} "
            f"in {item.region} after {decision.delay_ms:.0f}ms ({decision.kind.value})"
        )


__all__ = ["RetryAction", "RetryController", "RetryDecision"]
