# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Per-region admission queue and scheduler loop.

Each Region owns two queues (priority and normal), its limiter set, and a
single drain task. Enqueueing only appends and signals; the drain task keeps
running until it observes both queues empty.

Ordering contract:
    - The priority queue is drained completely before one normal item is
      taken, after which the priority queue is checked again.
    - Within one queue the most recently enqueued item is serviced first
      (items are popped from the end they are appended to).
    - Retries re-enter their queue at the far end, behind pending work.
"""

import asyncio
import inspect
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .catalog import EndpointCatalog
from .config import ClientConfig
from .exceptions import RateLimiterError, TransportFaultError
from .limiter import LimiterSet
from .observability import SchedulerMetrics
from .retry import RetryAction, RetryController
from .stores.base import BaseStore
from .transport import Transport
from .types.outcome import OutcomeKind, TransportResponse
from .types.queue import Priority, QueueItem

logger = logging.getLogger(__name__)


async def snooze(ms: float) -> None:
    """Suspend the calling coroutine for ``ms`` milliseconds."""
    await asyncio.sleep(ms / 1000.0)


class Region:
    """
    Independent rate-limit scope with its own queues, limiters and drain task.

    Attributes:
        name: Region identifier (e.g. ``"na1"``)
        limiters: Application and endpoint-group gates of this region
        retry: Retry/backoff controller
        priority_queue: Items admitted with Priority.HIGH
        queue: Items admitted with Priority.NORMAL
        is_processing: True while a drain is in progress
    """

    def __init__(
        self,
        name: str,
        config: ClientConfig,
        store: BaseStore,
        transport: Transport,
        catalog: EndpointCatalog,
        metrics: SchedulerMetrics | None = None,
    ) -> None:
        self.name = name
        self.config = config
        self.transport = transport
        self.catalog = catalog
        self.metrics = metrics or SchedulerMetrics(enabled=False)

        self.limiters = LimiterSet(name, store, config, self.metrics)
        self.retry = RetryController(config.max_retries, config.retry_ms)
        self.url_prefix = config.url_prefix % name

        self.priority_queue: list[QueueItem] = []
        self.queue: list[QueueItem] = []
        self.is_processing = False
        self._drain_task: asyncio.Task[None] | None = None

        logger.debug(f"New region {name}")

    # ==========================================================================
    # Admission
    # ==========================================================================

    @property
    def pending(self) -> int:
        """Number of items waiting in both queues."""
        return len(self.priority_queue) + len(self.queue)

    def submit(
        self,
        endpoint: str,
        path_args: Iterable[Any] = (),
        query: Mapping[str, Any] | None = None,
        priority: Priority = Priority.NORMAL,
    ) -> "asyncio.Future[Any]":
        """
        Admit a request and return the future that will carry its result.

        Must be called from within a running event loop.
        """
        loop = asyncio.get_running_loop()
        item = QueueItem(
            region=self.name,
            endpoint=endpoint,
            path_args=tuple(path_args),
            query=dict(query or {}),
            future=loop.create_future(),
            priority=priority,
        )
        self.enqueue(item)
        return item.future

    def _queue_for(self, priority: Priority) -> list[QueueItem]:
        return self.priority_queue if priority is Priority.HIGH else self.queue

    def enqueue(self, item: QueueItem) -> None:
        """Append an item to the tail of its queue and signal the drain."""
        self._queue_for(item.priority).append(item)
        self._update_depth()
        self._signal()

    def _requeue(self, item: QueueItem) -> None:
        """Put a retried item back at the far end of its queue."""
        self._queue_for(item.priority).insert(0, item)
        self._update_depth()
        self._signal()

    def _update_depth(self) -> None:
        self.metrics.set_queue_depth(self.name, "priority", len(self.priority_queue))
        self.metrics.set_queue_depth(self.name, "normal", len(self.queue))

    # ==========================================================================
    # Drain loop
    # ==========================================================================

    def _signal(self) -> None:
        """Start a drain unless one is already running."""
        if self.is_processing:
            return
        self.is_processing = True
        self._drain_task = asyncio.create_task(self._drain())

    async def _drain(self) -> None:
        try:
            while self.priority_queue or self.queue:
                while self.priority_queue:
                    await self._process(self.priority_queue)
                if self.queue:
                    await self._process(self.queue)
        finally:
            self.is_processing = False
            logger.debug(f"Region {self.name} idle")

    async def wait_idle(self) -> None:
        """Wait until the current drain, if any, has finished."""
        while self._drain_task is not None and not self._drain_task.done():
            await asyncio.shield(self._drain_task)

    async def _process(self, queue: list[QueueItem]) -> None:
        item = queue.pop()
        self._update_depth()
        try:
            await self._dispatch(item)
        except asyncio.CancelledError:
            item.reject(RateLimiterError(f"Request to {item.endpoint} was cancelled"))
            raise
        except RateLimiterError as e:
            logger.debug(f"Request to {item.endpoint} in {self.name} failed: {e}")
            item.reject(e)
        except Exception as e:
            logger.exception(f"Unexpected error processing {item.endpoint}: {e}")
            item.reject(TransportFaultError(f"Unexpected error: {e}"))

    async def _dispatch(self, item: QueueItem) -> None:
        """Resolve, wait out the limits, send, and route the outcome."""
        descriptor = self.catalog.resolve(item.endpoint)
        url = self.url_prefix + descriptor.build_path(item.path_args)

        await self.limiters.ensure_endpoint_limiter(item.endpoint, descriptor.limit)

        limiter_wait = await self.limiters.wait_ms(item.endpoint)
        total_wait = limiter_wait + item.retry_ms
        if total_wait > 0:
            logger.debug(
                f"Snoozing for {total_wait:.0f}ms before {item.endpoint} in {self.name}"
            )
            self.metrics.observe_wait(self.name, total_wait / 1000.0)
            await snooze(total_wait)

        self.metrics.observe_queue_wait(
            self.name, item.priority.name.lower(), item.queued_seconds
        )
        self.metrics.record_dispatch(self.name, item.endpoint)
        try:
            response = await self.transport.send(url, item.query, self.config.api_key)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Transport raised for {url}: {e!r}")
            response = TransportResponse(status_code=None, message=str(e) or repr(e))

        await self._handle_response(item, response, url)

    async def _handle_response(
        self, item: QueueItem, response: TransportResponse, url: str
    ) -> None:
        await self.limiters.adjust_endpoint_limit(item.endpoint, response.method_limit)

        decision = self.retry.decide(item, response, url)
        if decision.kind is OutcomeKind.RATE_LIMITED:
            await self._on_rate_limited(item, response, url)

        if decision.action is RetryAction.RESOLVE:
            item.resolve(decision.value)
            self.metrics.record_completion(self.name, decision.kind.value)
        elif decision.action is RetryAction.RETRY:
            self.retry.apply(item, decision)
            self.metrics.record_retry(self.name, decision.kind.value)
            self._requeue(item)
        else:
            assert decision.error is not None
            item.reject(decision.error)
            self.metrics.record_completion(self.name, decision.kind.value)

    async def _on_rate_limited(
        self, item: QueueItem, response: TransportResponse, url: str
    ) -> None:
        self.metrics.record_limit_exceeded(self.name, item.endpoint)
        info: dict[str, Any] = {
            "headers": dict(response.headers),
            "url": url,
            "region": self.name,
            "endpoint": item.endpoint,
        }
        if self.config.show_warnings:
            logger.warning(f"429 - Rate limit exceeded for {url}: {info['headers']}")

        callback = self.config.exceeded_callback
        if callback is None:
            return
        try:
            result = callback(info)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.exception(f"Rate limit exceeded callback failed: {e}")


__all__ = ["Region", "snooze"]
