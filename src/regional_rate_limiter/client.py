# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Regional rate-limited API client.

RegionalClient is the public entry point. It owns one Region per region
identifier, created on first use, and routes every call to that region's
admission queue. All regions share one store, one transport and one
endpoint catalog.

Example:
    async with RegionalClient(ClientConfig(api_key="...")) as client:
        summoner = await client.get("na1", "summoner.by_name", "someone")
        matches = await client.get(
            "euw1", "match.by_account", summoner["accountId"],
            {"queue": [420]}, Priority.HIGH,
        )
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from typing_extensions import Self

from .catalog import EndpointCatalog
from .config import ClientConfig
from .observability import SchedulerMetrics
from .region import Region
from .stores.base import BaseStore
from .stores.memory import MemoryStore
from .transport import HttpxTransport, Transport
from .types.queue import Priority

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "regional_rate_limiter"


class RegionalClient:
    """
    Rate-limited client that schedules requests per region.

    Args:
        config: Client configuration; defaults to ``ClientConfig()``
        store: Shared store; a RedisStore when ``config.redis_url`` is set,
            otherwise a MemoryStore
        transport: HTTP transport; defaults to HttpxTransport
        catalog: Endpoint catalog; defaults to the built-in endpoints
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        store: BaseStore | None = None,
        transport: Transport | None = None,
        catalog: EndpointCatalog | None = None,
    ) -> None:
        self.config = config or ClientConfig()

        if self.config.debug:
            logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG)

        self.store = store if store is not None else self._default_store()
        self.transport = (
            transport
            if transport is not None
            else HttpxTransport(timeout=self.config.request_timeout)
        )
        self.catalog = catalog or EndpointCatalog()
        self.metrics = SchedulerMetrics(enabled=self.config.metrics_enabled)
        self._regions: dict[str, Region] = {}

        logger.debug(
            f"RegionalClient created with store={self.store.store_type}, "
            f"app_limits={self.config.app_limits}"
        )

    def _default_store(self) -> BaseStore:
        if self.config.redis_url:
            from .stores.redis import RedisStore

            return RedisStore(redis_url=self.config.redis_url)
        return MemoryStore()

    # ==========================================================================
    # Regions
    # ==========================================================================

    def region(self, name: str) -> Region:
        """Get the Region for ``name``, creating it on first use."""
        region = self._regions.get(name)
        if region is None:
            region = Region(
                name,
                self.config,
                self.store,
                self.transport,
                self.catalog,
                self.metrics,
            )
            self._regions[name] = region
        return region

    @property
    def regions(self) -> Mapping[str, Region]:
        """Read-only view of the regions created so far."""
        return MappingProxyType(self._regions)

    # ==========================================================================
    # Requests
    # ==========================================================================

    async def get(
        self,
        region: str,
        endpoint: str,
        *args: Any,
        query: Mapping[str, Any] | None = None,
        priority: Priority = Priority.NORMAL,
    ) -> Any:
        """
        Schedule a GET request and wait for its result.

        Positional arguments after the endpoint fill the endpoint's
        placeholders in order. A trailing Priority and, before it, a trailing
        mapping are taken as the priority and the query parameters.

        Args:
            region: Region identifier, e.g. ``"na1"``
            endpoint: Dotted endpoint path, e.g. ``"summoner.by_name"``
            *args: Path arguments, optionally followed by query and priority
            query: Query parameters (alternative to the positional form)
            priority: Queue priority (alternative to the positional form)

        Returns:
            The decoded response body, or None if the resource was not found

        Raises:
            EndpointNotFoundError: If the endpoint is not in the catalog
            PathArgumentError: If the argument count does not match the template
            RequestFailedError: If the request failed terminally
        """
        path_args = list(args)
        if path_args and isinstance(path_args[-1], Priority):
            priority = path_args.pop()
        if path_args and isinstance(path_args[-1], Mapping):
            query = path_args.pop()

        future = self.region(region).submit(endpoint, path_args, query, priority)
        return await future

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    async def wait_idle(self) -> None:
        """Wait until every region has drained its queues."""
        for region in list(self._regions.values()):
            await region.wait_idle()

    async def aclose(self) -> None:
        """Close the transport and the store."""
        aclose = getattr(self.transport, "aclose", None)
        if aclose is not None:
            await aclose()
        await self.store.close()
        logger.debug("RegionalClient closed")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.aclose()


__all__ = ["RegionalClient"]
