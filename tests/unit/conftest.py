"""
Shared fixtures for the scheduler unit tests.

Usage:
    @pytest.mark.asyncio
    async def test_something(region_factory, fake_transport):
        fake_transport.respond(TransportResponse(200, body={"id": 1}))
        region = region_factory()
        assert await region.submit("summoner.by_id", [1]) == {"id": 1}
"""

from __future__ import annotations

import dataclasses
from collections import deque
from collections.abc import Callable, Mapping
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from regional_rate_limiter.catalog import EndpointCatalog
from regional_rate_limiter.config import ClientConfig
from regional_rate_limiter.region import Region
from regional_rate_limiter.stores.memory import MemoryStore
from regional_rate_limiter.types.outcome import TransportResponse


class FakeTransport:
    """
    Scripted transport recording every call.

    Responses are served in order; once the script is exhausted the last
    response is repeated. A script entry may be an exception instance, which
    is raised, or a callable taking the URL and returning a response.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any], str]] = []
        self._script: deque[Any] = deque()
        self._last: Any = TransportResponse(200, body=None)

    def respond(self, *responses: Any) -> None:
        self._script.extend(responses)

    @property
    def urls(self) -> list[str]:
        return [url for url, _, _ in self.calls]

    async def send(
        self, url: str, params: Mapping[str, Any], token: str
    ) -> TransportResponse:
        self.calls.append((url, dict(params), token))
        if self._script:
            self._last = self._script.popleft()
        entry = self._last
        if isinstance(entry, BaseException):
            raise entry
        if callable(entry):
            return entry(url)
        return entry


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def quiet_config() -> ClientConfig:
    """Config without minimum spacing so waits come only from retries."""
    return ClientConfig(
        api_key="test-key",
        min_spacing_multiplier=0,
        show_warnings=False,
        metrics_enabled=False,
    )


@pytest.fixture
def region_factory(
    quiet_config: ClientConfig,
    memory_store: MemoryStore,
    fake_transport: FakeTransport,
) -> Callable[..., Region]:
    def _make(name: str = "na1", **config_overrides: Any) -> Region:
        config = dataclasses.replace(quiet_config, **config_overrides)
        return Region(name, config, memory_store, fake_transport, EndpointCatalog())

    return _make


@pytest.fixture
def no_sleep():
    """Replace the scheduler's sleep with a recording no-op."""
    with patch("regional_rate_limiter.region.snooze", new=AsyncMock()) as mock_snooze:
        yield mock_snooze
