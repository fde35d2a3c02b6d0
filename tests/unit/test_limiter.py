"""
Unit tests for attempt gates and the per-region limiter set.

Covers store key layout, lazy endpoint-group limiters seeded from the store,
dynamic limit adjustment and the combined wait across all three gates.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from regional_rate_limiter.config import ClientConfig
from regional_rate_limiter.exceptions import (
    BackendConnectionError,
    BackendOperationError,
)
from regional_rate_limiter.limiter import (
    ATTEMPT_ERROR_BACKOFF_MS,
    AttemptGate,
    LimiterSet,
)
from regional_rate_limiter.stores.memory import MemoryStore
from regional_rate_limiter.types.limits import LimitSpec


class FixedClock:
    def __init__(self) -> None:
        self.now = 5_000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store(clock):
    return MemoryStore(clock=clock)


@pytest.fixture
def config():
    return ClientConfig(min_spacing_multiplier=0, metrics_enabled=False)


class TestAttemptGate:
    """Tests for AttemptGate.attempt()."""

    @pytest.mark.asyncio
    async def test_delegates_to_store(self, store):
        gate = AttemptGate(store, "na1app_0", LimitSpec(1, 1000))
        assert await gate.attempt() == 0
        assert await gate.attempt() == 1000

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error", [BackendConnectionError("down"), BackendOperationError("oops")]
    )
    async def test_store_failure_backs_off(self, error):
        failing = AsyncMock()
        failing.attempt.side_effect = error
        gate = AttemptGate(failing, "na1app_0", LimitSpec(20, 1000))
        assert await gate.attempt() == ATTEMPT_ERROR_BACKOFF_MS

    @pytest.mark.asyncio
    async def test_unexpected_store_errors_propagate(self):
        failing = AsyncMock()
        failing.attempt.side_effect = RuntimeError("bug")
        gate = AttemptGate(failing, "k", LimitSpec(20, 1000))
        with pytest.raises(RuntimeError):
            await gate.attempt()


class TestLimiterSetAppGates:
    """Tests for the two application-wide gates."""

    def test_keys_include_namespace_and_region(self, store):
        config = ClientConfig(env_namespace="prod_")
        limiters = LimiterSet("euw1", store, config)
        assert [g.key for g in limiters.app_gates] == ["prod_euw1app_0", "prod_euw1app_1"]

    def test_spacing_on_short_window_only(self, store):
        limiters = LimiterSet("na1", store, ClientConfig(min_spacing_multiplier=1.0))
        short, long = limiters.app_gates
        assert short.min_difference_ms == 50
        assert long.min_difference_ms == 0

    def test_spread_to_slowest(self, store):
        config = ClientConfig(min_spacing_multiplier=1.0, spread_to_slowest=True)
        short, long = LimiterSet("na1", store, config).app_gates
        assert short.min_difference_ms == 50
        assert long.min_difference_ms == 1200

    def test_endpoint_keys(self, store, config):
        limiters = LimiterSet("na1", store, config)
        assert limiters.endpoint_key("match.by_id") == "na1match.by_id"
        assert limiters.limit_key("match.by_id") == "na1match.by_id_limit"


class TestEnsureEndpointLimiter:
    """Tests for LimiterSet.ensure_endpoint_limiter()."""

    @pytest.mark.asyncio
    async def test_created_from_default(self, store, config):
        limiters = LimiterSet("na1", store, config)
        limiter = await limiters.ensure_endpoint_limiter("match.by_id", "500:10")
        assert limiter.limit == "500:10"
        assert limiter.gate.key == "na1match.by_id"
        assert limiter.gate.spec == LimitSpec(500, 10000)

    @pytest.mark.asyncio
    async def test_reused_on_second_call(self, store, config):
        limiters = LimiterSet("na1", store, config)
        first = await limiters.ensure_endpoint_limiter("match.by_id", "500:10")
        second = await limiters.ensure_endpoint_limiter("match.by_id", "1:1")
        assert first is second

    @pytest.mark.asyncio
    async def test_stored_limit_takes_precedence(self, store, config):
        await store.set("na1match.by_id_limit", "250:10")
        limiters = LimiterSet("na1", store, config)
        limiter = await limiters.ensure_endpoint_limiter("match.by_id", "500:10")
        assert limiter.limit == "250:10"

    @pytest.mark.asyncio
    async def test_malformed_stored_limit_ignored(self, store, config):
        await store.set("na1match.by_id_limit", "garbage")
        limiters = LimiterSet("na1", store, config)
        limiter = await limiters.ensure_endpoint_limiter("match.by_id", "500:10")
        assert limiter.limit == "500:10"

    @pytest.mark.asyncio
    async def test_store_read_failure_uses_default(self, config):
        failing = AsyncMock()
        failing.get.side_effect = BackendConnectionError("down")
        limiters = LimiterSet("na1", failing, config)
        limiter = await limiters.ensure_endpoint_limiter("match.by_id", "500:10")
        assert limiter.limit == "500:10"

    @pytest.mark.asyncio
    async def test_concurrent_creation_builds_once(self, store, config):
        limiters = LimiterSet("na1", store, config)
        results = await asyncio.gather(
            *(limiters.ensure_endpoint_limiter("match.by_id", "500:10") for _ in range(5))
        )
        assert all(r is results[0] for r in results)


class TestAdjustEndpointLimit:
    """Tests for LimiterSet.adjust_endpoint_limit()."""

    @pytest.mark.asyncio
    async def test_missing_header_is_noop(self, store, config):
        limiters = LimiterSet("na1", store, config)
        await limiters.ensure_endpoint_limiter("match.by_id", "500:10")
        assert await limiters.adjust_endpoint_limit("match.by_id", None) is False

    @pytest.mark.asyncio
    async def test_same_limit_keeps_limiter(self, store, config):
        limiters = LimiterSet("na1", store, config)
        before = await limiters.ensure_endpoint_limiter("match.by_id", "500:10")
        assert await limiters.adjust_endpoint_limit("match.by_id", "500:10") is False
        assert limiters.endpoint_limiters["match.by_id"] is before
        assert await store.get("na1match.by_id_limit") is None

    @pytest.mark.asyncio
    async def test_new_limit_rebuilds_and_persists(self, store, config):
        limiters = LimiterSet("na1", store, config)
        before = await limiters.ensure_endpoint_limiter("match.by_id", "500:10")

        assert await limiters.adjust_endpoint_limit("match.by_id", "20:10") is True

        after = limiters.endpoint_limiters["match.by_id"]
        assert after is not before
        assert after.limit == "20:10"
        assert after.gate.spec == LimitSpec(20, 10000)
        assert await store.get("na1match.by_id_limit") == "20:10"

    @pytest.mark.asyncio
    async def test_sibling_process_picks_up_persisted_limit(self, store, config):
        """A second limiter set on the same store starts from the discovered limit."""
        first = LimiterSet("na1", store, config)
        await first.ensure_endpoint_limiter("match.by_id", "500:10")
        await first.adjust_endpoint_limit("match.by_id", "20:10")

        second = LimiterSet("na1", store, config)
        limiter = await second.ensure_endpoint_limiter("match.by_id", "500:10")
        assert limiter.limit == "20:10"

    @pytest.mark.asyncio
    async def test_unparseable_limit_ignored(self, store, config):
        limiters = LimiterSet("na1", store, config)
        await limiters.ensure_endpoint_limiter("match.by_id", "500:10")
        assert await limiters.adjust_endpoint_limit("match.by_id", "lots") is False
        assert limiters.endpoint_limiters["match.by_id"].limit == "500:10"

    @pytest.mark.asyncio
    async def test_persist_failure_keeps_new_limiter(self, config):
        failing = AsyncMock()
        failing.get.return_value = None
        failing.set.side_effect = BackendOperationError("READONLY")
        limiters = LimiterSet("na1", failing, config)
        await limiters.ensure_endpoint_limiter("match.by_id", "500:10")
        assert await limiters.adjust_endpoint_limit("match.by_id", "20:10") is True
        assert limiters.endpoint_limiters["match.by_id"].limit == "20:10"


class TestCombinedWait:
    """Tests for LimiterSet.wait_ms()."""

    @pytest.mark.asyncio
    async def test_no_wait_when_all_gates_allow(self, store, config):
        limiters = LimiterSet("na1", store, config)
        await limiters.ensure_endpoint_limiter("match.by_id", "500:10")
        assert await limiters.wait_ms("match.by_id") == 0

    @pytest.mark.asyncio
    async def test_short_app_window_governs(self, store):
        config = ClientConfig(
            app_limits=("1:1", "100:120"), min_spacing_multiplier=0, metrics_enabled=False
        )
        limiters = LimiterSet("na1", store, config)
        await limiters.ensure_endpoint_limiter("match.by_id", "500:10")
        await limiters.wait_ms("match.by_id")
        assert await limiters.wait_ms("match.by_id") == 1000

    @pytest.mark.asyncio
    async def test_endpoint_window_governs(self, store, config):
        limiters = LimiterSet("na1", store, config)
        await limiters.ensure_endpoint_limiter("match.by_id", "1:10")
        await limiters.wait_ms("match.by_id")
        assert await limiters.wait_ms("match.by_id") == 10000

    @pytest.mark.asyncio
    async def test_every_gate_records_an_attempt(self, store, config):
        limiters = LimiterSet("na1", store, config)
        await limiters.ensure_endpoint_limiter("match.by_id", "500:10")
        await limiters.wait_ms("match.by_id")
        assert set(store._windows) == {"na1app_0", "na1app_1", "na1match.by_id"}

    @pytest.mark.asyncio
    async def test_regions_do_not_share_windows(self, store):
        config = ClientConfig(
            app_limits=("1:1", "100:120"), min_spacing_multiplier=0, metrics_enabled=False
        )
        na1 = LimiterSet("na1", store, config)
        euw1 = LimiterSet("euw1", store, config)
        for limiters in (na1, euw1):
            await limiters.ensure_endpoint_limiter("match.by_id", "500:10")
        await na1.wait_ms("match.by_id")
        assert await euw1.wait_ms("match.by_id") == 0
