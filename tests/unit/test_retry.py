"""Unit tests for the retry controller."""

import asyncio

import pytest

from regional_rate_limiter.exceptions import (
    RateLimitExceededError,
    ServerFaultError,
    TransportFaultError,
)
from regional_rate_limiter.retry import RetryAction, RetryController
from regional_rate_limiter.types.outcome import OutcomeKind, TransportResponse
from regional_rate_limiter.types.queue import Priority, QueueItem

URL = "https://na1.api.riotgames.com/lol/match/v3/matches/1"


def make_item(priority=Priority.NORMAL) -> QueueItem:
    return QueueItem(
        region="na1",
        endpoint="match.by_id",
        path_args=(1,),
        query={},
        future=asyncio.get_running_loop().create_future(),
        priority=priority,
    )


@pytest.fixture
def controller():
    return RetryController(max_retries=3, retry_ms=1000)


class TestTerminalOutcomes:
    """Outcomes that settle the item immediately."""

    @pytest.mark.asyncio
    async def test_success_resolves_with_body(self, controller):
        decision = controller.decide(make_item(), TransportResponse(200, body={"id": 1}))
        assert decision.action is RetryAction.RESOLVE
        assert decision.value == {"id": 1}

    @pytest.mark.asyncio
    async def test_not_found_resolves_with_none(self, controller):
        decision = controller.decide(
            make_item(), TransportResponse(404, message="404 - Not Found")
        )
        assert decision.action is RetryAction.RESOLVE
        assert decision.kind is OutcomeKind.NOT_FOUND
        assert decision.value is None

    @pytest.mark.asyncio
    async def test_unknown_status_fails_without_retry(self, controller):
        decision = controller.decide(
            make_item(), TransportResponse(403, message="403 - Forbidden"), URL
        )
        assert decision.action is RetryAction.FAIL
        assert isinstance(decision.error, TransportFaultError)
        assert decision.error.to_dict() == {
            "status_code": 403,
            "message": "403 - Forbidden",
            "url": URL,
        }

    @pytest.mark.asyncio
    async def test_no_response_fails(self, controller):
        decision = controller.decide(
            make_item(), TransportResponse(None, message="connection reset")
        )
        assert decision.action is RetryAction.FAIL
        assert decision.error.status_code is None
        assert decision.error.message == "connection reset"


class TestRateLimited:
    """429 handling."""

    @pytest.mark.asyncio
    async def test_retry_after_used_and_priority_escalated(self, controller):
        item = make_item()
        decision = controller.decide(
            item, TransportResponse(429, headers={"Retry-After": "2"})
        )
        assert decision.action is RetryAction.RETRY
        assert decision.delay_ms == 2000
        assert decision.priority is Priority.HIGH

        controller.apply(item, decision)
        assert item.retry_count == 1
        assert item.retry_ms == 2000
        assert item.priority is Priority.HIGH

    @pytest.mark.asyncio
    async def test_default_delay_without_retry_after(self, controller):
        decision = controller.decide(make_item(), TransportResponse(429))
        assert decision.delay_ms == 1000

    @pytest.mark.asyncio
    async def test_previous_delay_kept_without_retry_after(self, controller):
        item = make_item()
        item.retry_count = 1
        item.retry_ms = 3000
        decision = controller.decide(item, TransportResponse(429))
        assert decision.delay_ms == 3000

    @pytest.mark.asyncio
    async def test_exhausted_budget_fails(self, controller):
        item = make_item()
        item.retry_count = 3
        decision = controller.decide(
            item, TransportResponse(429, message="429 - Too Many Requests"), URL
        )
        assert decision.action is RetryAction.FAIL
        assert isinstance(decision.error, RateLimitExceededError)
        assert decision.error.status_code == 429
        assert decision.error.retries == 3
        assert decision.error.url == URL


class TestServerFault:
    """Transient 5xx handling."""

    @pytest.mark.asyncio
    async def test_exponential_backoff_then_fail(self, controller):
        item = make_item()
        delays = []
        for _ in range(3):
            decision = controller.decide(item, TransportResponse(503))
            assert decision.action is RetryAction.RETRY
            controller.apply(item, decision)
            delays.append(item.retry_ms)

        assert delays == [1000, 2000, 4000]
        final = controller.decide(item, TransportResponse(503, message="503 - Unavailable"))
        assert final.action is RetryAction.FAIL
        assert isinstance(final.error, ServerFaultError)
        assert final.error.retries == 3

    @pytest.mark.asyncio
    async def test_priority_unchanged(self, controller):
        decision = controller.decide(make_item(), TransportResponse(500))
        assert decision.priority is Priority.NORMAL
        decision = controller.decide(make_item(Priority.HIGH), TransportResponse(502))
        assert decision.priority is Priority.HIGH

    @pytest.mark.asyncio
    async def test_zero_retries_fails_immediately(self):
        controller = RetryController(max_retries=0, retry_ms=1000)
        decision = controller.decide(make_item(), TransportResponse(504))
        assert decision.action is RetryAction.FAIL


class TestApply:
    """Tests for RetryController.apply()."""

    @pytest.mark.asyncio
    async def test_rejects_non_retry_decision(self, controller):
        decision = controller.decide(make_item(), TransportResponse(200))
        with pytest.raises(ValueError):
            controller.apply(make_item(), decision)
