"""Integration test of a customer query through the resilience layer."""

from unittest.mock import AsyncMock

import pytest

from resilience.exceptions import CircuitOpenError, RetryExhaustedError
from resilience.state import ResilienceState


async def answer_query(
    state: ResilienceState, llm, phone: str, business_id: str, query: str
) -> str:
    """Serve a query the way the message handler does."""
    if not state.rate_limiter.check_customer(phone):
        return "rate limited"

    cached = state.cache.get_cached_response(business_id, query)
    if cached is not None:
        return cached

    answer = await state.retry_manager.with_circuit_breaker(
        lambda: state.retry_manager.with_retry(llm, operation_name="openai"),
        operation_name="openai",
    )
    state.cache.cache_response(business_id, query, answer)
    return answer


@pytest.fixture
def state(test_config):
    """Create state from test settings."""
    return ResilienceState.from_config(test_config)


@pytest.fixture
def llm():
    """Mock LLM call."""
    return AsyncMock(return_value="We open at 9")


@pytest.mark.asyncio
async def test_cached_answer_skips_llm(state, llm):
    """Test the second identical query is served from cache."""
    first = await answer_query(state, llm, "+1555", "biz-1", "Hours?")
    second = await answer_query(state, llm, "+1555", "biz-1", " hours? ")

    assert first == second == "We open at 9"
    llm.assert_awaited_once()
    assert state.cache.stats().hit_rate == "50.00%"


@pytest.mark.asyncio
async def test_rate_limit_blocks_before_cache(state, llm):
    """Test throttled customers never reach cache or LLM."""
    await answer_query(state, llm, "+1555", "biz-1", "Hours?")
    await answer_query(state, llm, "+1555", "biz-1", "Hours?")

    throttled = await answer_query(state, llm, "+1555", "biz-1", "Hours?")

    assert throttled == "rate limited"
    assert await answer_query(state, llm, "+1666", "biz-1", "Hours?") == "We open at 9"


@pytest.mark.asyncio
async def test_outage_opens_circuit(state):
    """Test sustained failures stop calls to the provider."""
    llm = AsyncMock(side_effect=ConnectionError("down"))

    with pytest.raises(RetryExhaustedError):
        await answer_query(state, llm, "+1", "biz-1", "a")
    with pytest.raises(RetryExhaustedError):
        await answer_query(state, llm, "+2", "biz-1", "b")
    with pytest.raises(CircuitOpenError):
        await answer_query(state, llm, "+3", "biz-1", "c")

    assert llm.await_count == 6
    assert state.cache.stats().size_per_type["responses"] == 0


@pytest.mark.asyncio
async def test_knowledge_update_invalidates_answers(state, llm):
    """Test scope invalidation forces a fresh answer."""
    await answer_query(state, llm, "+1555", "biz-1", "Hours?")
    state.cache.invalidate_scope("biz-1")
    llm.return_value = "We open at 8"

    assert await answer_query(state, llm, "+1666", "biz-1", "Hours?") == "We open at 8"
