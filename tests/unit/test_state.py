"""Test resilience state wiring."""

import pytest

from resilience.state import ResilienceState


class TestResilienceState:
    """Test ResilienceState."""

    def test_from_config(self, test_config):
        """Test components are built from settings."""
        state = ResilienceState.from_config(test_config)

        assert state.cache.store("responses").max_size == 3
        assert state.rate_limiter.get_limit("customer").limit == 2
        assert state.retry_manager.retry_config.delay_seconds == 0.0
        assert state.retry_manager.get_breaker("openai").config.failure_threshold == 2

    @pytest.mark.asyncio
    async def test_startup_and_shutdown(self, resilience_state):
        """Test background sweeps follow the lifecycle."""
        await resilience_state.startup()

        assert resilience_state.cache.is_cleanup_running
        assert resilience_state.rate_limiter.is_cleanup_running

        await resilience_state.shutdown()

        assert not resilience_state.cache.is_cleanup_running
        assert not resilience_state.rate_limiter.is_cleanup_running
