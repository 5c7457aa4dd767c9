"""Test periodic background task."""

import asyncio
from unittest.mock import Mock

import pytest

from resilience.utils.periodic import PeriodicTask


class TestPeriodicTask:
    """Test PeriodicTask lifecycle."""

    def test_invalid_interval(self):
        """Test non-positive intervals are rejected."""
        with pytest.raises(ValueError):
            PeriodicTask("sweep", 0, Mock())

    @pytest.mark.asyncio
    async def test_runs_callback(self):
        """Test callback runs repeatedly until stopped."""
        callback = Mock()
        task = PeriodicTask("sweep", 0.01, callback)

        task.start()
        await asyncio.sleep(0.1)
        await task.stop()

        assert callback.call_count >= 2
        assert not task.is_running

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self):
        """Test a second start keeps the first loop."""
        task = PeriodicTask("sweep", 10, Mock())

        task.start()
        first = task._task
        task.start()

        assert task._task is first
        await task.stop()

    @pytest.mark.asyncio
    async def test_callback_errors_do_not_stop_loop(self):
        """Test a failing callback keeps being scheduled."""
        callback = Mock(side_effect=RuntimeError("boom"))
        task = PeriodicTask("sweep", 0.01, callback)

        task.start()
        await asyncio.sleep(0.1)

        assert task.is_running
        await task.stop()
        assert callback.call_count >= 2

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        """Test stopping an idle task is harmless."""
        task = PeriodicTask("sweep", 1, Mock())

        await task.stop()

        assert not task.is_running
