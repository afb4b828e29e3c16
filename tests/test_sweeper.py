"""Tests for CleanupSweeper."""

import asyncio
import logging
from unittest.mock import MagicMock

import pytest

from vidqueue.core.sweeper import CleanupSweeper


class TestCleanupSweeper:
    """Test the periodic cleanup ticker."""

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError, match="interval must be positive"):
            CleanupSweeper(MagicMock(), 0)

    def test_not_running_until_started(self):
        assert CleanupSweeper(MagicMock(), 1).running is False

    def test_start_requires_running_loop(self):
        with pytest.raises(RuntimeError):
            CleanupSweeper(MagicMock(), 1).start()

    @pytest.mark.asyncio
    async def test_calls_callback_periodically(self):
        callback = MagicMock()
        sweeper = CleanupSweeper(callback, 0.01)

        sweeper.start()
        await asyncio.sleep(0.1)
        await sweeper.stop()

        assert callback.call_count >= 2

    @pytest.mark.asyncio
    async def test_does_not_call_before_first_interval(self):
        callback = MagicMock()
        sweeper = CleanupSweeper(callback, 60)

        sweeper.start()
        await asyncio.sleep(0)
        await sweeper.stop()

        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        sweeper = CleanupSweeper(MagicMock(), 60)

        sweeper.start()
        task = sweeper._task
        sweeper.start()

        assert sweeper._task is task
        await sweeper.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        sweeper = CleanupSweeper(MagicMock(), 60)

        await sweeper.stop()

        assert sweeper.running is False

    @pytest.mark.asyncio
    async def test_stop_ends_task(self):
        sweeper = CleanupSweeper(MagicMock(), 60)
        sweeper.start()
        task = sweeper._task

        await sweeper.stop()

        assert task.cancelled()
        assert sweeper.running is False

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_ticking(self, caplog):
        """An exception in one sweep is logged and the next sweep still runs."""
        calls = []

        def callback():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("store broken")

        sweeper = CleanupSweeper(callback, 0.01)

        with caplog.at_level(logging.ERROR, logger="vidqueue.core.sweeper"):
            sweeper.start()
            await asyncio.sleep(0.1)
            await sweeper.stop()

        assert len(calls) >= 2
        assert "Cleanup sweep failed" in caplog.text

    @pytest.mark.asyncio
    async def test_can_restart_after_stop(self):
        callback = MagicMock()
        sweeper = CleanupSweeper(callback, 0.01)

        sweeper.start()
        await sweeper.stop()
        sweeper.start()

        assert sweeper.running is True
        await sweeper.stop()
