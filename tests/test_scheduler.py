"""
Unit tests for the job scheduler.
"""
import asyncio
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch
from zoneinfo import ZoneInfo

from scheduler import run_daily, run_job_once, seconds_until_next_run

MOSCOW = ZoneInfo("Europe/Moscow")
# Thursday, 13:00 Moscow
NOW = datetime(2025, 7, 24, 10, 0, tzinfo=timezone.utc)


class TestSecondsUntilNextRun:
    """Tests for seconds_until_next_run"""

    def test_later_today(self):
        assert seconds_until_next_run(NOW, 14, tz=MOSCOW) == 3600

    def test_earlier_hour_rolls_to_tomorrow(self):
        assert seconds_until_next_run(NOW, 12, tz=MOSCOW) == 23 * 3600

    def test_exact_time_is_not_now(self):
        """Strictly in the future"""
        assert seconds_until_next_run(NOW, 13, tz=MOSCOW) == 24 * 3600

    def test_minute(self):
        assert seconds_until_next_run(NOW, 13, minute=30, tz=MOSCOW) == 1800

    def test_weekday(self):
        """Next Monday 10:00 Moscow"""
        assert seconds_until_next_run(NOW, 10, tz=MOSCOW, weekday=0) == 3 * 86400 + 21 * 3600

    def test_same_weekday_later_today(self):
        assert seconds_until_next_run(NOW, 15, tz=MOSCOW, weekday=3) == 2 * 3600

    def test_naive_now_is_utc(self):
        naive = datetime(2025, 7, 24, 10, 0)
        assert seconds_until_next_run(naive, 11) == 3600


class TestRunJobOnce:
    """Tests for run_job_once"""

    @pytest.mark.asyncio
    async def test_success_returns_result(self):
        job = AsyncMock(return_value={"sent": 3, "errors": 0})
        result = await run_job_once("job", job, timeout=5, lock=asyncio.Lock())
        assert result == {"sent": 3, "errors": 0}
        job.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_held_lock_skips_run(self):
        """A run never overlaps its own previous run"""
        lock = asyncio.Lock()
        job = AsyncMock()
        async with lock:
            assert await run_job_once("job", job, timeout=5, lock=lock) is None
        job.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timeout_is_contained(self):
        async def slow():
            await asyncio.sleep(10)

        lock = asyncio.Lock()
        assert await run_job_once("job", slow, timeout=0.01, lock=lock) is None
        assert not lock.locked()

    @pytest.mark.asyncio
    async def test_exception_is_contained(self):
        """Job failure never reaches the loop"""
        job = AsyncMock(side_effect=RuntimeError("boom"))
        lock = asyncio.Lock()
        assert await run_job_once("job", job, timeout=5, lock=lock) is None
        assert not lock.locked()

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        job = AsyncMock(side_effect=asyncio.CancelledError())
        with pytest.raises(asyncio.CancelledError):
            await run_job_once("job", job, timeout=5, lock=asyncio.Lock())


class TestRunDaily:
    """Tests for run_daily"""

    @pytest.mark.asyncio
    async def test_sleeps_then_runs_until_cancelled(self):
        job = AsyncMock(return_value={"sent": 0, "errors": 0})
        sleep = AsyncMock(side_effect=[None, asyncio.CancelledError()])

        with patch("scheduler.asyncio.sleep", sleep):
            with pytest.raises(asyncio.CancelledError):
                await run_daily("job", job, hour=14, tz=MOSCOW, timeout=5, clock=lambda: NOW)

        assert sleep.await_args_list[0].args == (3600,)
        job.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failing_job_does_not_stop_loop(self):
        """The loop survives job errors"""
        job = AsyncMock(side_effect=RuntimeError("boom"))
        sleep = AsyncMock(side_effect=[None, None, asyncio.CancelledError()])

        with patch("scheduler.asyncio.sleep", sleep):
            with pytest.raises(asyncio.CancelledError):
                await run_daily("job", job, hour=14, tz=MOSCOW, timeout=5, clock=lambda: NOW)

        assert job.await_count == 2
