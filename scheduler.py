"""Планировщик ежедневных задач (фиксированное локальное время)"""
import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Awaitable, Callable, Optional

from app.core.structured_logger import log_event
from app.utils.logging_helpers import (
    classify_error,
    log_job_run_end,
    log_job_run_start,
)

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Awaitable[object]]


def seconds_until_next_run(
    now: datetime,
    hour: int,
    minute: int = 0,
    tz: tzinfo = timezone.utc,
    weekday: Optional[int] = None,
) -> float:
    """
    Seconds from now to the next hour:minute local time in tz (strictly in the future).

    Args:
        weekday: 0=Monday … 6=Sunday; None means every day
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local_now = now.astimezone(tz)

    for days_ahead in range(0, 8):
        day = local_now.date() + timedelta(days=days_ahead)
        candidate = datetime(day.year, day.month, day.day, hour, minute, tzinfo=tz)
        if candidate <= local_now:
            continue
        if weekday is not None and candidate.weekday() != weekday:
            continue
        return (candidate.astimezone(timezone.utc) - now.astimezone(timezone.utc)).total_seconds()

    raise ValueError(f"No run time found for hour={hour} minute={minute} weekday={weekday}")


async def run_job_once(
    name: str,
    job: JobFunc,
    timeout: float,
    lock: asyncio.Lock,
    run_number: Optional[int] = None,
) -> Optional[object]:
    """
    Run one job invocation with timeout and ITERATION_START/END logging.

    The lock prevents a job from overlapping its own previous run; a run that
    finds the lock held is skipped, not queued.

    Never raises except CancelledError.
    """
    if lock.locked():
        logger.warning(f"JOB_SKIPPED_OVERLAP [job={name}]")
        log_job_run_end(name, outcome="skipped", reason="previous_run_active")
        return None

    async with lock:
        log_job_run_start(name, run_number=run_number)
        started = time.monotonic()
        try:
            result = await asyncio.wait_for(job(), timeout=timeout)
        except asyncio.CancelledError:
            log_event(logger, component="scheduler", operation=f"{name}_run", outcome="cancelled")
            raise
        except asyncio.TimeoutError:
            duration_ms = (time.monotonic() - started) * 1000
            logger.error(f"JOB_TIMEOUT [job={name}, timeout={timeout}s]")
            log_job_run_end(name, outcome="failed", error_type="infra_error", duration_ms=duration_ms)
            return None
        except Exception as e:
            duration_ms = (time.monotonic() - started) * 1000
            logger.exception(f"JOB_FAILED [job={name}]: {type(e).__name__}: {str(e)[:200]}")
            log_job_run_end(name, outcome="failed", error_type=classify_error(e), duration_ms=duration_ms)
            return None

        duration_ms = (time.monotonic() - started) * 1000
        items = None
        if isinstance(result, dict):
            items = result.get("sent", result.get("disabled"))
        log_job_run_end(name, outcome="success", items_processed=items, duration_ms=duration_ms, result=result)
        return result


async def run_daily(
    name: str,
    job: JobFunc,
    hour: int,
    minute: int = 0,
    tz: tzinfo = timezone.utc,
    timeout: float = 1800.0,
    weekday: Optional[int] = None,
    lock: Optional[asyncio.Lock] = None,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> None:
    """
    Background loop: sleep until the next hour:minute in tz, run the job, repeat.

    Runs until cancelled.
    """
    if lock is None:
        lock = asyncio.Lock()
    run_number = 0
    logger.info(
        f"JOB_SCHEDULED [job={name}, at={hour:02d}:{minute:02d}, tz={tz}, "
        f"weekday={weekday if weekday is not None else '*'}]"
    )

    while True:
        delay = seconds_until_next_run(clock(), hour, minute, tz, weekday)
        logger.debug(f"JOB_SLEEP [job={name}, seconds={delay:.0f}]")
        await asyncio.sleep(delay)
        run_number += 1
        await run_job_once(name, job, timeout, lock, run_number=run_number)
