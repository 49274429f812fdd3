# deal_tracker/services/scheduler.py

"""Interval job scheduling for the long-running host process.

Jobs run on an APScheduler :class:`AsyncIOScheduler` inside the host's
event loop.  Each job allows a single running instance and coalesces
missed runs, so a slow tracking pass is never overlapped by the next one.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import Any

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = logging.getLogger("deal_tracker.scheduler")


def guarded(
    name: str, callback: Callable[[], Any]
) -> Callable[[], Awaitable[None]]:
    """Wrap *callback* so a failure is logged and never reaches the scheduler.

    Plain functions and coroutine functions are both accepted.
    """

    async def run() -> None:
        try:
            result = callback()
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            logger.error(
                "Scheduled job '%s' failed: %s", name, exc, exc_info=True
            )

    return run


def add_interval_job(
    scheduler: AsyncIOScheduler,
    name: str,
    interval: float,
    callback: Callable[[], Any],
    run_immediately: bool = True,
) -> Job:
    """Register *callback* to run every *interval* seconds."""
    if interval <= 0:
        raise ValueError(f"Job interval must be positive, got {interval}")
    first_run = datetime.now()
    if not run_immediately:
        first_run += timedelta(seconds=interval)
    return scheduler.add_job(
        guarded(name, callback),
        "interval",
        seconds=interval,
        id=name,
        name=name,
        max_instances=1,
        coalesce=True,
        next_run_time=first_run,
    )


async def run_until_stopped(
    scheduler: AsyncIOScheduler,
    stop: asyncio.Event | None = None,
) -> None:
    """Start *scheduler* and keep it running until *stop* is set."""
    stop = stop or asyncio.Event()
    scheduler.start()
    logger.info("Scheduler started with %d jobs", len(scheduler.get_jobs()))
    try:
        await stop.wait()
    finally:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
