"""Periodic trigger for reconciliation passes."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import structlog

log = structlog.get_logger(__name__)


async def run_periodic(
    job: Callable[[], Awaitable[int]],
    interval_sec: float,
    *,
    stop_event: asyncio.Event | None = None,
    run_immediately: bool = True,
) -> int:
    """Run `job` now, then every interval_sec until stop_event is set. Returns ticks run.

    Ticks are sequential so passes never overlap; a pass that overruns the
    interval delays the next tick instead of stacking another. Job errors are
    logged and the loop keeps going.
    """
    stop = stop_event or asyncio.Event()
    ticks = 0
    if not run_immediately:
        if await _wait_or_stop(stop, interval_sec):
            return ticks
    while not stop.is_set():
        try:
            attempted = await job()
            log.debug("sync_tick", tick=ticks, attempted=attempted)
        except asyncio.CancelledError:
            log.info("sync_loop_cancelled")
            raise
        except Exception:
            log.exception("sync_tick_failed", tick=ticks)
        ticks += 1
        if await _wait_or_stop(stop, interval_sec):
            break
    log.info("sync_loop_stopped", ticks=ticks)
    return ticks


async def _wait_or_stop(stop: asyncio.Event, timeout: float) -> bool:
    """Sleep up to timeout; True if stop was set meanwhile."""
    try:
        await asyncio.wait_for(stop.wait(), timeout=timeout)
    except asyncio.TimeoutError:
        return False
    return True
