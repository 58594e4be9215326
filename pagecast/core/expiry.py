# pagecast/core/expiry.py
"""Background TTL sweep for the session registry"""

from datetime import timedelta
from typing import Optional
import asyncio
import logging

from pagecast.core.exceptions import RegistryLockError
from pagecast.core.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


async def run_expiry_sweeper(
    registry: SessionRegistry,
    interval_seconds: float,
    ttl: timedelta
) -> None:
    """
    Periodically remove sessions that were not updated within ``ttl``.

    Runs until cancelled. The sweep itself runs in a worker thread so that a
    contended registry lock never stalls the event loop.
    """
    logger.info(f"Expiry sweeper started (interval {interval_seconds}s, session lifetime {ttl})")
    sweeps = 0
    try:
        while True:
            await asyncio.sleep(interval_seconds)
            sweeps += 1
            try:
                removed = await asyncio.to_thread(registry.sweep, ttl)
            except RegistryLockError as e:
                logger.error(f"Sweep {sweeps} skipped: {e}")
                continue
            logger.debug(f"Sweep {sweeps} done, {removed} sessions removed")
    except asyncio.CancelledError:
        logger.info(f"Expiry sweeper stopped after {sweeps} sweeps")
        raise


def start_expiry_sweeper(
    registry: SessionRegistry,
    interval_seconds: float,
    ttl: timedelta
) -> Optional[asyncio.Task]:
    """
    Schedule the sweeper on the running event loop.

    Returns None without scheduling anything when the interval is not
    positive; sessions then live until the process exits.
    """
    if interval_seconds <= 0:
        logger.warning(f"Expiry sweeper not started: interval must be positive, got {interval_seconds}")
        return None
    return asyncio.create_task(
        run_expiry_sweeper(registry, interval_seconds, ttl),
        name="pagecast-expiry-sweeper"
    )


async def stop_expiry_sweeper(task: Optional[asyncio.Task]) -> None:
    """Cancel the sweeper and wait for it to finish"""
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
