"""
Periodic completion sweep.

Started from the application lifespan when SWEEP_ENABLED is set. Each run
opens its own session, so it never shares a connection with a request. A
failed run is logged and retried on the next tick; the loop only stops when
the task is cancelled at shutdown.
"""

import asyncio
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from trekadmin.core.logging import get_logger
from trekadmin.db.session import get_session_factory
from trekadmin.services.batch_lifecycle import BatchLifecycleManager

logger = get_logger(__name__)


async def run_sweep_once(
    manager: BatchLifecycleManager,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> int:
    factory = session_factory or get_session_factory()
    async with factory() as session:
        completed = await manager.sweep_completed_bookings(session)
    return len(completed)


async def sweep_forever(
    manager: BatchLifecycleManager,
    interval_seconds: int,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> None:
    logger.info("sweeper_started", interval_seconds=interval_seconds)
    while True:
        try:
            await run_sweep_once(manager, session_factory)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("sweep_failed", error=str(e), error_type=type(e).__name__)
        await asyncio.sleep(interval_seconds)


def start_sweeper(manager: BatchLifecycleManager, interval_seconds: int) -> asyncio.Task:
    return asyncio.create_task(sweep_forever(manager, interval_seconds), name="completion-sweeper")
