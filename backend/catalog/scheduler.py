"""
Scheduled Task Module

Uses APScheduler to purge products whose opt-in expiry has passed.
Expiry belongs to the store: the write and read paths never look at it.
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from catalog.common.errors import AppError
from catalog.common.time import now_seconds
from catalog.config import get_settings
from catalog.services.provisioner import StoreProvisioner

logger = logging.getLogger(__name__)

# Global Scheduler Instance
_scheduler: Optional[AsyncIOScheduler] = None


async def purge_expired_products_task(provisioner: StoreProvisioner) -> int:
    """
    Scheduled Expired Product Purge Task

    Deletes rows whose expires_at has passed, through the write handle.
    """
    logger.info("Starting scheduled expired product purge task")

    try:
        store = await provisioner.get_write_handle()
        deleted_count = await store.purge_expired(now_seconds())
    except AppError as e:
        logger.error(f"Expired product purge task failed: {e.message}", exc_info=True)
        return 0

    logger.info(f"Expired product purge task completed: {deleted_count} products deleted")
    return deleted_count


def start_scheduler(provisioner: StoreProvisioner):
    """
    Start Scheduled Task Scheduler

    Initializes the scheduler and adds the purge task.
    """
    global _scheduler

    if _scheduler is not None:
        logger.warning("Scheduler already started")
        return

    settings = get_settings()

    _scheduler = AsyncIOScheduler()
    _scheduler.add_job(
        purge_expired_products_task,
        trigger=IntervalTrigger(hours=settings.EXPIRED_PURGE_INTERVAL_HOURS),
        args=[provisioner],
        id="purge_expired_products",
        name="Purge expired products",
        replace_existing=True,
    )
    _scheduler.start()

    logger.info(
        "Scheduler started: expired product purge scheduled every "
        f"{settings.EXPIRED_PURGE_INTERVAL_HOURS} hours"
    )


def shutdown_scheduler():
    """
    Shutdown Scheduled Task Scheduler

    Gracefully stops all scheduled tasks.
    """
    global _scheduler

    if _scheduler is None:
        return

    _scheduler.shutdown(wait=True)
    _scheduler = None
    logger.info("Scheduler shutdown completed")
