# core/scheduler.py
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from core.logging_config import get_logger
from core.store import ChangeFeedStore

logger = get_logger("scheduler")


def run_store_refresh(store: ChangeFeedStore):
    """Pull remote changes into every live subscription."""
    try:
        store.refresh()
    except Exception as e:
        logger.error(f"[SCHEDULER] Store refresh failed: {e}", exc_info=True)


def start_scheduler(store: ChangeFeedStore, interval_seconds: int) -> Optional[BackgroundScheduler]:
    """
    Initialize the APScheduler background process.
    Returns None when polling is disabled (interval <= 0).
    """
    if interval_seconds <= 0:
        logger.info("Store refresh disabled")
        return None

    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler.add_job(
        run_store_refresh,
        trigger=IntervalTrigger(seconds=interval_seconds),
        args=[store],
        id="store_refresh_job",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    logger.info(f"Scheduler started. Store refresh every {interval_seconds}s.")
    return scheduler
