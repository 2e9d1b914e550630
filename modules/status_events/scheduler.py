# modules/status_events/scheduler.py
import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler

from config.settings import settings
from database.connection import storage
from modules.status_events.services import sync_all_status_events

logger = logging.getLogger(__name__)

_scheduler: Optional[BackgroundScheduler] = None


def run_status_sync() -> int:
    """One pass over all employees; errors are logged so the job keeps running."""
    try:
        return sync_all_status_events(storage)
    except Exception:
        logger.exception("Scheduled status sync failed")
        return 0


def start() -> Optional[BackgroundScheduler]:
    global _scheduler
    minutes = settings.STATUS_SYNC_INTERVAL_MINUTES
    if minutes <= 0 or _scheduler is not None:
        return _scheduler
    _scheduler = BackgroundScheduler()
    _scheduler.add_job(run_status_sync, "interval", minutes=minutes, id="status_sync")
    _scheduler.start()
    logger.info("Status sync scheduled every %d minute(s)", minutes)
    return _scheduler


def shutdown() -> None:
    global _scheduler
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
