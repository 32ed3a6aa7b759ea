import logging

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)

JOB_DEFAULTS = {
    # a stalled process still delivers a late reminder once
    "coalesce": True,
    "misfire_grace_time": 15 * 60,
    "max_instances": 1,
}


def create_scheduler(timezone) -> BackgroundScheduler:
    """Build the APScheduler instance that owns every reminder timer."""
    return BackgroundScheduler(timezone=timezone, job_defaults=JOB_DEFAULTS)


def start_scheduler(scheduler: BackgroundScheduler, paused: bool = False) -> None:
    if not scheduler.running:
        scheduler.start(paused=paused)
        logger.info("APScheduler started")


def stop_scheduler(scheduler: BackgroundScheduler) -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
