"""
Background scheduler for housekeeping jobs.

Uses APScheduler to sweep idle chat sessions on a fixed interval.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from counselor.config import get_settings
from counselor.features.chat.sessions import session_tracker

logger = logging.getLogger(__name__)

SESSION_SWEEP_JOB_ID = "session_sweep_job"

# Singleton scheduler instance
scheduler = AsyncIOScheduler()


def sweep_idle_sessions() -> int:
    """Callback for the APScheduler sweep job."""
    try:
        return session_tracker.sweep()
    except Exception as e:
        logger.error(f"❌ Session sweep failed: {e}", exc_info=True)
        return 0


def register_jobs(target: AsyncIOScheduler | None = None) -> None:
    """Add (or replace) every housekeeping job on a scheduler."""
    target = target or scheduler
    minutes = get_settings().SESSION_SWEEP_MINUTES

    target.add_job(
        func=sweep_idle_sessions,
        trigger=IntervalTrigger(minutes=minutes),
        id=SESSION_SWEEP_JOB_ID,
        replace_existing=True,
    )
    logger.info(f"🔔 Scheduled {SESSION_SWEEP_JOB_ID} every {minutes} min")


def init_scheduler():
    """Register jobs and start the scheduler.

    Called during FastAPI lifespan startup.
    """
    register_jobs()
    scheduler.start()

    for job in scheduler.get_jobs():
        logger.info(f"📅 {job.id}: next run at {job.next_run_time}")


def shutdown_scheduler():
    """Gracefully shutdown the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("📅 Scheduler shut down.")
