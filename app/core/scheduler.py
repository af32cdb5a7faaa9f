"""
Application Scheduler - APScheduler Integration

One periodic task: the retention cleanup, daily at midnight UTC. It deletes
jobs older than settings.retention_days together with their applications.
Expired notifications need no job, the TTL index on expires_at removes them.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR

from app.core.config import get_settings
from app.services.mongo_service import JobService

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler(
    timezone='UTC',
    job_defaults={
        'coalesce': True,  # Combine multiple missed executions into one
        'max_instances': 1,
        'misfire_grace_time': 3600
    }
)


def scheduler_listener(event):
    """Log the outcome of every scheduled run."""
    if event.exception:
        logger.error(f"Job '{event.job_id}' failed with exception: {event.exception}")
    else:
        logger.info(f"Job '{event.job_id}' executed successfully")


scheduler.add_listener(scheduler_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)


def run_retention_cleanup() -> dict:
    """
    Scheduled task: delete outdated jobs and their applications.

    Returns:
        {"jobs": <deleted>, "applications": <deleted>}
    """
    days = get_settings().retention_days
    logger.info(f"Running retention cleanup (threshold: {days} days)")
    deleted = JobService().purge_older_than(days)
    logger.info(
        f"Retention cleanup complete: {deleted['jobs']} jobs, "
        f"{deleted['applications']} applications deleted"
    )
    return deleted


def setup_jobs():
    scheduler.add_job(
        run_retention_cleanup,
        trigger=CronTrigger(hour=0, minute=0),
        id='retention_cleanup',
        name='Delete outdated jobs and applications',
        replace_existing=True
    )


def start_scheduler():
    """Start the scheduler. Called on application startup."""
    if not get_settings().scheduler_enabled:
        logger.info("Scheduler disabled by settings")
        return
    if scheduler.running:
        logger.warning("Scheduler already running")
        return
    setup_jobs()
    scheduler.start()
    for job in scheduler.get_jobs():
        logger.info(f"Scheduled '{job.name}' next run: {job.next_run_time}")


def stop_scheduler():
    """Stop the scheduler. Called on application shutdown."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
