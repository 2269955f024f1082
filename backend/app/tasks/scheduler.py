"""In-process APScheduler setup for periodic maintenance jobs."""
import logging
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler


logger = logging.getLogger(__name__)

# Module-level singleton; reset to None after shutdown so tests can rebuild it
scheduler: AsyncIOScheduler | None = None


def _on_job_event(event: JobExecutionEvent) -> None:
    if event.exception:
        logger.error("Job %s failed: %s", event.job_id, event.exception)
    else:
        logger.debug("Job %s finished with result %r", event.job_id, event.retval)


def get_scheduler() -> AsyncIOScheduler:
    """Return the shared scheduler, building it on first use."""
    global scheduler
    if scheduler is None:
        scheduler = AsyncIOScheduler(
            jobstores={'default': MemoryJobStore()},
            executors={'default': AsyncIOExecutor()},
            job_defaults={
                'coalesce': True,
                'max_instances': 1,
                'misfire_grace_time': 300,
            },
            timezone='UTC'
        )
        scheduler.add_listener(_on_job_event, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)
        logger.info("Scheduler created (UTC)")

    return scheduler


async def start_scheduler():
    """Register maintenance jobs and start the scheduler."""
    from app.tasks.session_cleanup import schedule_session_cleanup_job

    sched = get_scheduler()
    if sched.running:
        logger.warning("Scheduler is already running")
        return

    schedule_session_cleanup_job(sched)
    sched.start()

    for job in sched.get_jobs():
        logger.info("  - Job: %s, Next run: %s", job.id, job.next_run_time)


async def stop_scheduler():
    """Shut the scheduler down without waiting for running jobs."""
    global scheduler
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
    scheduler = None


def list_jobs() -> list[dict]:
    """Describe registered jobs; next_run_time is None until the scheduler starts."""
    return [
        {
            "id": job.id,
            "name": job.name,
            "next_run_time": str(job.next_run_time) if getattr(job, "next_run_time", None) else None,
            "trigger": str(job.trigger),
        }
        for job in get_scheduler().get_jobs()
    ]
