"""Session cleanup background job - removes expired sessions."""
import logging
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.config import get_settings
from app.database import AsyncSessionLocal
from app.services.session_store import SessionStore


logger = logging.getLogger(__name__)


async def session_cleanup_job(session_factory: Optional[async_sessionmaker] = None) -> int:
    """
    Clean up expired sessions from the database.

    Removes all sessions whose expiry is at or before the current time.

    Args:
        session_factory: Session factory override (defaults to the app factory)

    Returns:
        Number of sessions deleted
    """
    logger.info("Starting session cleanup job...")
    start_time = datetime.now(timezone.utc)
    factory = session_factory or AsyncSessionLocal

    try:
        async with factory() as session:
            deleted_count = await SessionStore(session).delete_expired(start_time)
    except Exception as e:
        logger.error("Session cleanup job failed: %s", str(e))
        raise

    duration = (datetime.now(timezone.utc) - start_time).total_seconds()
    logger.info(
        "Session cleanup completed: %d sessions deleted in %.2f seconds",
        deleted_count, duration
    )
    return deleted_count


def schedule_session_cleanup_job(scheduler: AsyncIOScheduler):
    """Register the session cleanup job with the scheduler."""
    interval = get_settings().SESSION_CLEANUP_INTERVAL_MINUTES
    scheduler.add_job(
        session_cleanup_job,
        'interval',
        minutes=interval,
        id='session_cleanup',
        name='Session Cleanup',
        replace_existing=True,
        max_instances=1,
        coalesce=True
    )

    logger.info("Scheduled session cleanup job to run every %d minutes", interval)
