"""Unit tests for the scheduled session cleanup job and the scheduler."""

import pytest
from datetime import timedelta
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.session import Session
from app.models.user import User
from app.services.session_store import SessionStore
from app.tasks import scheduler as scheduler_module
from app.tasks.scheduler import get_scheduler, list_jobs, stop_scheduler
from app.tasks.session_cleanup import schedule_session_cleanup_job, session_cleanup_job
from app.utils.dates import utcnow


@pytest.mark.unit
@pytest.mark.asyncio
class TestSessionCleanupJob:
    """Test the expired session cleanup job."""

    async def test_removes_only_expired_sessions(
        self, db_session: AsyncSession, session_factory, outsider_user: User
    ):
        store = SessionStore(db_session)
        expired = await store.create(outsider_user.id, utcnow() - timedelta(hours=1))
        valid = await store.create(outsider_user.id, utcnow() + timedelta(days=1))

        deleted = await session_cleanup_job(session_factory)

        assert deleted == 1
        async with session_factory() as check:
            result = await check.execute(select(Session.session_token))
            assert list(result.scalars().all()) == [valid]
        assert expired != valid

    async def test_nothing_to_clean(self, session_factory):
        assert await session_cleanup_job(session_factory) == 0

    async def test_failure_propagates(self, session_factory, mocker):
        mocker.patch(
            "app.tasks.session_cleanup.SessionStore.delete_expired",
            side_effect=RuntimeError("database unavailable")
        )

        with pytest.raises(RuntimeError):
            await session_cleanup_job(session_factory)


@pytest.mark.unit
@pytest.mark.asyncio
class TestScheduler:
    """Test job registration."""

    async def test_cleanup_job_registered(self):
        scheduler_module.scheduler = None
        sched = get_scheduler()

        schedule_session_cleanup_job(sched)

        jobs = list_jobs()
        assert [job["id"] for job in jobs] == ["session_cleanup"]
        assert "interval" in jobs[0]["trigger"]

        await stop_scheduler()
        assert scheduler_module.scheduler is None
