"""Session resolution from a cookie value to a user."""
import asyncio
import logging
from typing import Optional, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.user import User
from app.services.session_store import SessionStore
from app.utils.dates import as_utc, utcnow
from app.utils.security import mask_token


logger = logging.getLogger(__name__)

# Pending expired-session deletions; held so tasks are not garbage collected mid-flight
_cleanup_tasks: Set[asyncio.Task] = set()


async def _delete_expired_session(session_factory: async_sessionmaker, token: str) -> None:
    try:
        async with session_factory() as db:
            await SessionStore(db).delete_by_token(token)
    except Exception as e:
        logger.error("Failed to remove expired session %s: %s", mask_token(token), str(e))


async def drain_cleanup_tasks() -> None:
    """Wait for every scheduled expired-session deletion to finish."""
    if _cleanup_tasks:
        await asyncio.gather(*list(_cleanup_tasks), return_exceptions=True)


class SessionResolver:
    """Turns a session token into the authenticated user, or None."""

    def __init__(self, session: AsyncSession, session_factory: async_sessionmaker):
        """
        Initialize session resolver.

        Args:
            session: Database session for the current request
            session_factory: Factory used to open a separate session for cleanup
        """
        self.session = session
        self.session_factory = session_factory
        self.store = SessionStore(session)

    def _schedule_cleanup(self, token: str) -> None:
        task = asyncio.create_task(_delete_expired_session(self.session_factory, token))
        _cleanup_tasks.add(task)
        task.add_done_callback(_cleanup_tasks.discard)

    async def resolve(self, token: Optional[str]) -> Optional[User]:
        """
        Resolve a session token.

        Expired sessions are deleted in the background without delaying the
        response; the caller is treated as anonymous immediately.

        Args:
            token: Session cookie value

        Returns:
            The session's user, or None when anonymous
        """
        if not token:
            return None

        record = await self.store.find_by_token(token)
        if record is None:
            return None

        if as_utc(record.expires) <= utcnow():
            logger.debug("Session %s expired, scheduling removal", mask_token(token))
            self._schedule_cleanup(token)
            return None

        result = await self.session.execute(select(User).where(User.id == record.user_id))
        user = result.scalar_one_or_none()
        if user is None:
            logger.warning("Session %s references missing user %s", mask_token(token), record.user_id)
        return user
