"""Session persistence.

The store is the only component that writes to the ``sessions`` table.
Deleting sessions that do not exist is not an error; the affected row
count is returned instead.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.session import Session
from app.services.errors import SessionCleanupError, SessionConflictError, SessionCreationError
from app.utils.dates import utcnow
from app.utils.security import generate_session_token, mask_token


logger = logging.getLogger(__name__)


class SessionStore:
    """Data access for login sessions."""

    def __init__(self, session: AsyncSession):
        """
        Initialize session store.

        Args:
            session: Database session
        """
        self.session = session

    async def create(self, user_id: int, expires_at: datetime) -> str:
        """
        Persist a new session for a user.

        Args:
            user_id: Owning user ID
            expires_at: Absolute expiry time

        Returns:
            The generated session token

        Raises:
            SessionConflictError: If the token collides with an existing one
        """
        token = generate_session_token()
        self.session.add(Session(session_token=token, user_id=user_id, expires=expires_at))
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise SessionConflictError("Session token collision") from exc
        return token

    async def rotate(self, user_id: int, expires_at: datetime) -> str:
        """
        Replace every session of a user with a single new one.

        The delete and the insert are committed together, so two concurrent
        logins cannot both leave a valid row behind.

        Raises:
            SessionCleanupError: If the existing sessions could not be deleted
            SessionConflictError: If the new token collides
            SessionCreationError: If the new row could not be written
        """
        try:
            result = await self.session.execute(
                delete(Session).where(Session.user_id == user_id)
            )
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise SessionCleanupError("Session cleanup failed. Please try again.") from exc

        logger.debug("Cleared %d existing session(s) for user %s", result.rowcount, user_id)

        token = generate_session_token()
        self.session.add(Session(session_token=token, user_id=user_id, expires=expires_at))
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise SessionConflictError("Session token collision") from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise SessionCreationError("Failed to create session") from exc

        logger.debug("Created session %s for user %s", mask_token(token), user_id)
        return token

    async def find_by_token(self, token: str) -> Optional[Session]:
        """Get a session by token, or None."""
        result = await self.session.execute(
            select(Session).where(Session.session_token == token)
        )
        return result.scalar_one_or_none()

    async def delete_by_token(self, token: str) -> int:
        """Delete a single session. Returns the number of rows removed."""
        result = await self.session.execute(
            delete(Session).where(Session.session_token == token)
        )
        await self.session.commit()
        return result.rowcount

    async def delete_all_for_user(self, user_id: int) -> int:
        """Delete every session of a user. Returns the number of rows removed."""
        result = await self.session.execute(
            delete(Session).where(Session.user_id == user_id)
        )
        await self.session.commit()
        return result.rowcount

    async def delete_expired(self, now: Optional[datetime] = None) -> int:
        """Delete sessions whose expiry is at or before ``now``."""
        result = await self.session.execute(
            delete(Session).where(Session.expires <= (now or utcnow()))
        )
        await self.session.commit()
        return result.rowcount

    async def delete_for_users(self, user_ids: Iterable[int]) -> int:
        """Delete every session belonging to any of the given users."""
        user_ids = list(user_ids)
        if not user_ids:
            return 0
        result = await self.session.execute(
            delete(Session).where(Session.user_id.in_(user_ids))
        )
        await self.session.commit()
        return result.rowcount
