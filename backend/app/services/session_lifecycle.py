"""Login, logout and forced invalidation of sessions."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.services.cookie_policy import CookiePolicy
from app.services.errors import SessionConflictError
from app.services.session_store import SessionStore
from app.utils.dates import utcnow
from app.utils.security import mask_token


logger = logging.getLogger(__name__)

MAX_TOKEN_ATTEMPTS = 3
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class LogoutResult:
    """Outcome of a logout; partial success is reported, never raised."""
    session_deleted: bool
    cookie_deleted: bool
    message: str


class SessionLifecycleManager:
    """Coordinates the session store and cookie policy for auth transitions."""

    def __init__(
        self,
        session: AsyncSession,
        cookie_policy: CookiePolicy,
        cookie_name: str,
        session_expiry_days: int = 30,
    ):
        """
        Initialize lifecycle manager.

        Args:
            session: Database session
            cookie_policy: Policy deriving cookie attributes
            cookie_name: Name of the session cookie
            session_expiry_days: Lifetime of new sessions in days
        """
        self.store = SessionStore(session)
        self.cookie_policy = cookie_policy
        self.cookie_name = cookie_name
        self.session_expiry_days = session_expiry_days

    async def login(self, user: User, response: Response) -> datetime:
        """
        Start the single valid session for a user and set the cookie.

        All previous sessions of the user are removed first. The cookie is
        only written once the new row is committed.

        Args:
            user: Authenticated user
            response: Response that receives the Set-Cookie header

        Returns:
            Expiry of the new session

        Raises:
            SessionCleanupError: If old sessions could not be removed
            SessionCreationError: If the new session could not be stored
            SessionConflictError: If token generation kept colliding
        """
        expires_at = utcnow() + timedelta(days=self.session_expiry_days)

        token = None
        for attempt in range(1, MAX_TOKEN_ATTEMPTS + 1):
            try:
                token = await self.store.rotate(user.id, expires_at)
                break
            except SessionConflictError:
                logger.warning(
                    "Session token collision for user %s (attempt %d/%d)",
                    user.id, attempt, MAX_TOKEN_ATTEMPTS
                )
                if attempt == MAX_TOKEN_ATTEMPTS:
                    raise

        options = self.cookie_policy.build_set_options()
        response.set_cookie(key=self.cookie_name, value=token, **options.set_kwargs())

        logger.info("User %s logged in, session %s", user.id, mask_token(token))
        return expires_at

    async def logout(self, token: Optional[str], response: Response) -> LogoutResult:
        """
        End a session. Never raises.

        The cookie is cleared in three layers: with the full delete options,
        without the domain attribute, and by overwriting it with an empty,
        already-expired value. A failure in one layer does not stop the others.
        """
        session_deleted = True
        if token:
            try:
                removed = await self.store.delete_by_token(token)
                logger.debug("Removed %d session row(s) for %s", removed, mask_token(token))
            except Exception as e:
                session_deleted = False
                logger.error("Failed to delete session %s on logout: %s", mask_token(token), str(e))

        options = self.cookie_policy.build_delete_options()
        layers = (
            ("full", lambda: response.delete_cookie(self.cookie_name, **options.delete_kwargs())),
            ("no-domain", lambda: response.delete_cookie(
                self.cookie_name, **options.without_domain().delete_kwargs()
            )),
            ("expired-value", lambda: response.set_cookie(
                key=self.cookie_name,
                value="",
                max_age=0,
                expires=EPOCH,
                **options.delete_kwargs(),
            )),
        )

        cleared = 0
        for name, apply_layer in layers:
            try:
                apply_layer()
                cleared += 1
            except Exception as e:
                logger.error("Cookie deletion layer '%s' failed: %s", name, str(e))

        cookie_deleted = cleared > 0
        if session_deleted and cookie_deleted:
            message = "Logged out successfully"
        elif cookie_deleted:
            message = "Logged out locally; the server session could not be removed"
        elif session_deleted:
            message = "Session ended; the cookie could not be cleared"
        else:
            message = "Logout could not be completed"

        return LogoutResult(
            session_deleted=session_deleted,
            cookie_deleted=cookie_deleted,
            message=message,
        )

    async def invalidate_user(self, user_id: int) -> int:
        """
        Sign a user out everywhere.

        Store errors propagate so the calling operation can abort.

        Returns:
            Number of sessions removed
        """
        removed = await self.store.delete_all_for_user(user_id)
        logger.info("Invalidated %d session(s) for user %s", removed, user_id)
        return removed
