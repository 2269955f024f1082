"""In-app notification service."""
import logging
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from app.utils.dates import utcnow


logger = logging.getLogger(__name__)


class NotificationService:
    """Service for a user's notifications. Every query is scoped to the owner."""

    def __init__(self, session: AsyncSession):
        """Initialize notification service."""
        self.session = session

    async def notify(
        self,
        user_id: int,
        title: str,
        message: Optional[str] = None,
        link: Optional[str] = None,
        commit: bool = True,
    ) -> Notification:
        """
        Create a notification for a user.

        Args:
            user_id: Recipient
            title: Short title
            message: Body text
            link: Optional in-app link
            commit: Commit immediately; pass False to join the caller's transaction

        Returns:
            Created Notification
        """
        notification = Notification(user_id=user_id, title=title, message=message, link=link)
        self.session.add(notification)
        if commit:
            await self.session.commit()
            await self.session.refresh(notification)
        return notification

    async def list_for_user(self, user_id: int, unread_only: bool = False) -> List[Notification]:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        result = await self.session.execute(
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        return list(result.scalars().all())

    async def get_for_user(self, notification_id: int, user_id: int) -> Optional[Notification]:
        """Get a notification only if it belongs to the user."""
        result = await self.session.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def mark_read(self, notification: Notification) -> Notification:
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utcnow()
            await self.session.commit()
            await self.session.refresh(notification)
        return notification

    async def mark_all_read(self, user_id: int) -> int:
        """Mark every unread notification of a user as read. Returns the count updated."""
        result = await self.session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=utcnow())
        )
        await self.session.commit()
        return result.rowcount

    async def delete(self, notification: Notification) -> None:
        await self.session.delete(notification)
        await self.session.commit()

    async def clear_all(self, user_id: int) -> int:
        """Delete every notification of a user. Returns the count removed."""
        result = await self.session.execute(
            delete(Notification).where(Notification.user_id == user_id)
        )
        await self.session.commit()
        logger.debug("Cleared %d notification(s) for user %s", result.rowcount, user_id)
        return result.rowcount
