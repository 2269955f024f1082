"""Common dependency injection utilities."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.database import get_db
from app.services.auth_service import AuthService
from app.services.member_service import MemberService
from app.services.notification_service import NotificationService
from app.services.profile_service import ProfileService
from app.services.project_service import ProjectService
from app.services.task_service import TaskService


async def get_auth_service(
    db: AsyncSession = Depends(get_db)
) -> AuthService:
    """
    Get AuthService instance.

    Args:
        db: Database session from dependency injection

    Returns:
        Initialized AuthService
    """
    return AuthService(db)


async def get_member_service(
    db: AsyncSession = Depends(get_db)
) -> MemberService:
    """Get MemberService instance."""
    return MemberService(db)


async def get_project_service(
    db: AsyncSession = Depends(get_db)
) -> ProjectService:
    """Get ProjectService instance."""
    return ProjectService(db)


async def get_task_service(
    db: AsyncSession = Depends(get_db)
) -> TaskService:
    """Get TaskService instance."""
    return TaskService(db)


async def get_notification_service(
    db: AsyncSession = Depends(get_db)
) -> NotificationService:
    """Get NotificationService instance."""
    return NotificationService(db)


async def get_profile_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
) -> ProfileService:
    """
    Get ProfileService instance.

    Args:
        db: Database session from dependency injection
        settings: Application settings (upload row limit)

    Returns:
        Initialized ProfileService
    """
    return ProfileService(db, max_rows=settings.BULK_UPLOAD_MAX_ROWS)
