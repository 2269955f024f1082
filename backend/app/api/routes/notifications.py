"""Notification API routes. Users only ever see their own notifications."""
from fastapi import APIRouter, Depends, Query

from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.notification import NotificationResponse
from app.services.notification_service import NotificationService
from app.api.exceptions import not_found
from app.api.utils.dependencies import get_notification_service
from app.api.utils.response_builders import success_response


router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("")
async def list_notifications(
    unread_only: bool = Query(False),
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """List the caller's notifications, newest first."""
    notifications = await notification_service.list_for_user(current_user.id, unread_only=unread_only)
    documents = [NotificationResponse.model_validate(n) for n in notifications]
    unread = sum(1 for n in notifications if not n.is_read)
    return success_response({"documents": documents, "total": len(documents), "unread": unread})


@router.patch("/mark-all-read")
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """Mark all of the caller's notifications as read."""
    count = await notification_service.mark_all_read(current_user.id)
    return success_response({"updated": count})


@router.delete("/clear-all")
async def clear_all(
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """Delete all of the caller's notifications."""
    count = await notification_service.clear_all(current_user.id)
    return success_response({"deleted": count})


@router.patch("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """Mark one notification as read."""
    notification = await notification_service.get_for_user(notification_id, current_user.id)
    if not notification:
        raise not_found("Notification", notification_id)

    notification = await notification_service.mark_read(notification)
    return success_response(NotificationResponse.model_validate(notification))


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """Delete one notification."""
    notification = await notification_service.get_for_user(notification_id, current_user.id)
    if not notification:
        raise not_found("Notification", notification_id)

    await notification_service.delete(notification)
    return success_response({"id": notification_id})
