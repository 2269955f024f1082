"""Admin API routes for session and credential management."""
import logging
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, get_lifecycle_manager, permissions
from app.models.user import User
from app.schemas.admin import PasswordResetRequest
from app.services.audit_service import AuditService
from app.services.auth_service import AuthService
from app.services.authorization import Action
from app.services.member_service import MemberService
from app.services.session_lifecycle import SessionLifecycleManager
from app.services.session_store import SessionStore
from app.api.exceptions import not_found
from app.api.utils.dependencies import get_auth_service
from app.api.utils.request import extract_client_metadata
from app.api.utils.response_builders import success_response


router = APIRouter(prefix="/api/admin", tags=["Admin"])
logger = logging.getLogger(__name__)


@router.post("/clear-sessions")
async def clear_all_sessions(
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete the sessions of every member of the workspaces the caller administers.

    The caller is one of those members and is signed out as well. Users who
    only belong to other workspaces are untouched.
    """
    workspace_ids = await permissions.workspaces_permitting(db, current_user, Action.SESSIONS_CLEAR)

    user_ids = await MemberService(db).list_user_ids(workspace_ids)
    count = await SessionStore(db).delete_for_users(user_ids)
    logger.warning(
        "User %s cleared %d session(s) across workspace(s) %s", current_user.id, count, workspace_ids
    )

    # The caller's own session is gone too; drop their cookie
    await lifecycle.logout(None, response)

    ip_address, user_agent = extract_client_metadata(request)
    await AuditService(db).log_sessions_revoke(
        user_id=current_user.id,
        count=count,
        ip_address=ip_address,
        user_agent=user_agent
    )

    return success_response(
        {"sessions_cleared": count},
        message="Workspace sessions cleared. Members will need to sign in again.",
    )


@router.post("/users/{user_id}/revoke-sessions")
async def revoke_user_sessions(
    user_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle_manager),
    db: AsyncSession = Depends(get_db)
):
    """Sign a user out of every device. The caller must be an admin of a workspace the user belongs to."""
    role = await permissions.role_over(db, current_user, user_id)
    permissions.check(role, Action.SESSIONS_REVOKE, current_user, target_user_id=user_id)

    target = await db.get(User, user_id)
    if not target:
        raise not_found("User", user_id)

    count = await lifecycle.invalidate_user(user_id)

    ip_address, user_agent = extract_client_metadata(request)
    await AuditService(db).log_sessions_revoke(
        user_id=current_user.id,
        count=count,
        target_user_id=user_id,
        ip_address=ip_address,
        user_agent=user_agent
    )

    return success_response({"user_id": user_id, "sessions_cleared": count})


@router.post("/users/{user_id}/reset-password")
async def reset_user_password(
    user_id: int,
    data: PasswordResetRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    Set a new password for a user and sign them out everywhere.

    Sessions are invalidated before the password changes; if that fails the
    old password stays in place.
    """
    role = await permissions.role_over(db, current_user, user_id)
    permissions.check(role, Action.PASSWORD_RESET, current_user, target_user_id=user_id)

    target = await db.get(User, user_id)
    if not target:
        raise not_found("User", user_id)

    count = await lifecycle.invalidate_user(user_id)
    await auth_service.set_password(target, data.new_password)

    ip_address, user_agent = extract_client_metadata(request)
    await AuditService(db).log_password_reset(
        user_id=current_user.id,
        target_user_id=user_id,
        ip_address=ip_address,
        user_agent=user_agent
    )

    return success_response(
        {"user_id": user_id, "sessions_cleared": count},
        message="Password reset. The user must sign in again.",
    )
