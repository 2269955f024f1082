"""Profile API routes: view, bulk upload and delete."""
import logging
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.database import get_db
from app.dependencies import get_current_user, get_lifecycle_manager, permissions
from app.models.user import User
from app.schemas.auth import UserResponse
from app.schemas.profile import BulkUploadResponse
from app.services.audit_service import AuditService
from app.services.authorization import Action
from app.services.profile_service import ProfileService
from app.services.session_lifecycle import SessionLifecycleManager
from app.api.exceptions import bad_request, not_found
from app.api.utils.dependencies import get_profile_service
from app.api.utils.request import extract_client_metadata
from app.api.utils.response_builders import success_response


router = APIRouter(prefix="/api/profiles", tags=["Profiles"])
logger = logging.getLogger(__name__)


@router.get("/{user_id}")
async def get_profile(
    user_id: int,
    current_user: User = Depends(get_current_user),
    profile_service: ProfileService = Depends(get_profile_service),
    db: AsyncSession = Depends(get_db)
):
    """
    Get a user's profile.

    Anyone may read their own profile. Other profiles are visible to
    non-client members of a workspace the user belongs to.
    """
    if user_id != current_user.id:
        role = await permissions.role_over(db, current_user, user_id)
        permissions.check(role, Action.PROFILE_VIEW, current_user)

    user = await profile_service.get_profile(user_id)
    if not user:
        raise not_found("Profile", user_id)
    return success_response(UserResponse.model_validate(user))


@router.post("/bulk-upload")
async def bulk_upload_profiles(
    request: Request,
    file: UploadFile = File(...),
    workspace_id: int = Form(...),
    current_user: User = Depends(get_current_user),
    profile_service: ProfileService = Depends(get_profile_service),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db)
):
    """
    Import profiles from a CSV file.

    Rows that fail validation or collide with existing emails/mobile
    numbers are listed in ``errors``; the remaining rows are created.

    Raises:
        HTTPException: 403 without upload rights, 400 for a missing or oversized file
        BulkUploadError: If no row is valid (400)
        ConflictError: If every valid row already exists (409)
    """
    actor = await permissions.require_member(db, current_user, workspace_id)
    permissions.check(actor, Action.PROFILE_BULK_UPLOAD, current_user)

    content = await file.read(settings.BULK_UPLOAD_MAX_BYTES + 1)
    if not content:
        raise bad_request("No file uploaded")
    if len(content) > settings.BULK_UPLOAD_MAX_BYTES:
        raise bad_request(
            f"File size exceeds {settings.BULK_UPLOAD_MAX_BYTES // (1024 * 1024)}MB limit"
        )

    result = await profile_service.bulk_upload(content, workspace_id)

    ip_address, user_agent = extract_client_metadata(request)
    await AuditService(db).log_bulk_upload(
        user_id=current_user.id,
        created=result.created,
        skipped=result.skipped,
        ip_address=ip_address,
        user_agent=user_agent
    )

    return success_response(
        BulkUploadResponse(created=result.created, skipped=result.skipped, errors=result.errors),
        message=f"Created {result.created} profile(s)",
    )


@router.delete("/{user_id}")
async def delete_profile(
    user_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
    profile_service: ProfileService = Depends(get_profile_service),
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a profile. Only admins of a workspace the user belongs to may
    do this, and never to their own profile.

    The user's sessions are invalidated before anything else is removed.
    """
    role = await permissions.role_over(db, current_user, user_id)
    permissions.check(role, Action.PROFILE_DELETE, current_user, target_user_id=user_id)

    user = await profile_service.get_profile(user_id)
    if not user:
        raise not_found("Profile", user_id)

    email = user.email
    summary = await profile_service.delete_profile(user, lifecycle)

    ip_address, user_agent = extract_client_metadata(request)
    await AuditService(db).log_profile_delete(
        user_id=current_user.id,
        deleted_user_id=user_id,
        details={"email": email, **summary},
        ip_address=ip_address,
        user_agent=user_agent
    )

    return success_response({"id": user_id, **summary})
