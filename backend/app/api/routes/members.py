"""Workspace member API routes."""
import logging
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, get_lifecycle_manager, permissions
from app.models.member import MemberRole
from app.models.user import User
from app.schemas.member import AddMemberRequest, EmployeeSummary, UpdateMemberRequest
from app.services.audit_service import AuditService
from app.services.auth_service import AuthService
from app.services.authorization import Action
from app.services.member_service import MemberService
from app.services.session_lifecycle import SessionLifecycleManager
from app.api.exceptions import not_found
from app.api.utils.dependencies import get_auth_service, get_member_service
from app.api.utils.request import extract_client_metadata
from app.api.utils.response_builders import build_member_response, success_response


router = APIRouter(prefix="/api/members", tags=["Members"])
logger = logging.getLogger(__name__)


@router.post("/add-direct")
async def add_member_directly(
    data: AddMemberRequest,
    current_user: User = Depends(get_current_user),
    member_service: MemberService = Depends(get_member_service),
    auth_service: AuthService = Depends(get_auth_service),
    db: AsyncSession = Depends(get_db)
):
    """
    Add an existing user to a workspace by email.

    Raises:
        HTTPException: 403 without member-management rights, 404 if no such user
        ConflictError: If the user is already a member (409)
    """
    actor = await permissions.require_member(db, current_user, data.workspace_id)
    permissions.check(actor, Action.MEMBER_ADD, current_user)

    target = await auth_service.get_user_by_email(data.email)
    if not target:
        raise not_found("User")

    member = await member_service.add_member(
        user_id=target.id,
        workspace_id=data.workspace_id,
        role=data.role,
        project_id=data.project_id
    )
    return success_response(
        build_member_response(member, target),
        message=f"Successfully added {target.email} to workspace",
    )


@router.get("")
async def list_members(
    workspace_id: int = Query(...),
    for_task_assignment: bool = Query(False),
    current_user: User = Depends(get_current_user),
    member_service: MemberService = Depends(get_member_service),
    db: AsyncSession = Depends(get_db)
):
    """
    List members of a workspace the caller belongs to.

    With ``for_task_assignment`` only members who can be given tasks are
    returned (everyone but clients), for the assignee picker.
    """
    actor = await permissions.require_member(db, current_user, workspace_id)
    permissions.check(actor, Action.MEMBER_VIEW, current_user)

    exclude_roles = (MemberRole.CLIENT,) if for_task_assignment else ()
    rows = await member_service.list_members(workspace_id, exclude_roles=exclude_roles)
    documents = [build_member_response(member, user) for member, user in rows]
    return success_response({"documents": documents, "total": len(documents)})


@router.get("/current")
async def get_current_member(
    workspace_id: int = Query(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the caller's own membership in a workspace."""
    member = await permissions.require_member(db, current_user, workspace_id)
    return success_response(build_member_response(member, current_user))


@router.get("/all-employees")
async def list_all_employees(
    current_user: User = Depends(get_current_user),
    member_service: MemberService = Depends(get_member_service),
    db: AsyncSession = Depends(get_db)
):
    """
    Employee directory for admins.

    Lists every user belonging to a workspace the caller administers,
    each once, ordered by name.
    """
    workspace_ids = await permissions.workspaces_permitting(db, current_user, Action.MEMBER_DIRECTORY)

    users = await member_service.list_directory(workspace_ids)
    return success_response([EmployeeSummary.model_validate(user) for user in users])


@router.get("/role")
async def get_current_role(
    current_user: User = Depends(get_current_user),
    member_service: MemberService = Depends(get_member_service)
):
    """Get the caller's most privileged role across workspaces (None if not a member anywhere)."""
    role = await member_service.get_highest_role(current_user.id)
    return success_response({"role": role.value if role else None})


@router.patch("/{member_id}")
async def update_member_role(
    member_id: int,
    data: UpdateMemberRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    member_service: MemberService = Depends(get_member_service),
    db: AsyncSession = Depends(get_db)
):
    """
    Change a member's role.

    Raises:
        HTTPException: 404 if the member is unknown, 400 when changing
            one's own role, 403 without member-management rights
    """
    member = await member_service.get_member_by_id(member_id)
    if not member:
        raise not_found("Member", member_id)

    actor = await permissions.require_member(db, current_user, member.workspace_id)
    permissions.check(actor, Action.MEMBER_UPDATE_ROLE, current_user, target_user_id=member.user_id)

    old_role = member.role
    member = await member_service.update_role(member, data.role, data.project_id)

    ip_address, user_agent = extract_client_metadata(request)
    await AuditService(db).log_role_change(
        user_id=current_user.id,
        member_id=member.id,
        old_role=old_role,
        new_role=member.role,
        ip_address=ip_address,
        user_agent=user_agent
    )

    return success_response(build_member_response(member))


@router.delete("/{member_id}")
async def remove_member(
    member_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
    member_service: MemberService = Depends(get_member_service),
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    Remove a member from a workspace.

    The removed user is signed out everywhere first; their account and
    history are kept.

    Raises:
        HTTPException: 404 if the member is unknown, 400 when removing
            oneself, 403 without member-management rights
    """
    member = await member_service.get_member_by_id(member_id)
    if not member:
        raise not_found("Member", member_id)

    actor = await permissions.require_member(db, current_user, member.workspace_id)
    permissions.check(actor, Action.MEMBER_REMOVE, current_user, target_user_id=member.user_id)

    removed_user_id = member.user_id
    workspace_id = member.workspace_id
    sessions_cleared = await member_service.remove_member(member, lifecycle)

    ip_address, user_agent = extract_client_metadata(request)
    await AuditService(db).log_member_remove(
        user_id=current_user.id,
        member_id=member_id,
        removed_user_id=removed_user_id,
        workspace_id=workspace_id,
        ip_address=ip_address,
        user_agent=user_agent
    )

    return success_response({"id": member_id, "sessions_cleared": sessions_cleared})
