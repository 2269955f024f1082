"""Response builder utilities for consistent API responses."""
from typing import Any, Optional

from app.models.member import Member
from app.models.user import User
from app.schemas.member import MemberResponse


def success_response(data: Any = None, message: Optional[str] = None) -> dict:
    """
    Build the success envelope returned by every route.

    Args:
        data: Payload; omitted when None
        message: Optional human-readable message

    Returns:
        {"success": True, "data"?: ..., "message"?: ...}
    """
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body


def build_member_response(member: Member, user: Optional[User] = None) -> MemberResponse:
    """
    Build MemberResponse, joining the user's display fields when available.

    Args:
        member: Member model instance
        user: The member's user row, if already loaded

    Returns:
        MemberResponse
    """
    return MemberResponse(
        id=member.id,
        user_id=member.user_id,
        workspace_id=member.workspace_id,
        role=member.role,
        project_id=member.project_id,
        name=user.name if user else None,
        email=user.email if user else None,
        created_at=member.created_at,
    )
