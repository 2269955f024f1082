"""Pydantic schemas for workspace members."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from app.models.member import MemberRole


class AddMemberRequest(BaseModel):
    """Add an existing user to a workspace by email."""

    email: EmailStr
    workspace_id: int
    role: MemberRole = MemberRole.EMPLOYEE
    project_id: Optional[int] = Field(None, description="Required when role is CLIENT")


class UpdateMemberRequest(BaseModel):
    """Change a member's role."""

    role: MemberRole
    project_id: Optional[int] = None


class MemberResponse(BaseModel):
    """Member with the user's display fields."""

    id: int
    user_id: int
    workspace_id: int
    role: MemberRole
    project_id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class EmployeeSummary(BaseModel):
    """Directory entry for a user."""

    id: int
    name: str
    email: str
    designation: Optional[str] = None
    department: Optional[str] = None

    model_config = {
        "from_attributes": True
    }
