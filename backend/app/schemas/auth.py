"""Pydantic schemas for authentication."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, description="Password")


class RegisterRequest(BaseModel):
    """Registration request schema."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=256, description="Password (minimum 8 characters)")


class ProfileUpdateRequest(BaseModel):
    """Self-service profile update; omitted fields are left unchanged."""

    native: Optional[str] = None
    mobile_no: Optional[str] = Field(None, max_length=50)
    experience: Optional[int] = Field(None, ge=0)
    skills: Optional[List[str]] = None
    image_url: Optional[str] = Field(None, max_length=1000)


class UserResponse(BaseModel):
    """User response schema (for /current and profile endpoints)."""

    id: int
    name: str
    email: str
    native: Optional[str] = None
    mobile_no: Optional[str] = None
    experience: Optional[int] = None
    skills: Optional[List[str]] = None
    designation: Optional[str] = None
    department: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    date_of_joining: Optional[datetime] = None
    image_url: Optional[str] = None
    has_login_access: bool = True
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class LoginResponse(BaseModel):
    """Login response payload."""

    user: UserResponse
    expires_at: datetime


class LogoutResponse(BaseModel):
    """Logout outcome; logout always reports success."""

    session_deleted: bool
    cookie_deleted: bool
