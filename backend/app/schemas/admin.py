"""Pydantic schemas for administrative actions."""
from pydantic import BaseModel, Field


class PasswordResetRequest(BaseModel):
    """Admin-initiated password reset."""

    new_password: str = Field(..., min_length=8, max_length=256, description="New password (minimum 8 characters)")
