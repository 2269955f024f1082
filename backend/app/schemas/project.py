"""Pydantic schemas for projects."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator

from app.utils.dates import as_utc


class ProjectCreate(BaseModel):
    """Project creation request."""

    workspace_id: int
    name: str = Field(..., min_length=1, max_length=255)
    post_date: datetime = Field(..., description="Start date")
    tentative_end_date: datetime = Field(..., description="Planned end date")
    image_url: Optional[str] = Field(None, max_length=1000)
    assignees: List[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_dates(self):
        if as_utc(self.tentative_end_date) <= as_utc(self.post_date):
            raise ValueError("End date must be after start date")
        return self


class ProjectUpdate(BaseModel):
    """Partial project update."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    image_url: Optional[str] = Field(None, max_length=1000)
    post_date: Optional[datetime] = None
    tentative_end_date: Optional[datetime] = None
    assignees: Optional[List[int]] = None


class ProjectBulkDelete(BaseModel):
    project_ids: List[int] = Field(..., min_length=1, description="At least one project ID is required")


class ProjectResponse(BaseModel):
    id: int
    name: str
    workspace_id: int
    image_url: Optional[str] = None
    post_date: Optional[datetime] = None
    tentative_end_date: Optional[datetime] = None
    assignees: Optional[List[int]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
