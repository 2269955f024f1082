"""Pydantic schemas for tasks."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from app.models.project import TaskStatus


class TaskCreate(BaseModel):
    project_id: int
    summary: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    assignee_id: Optional[int] = None
    parent_task_id: Optional[int] = None
    due_date: Optional[datetime] = None


class TaskUpdate(BaseModel):
    summary: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    assignee_id: Optional[int] = None
    due_date: Optional[datetime] = None


class TaskResponse(BaseModel):
    id: int
    summary: str
    description: Optional[str] = None
    status: TaskStatus
    workspace_id: int
    project_id: int
    assignee_id: Optional[int] = None
    parent_task_id: Optional[int] = None
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
