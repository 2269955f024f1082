"""Project and task models."""
import enum
from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, JSON, ForeignKey, Index
from sqlalchemy.sql import func
from app.database import Base


class TaskStatus(str, enum.Enum):
    """Task workflow status."""
    BACKLOG = "BACKLOG"
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    IN_REVIEW = "IN_REVIEW"
    DONE = "DONE"


class Project(Base):
    """Project owned by a workspace."""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    workspace_id = Column(Integer, ForeignKey('workspaces.id', ondelete='CASCADE'), nullable=False)
    image_url = Column(String(1000), nullable=True)

    post_date = Column(TIMESTAMP(timezone=True), nullable=True)
    tentative_end_date = Column(TIMESTAMP(timezone=True), nullable=True)
    assignees = Column(JSON, nullable=True)  # List of user ids

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('idx_projects_workspace_id', 'workspace_id'),
    )

    def __repr__(self):
        return f"<Project(id={self.id}, name={self.name}, workspace_id={self.workspace_id})>"


class Task(Base):
    """Task within a project; subtasks reference their parent."""

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    summary = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), default=TaskStatus.TODO.value, nullable=False)

    workspace_id = Column(Integer, ForeignKey('workspaces.id', ondelete='CASCADE'), nullable=False)
    project_id = Column(Integer, ForeignKey('projects.id', ondelete='CASCADE'), nullable=False)
    assignee_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    parent_task_id = Column(Integer, ForeignKey('tasks.id', ondelete='CASCADE'), nullable=True)

    due_date = Column(TIMESTAMP(timezone=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('idx_tasks_project_id', 'project_id'),
        Index('idx_tasks_assignee_id', 'assignee_id'),
    )

    def __repr__(self):
        return f"<Task(id={self.id}, summary={self.summary}, status={self.status})>"
