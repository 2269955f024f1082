"""SQLAlchemy models."""
from app.models.user import User
from app.models.session import Session
from app.models.member import Member, MemberRole, Workspace
from app.models.project import Project, Task, TaskStatus
from app.models.notification import Notification
from app.models.audit_log import AuditLog

__all__ = [
    "User",
    "Session",
    "Member",
    "MemberRole",
    "Workspace",
    "Project",
    "Task",
    "TaskStatus",
    "Notification",
    "AuditLog",
]
