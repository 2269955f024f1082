"""Service layer."""
from app.services.auth_service import AuthService
from app.services.audit_service import AuditService
from app.services.cookie_policy import CookieOptions, CookiePolicy
from app.services.member_service import MemberService
from app.services.notification_service import NotificationService
from app.services.profile_service import ProfileService
from app.services.project_service import ProjectService
from app.services.session_lifecycle import LogoutResult, SessionLifecycleManager
from app.services.session_resolver import SessionResolver
from app.services.session_store import SessionStore
from app.services.task_service import TaskService

__all__ = [
    "AuthService",
    "AuditService",
    "CookieOptions",
    "CookiePolicy",
    "MemberService",
    "NotificationService",
    "ProfileService",
    "ProjectService",
    "LogoutResult",
    "SessionLifecycleManager",
    "SessionResolver",
    "SessionStore",
    "TaskService",
]
