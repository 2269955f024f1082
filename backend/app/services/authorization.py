"""Role-based authorization policy.

Decisions are pure functions of the caller's persisted role; nothing here is
cached, so a role change applies to the very next request.
"""
import enum
from dataclasses import dataclass
from typing import Optional

from app.models.member import MemberRole


class Action(str, enum.Enum):
    """Operations subject to authorization."""
    MEMBER_VIEW = "member:view"
    MEMBER_ADD = "member:add"
    MEMBER_REMOVE = "member:remove"
    MEMBER_UPDATE_ROLE = "member:update_role"
    MEMBER_DIRECTORY = "member:directory"
    PROFILE_VIEW = "profile:view"
    PROFILE_BULK_UPLOAD = "profile:bulk_upload"
    PROFILE_DELETE = "profile:delete"
    PROJECT_VIEW = "project:view"
    PROJECT_CREATE = "project:create"
    PROJECT_UPDATE = "project:update"
    PROJECT_DELETE = "project:delete"
    TASK_VIEW = "task:view"
    TASK_CREATE = "task:create"
    TASK_UPDATE = "task:update"
    TASK_DELETE = "task:delete"
    SESSIONS_CLEAR = "sessions:clear"
    SESSIONS_REVOKE = "sessions:revoke"
    PASSWORD_RESET = "password:reset"


PRIVILEGED_ROLES = frozenset({
    MemberRole.ADMIN,
    MemberRole.PROJECT_MANAGER,
    MemberRole.MANAGEMENT,
})
ADMIN_ROLES = frozenset({MemberRole.ADMIN})
ALL_ROLES = frozenset(MemberRole)
NON_CLIENT_ROLES = ALL_ROLES - {MemberRole.CLIENT}

ACTION_ROLES = {
    Action.MEMBER_VIEW: ALL_ROLES,
    Action.MEMBER_ADD: PRIVILEGED_ROLES,
    Action.MEMBER_REMOVE: PRIVILEGED_ROLES,
    Action.MEMBER_UPDATE_ROLE: PRIVILEGED_ROLES,
    Action.MEMBER_DIRECTORY: ADMIN_ROLES,
    Action.PROFILE_VIEW: NON_CLIENT_ROLES,
    Action.PROFILE_BULK_UPLOAD: PRIVILEGED_ROLES,
    Action.PROFILE_DELETE: ADMIN_ROLES,
    Action.PROJECT_VIEW: ALL_ROLES,
    Action.PROJECT_CREATE: PRIVILEGED_ROLES,
    Action.PROJECT_UPDATE: PRIVILEGED_ROLES,
    Action.PROJECT_DELETE: PRIVILEGED_ROLES,
    Action.TASK_VIEW: ALL_ROLES,
    Action.TASK_CREATE: NON_CLIENT_ROLES,
    Action.TASK_UPDATE: NON_CLIENT_ROLES,
    Action.TASK_DELETE: ADMIN_ROLES,
    Action.SESSIONS_CLEAR: ADMIN_ROLES,
    Action.SESSIONS_REVOKE: ADMIN_ROLES,
    Action.PASSWORD_RESET: ADMIN_ROLES,
}

# Actions a user may never perform on their own account
SELF_PROTECTED_ACTIONS = frozenset({
    Action.MEMBER_REMOVE,
    Action.MEMBER_UPDATE_ROLE,
    Action.PROFILE_DELETE,
})

SELF_PROTECTION_MESSAGES = {
    Action.MEMBER_REMOVE: "You cannot remove yourself from the workspace",
    Action.MEMBER_UPDATE_ROLE: "You cannot change your own role",
    Action.PROFILE_DELETE: "You cannot delete your own profile",
}


@dataclass(frozen=True)
class AuthorizationDecision:
    allowed: bool
    status_code: int = 200
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "AuthorizationDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, status_code: int, reason: str) -> "AuthorizationDecision":
        return cls(allowed=False, status_code=status_code, reason=reason)


def _as_role(role) -> Optional[MemberRole]:
    if role is None:
        return None
    try:
        return MemberRole(role)
    except ValueError:
        return None


def can(role, action: Action) -> bool:
    """Return True if the role may perform the action. Unknown roles are denied."""
    member_role = _as_role(role)
    if member_role is None:
        return False
    return member_role in ACTION_ROLES.get(action, frozenset())


def can_access_project(role, project_scope: Optional[int], target_project_id: Optional[int]) -> bool:
    """
    Check project visibility for a role.

    CLIENT members only see the single project they are scoped to; a CLIENT
    without a scope sees nothing. Every other role sees all projects of the
    workspace.
    """
    member_role = _as_role(role)
    if member_role is None:
        return False
    if member_role is MemberRole.CLIENT:
        return project_scope is not None and project_scope == target_project_id
    return True


def violates_self_protection(actor_id: int, target_user_id: Optional[int], action: Action) -> bool:
    """True when the actor targets their own account with a self-protected action."""
    return action in SELF_PROTECTED_ACTIONS and target_user_id is not None and actor_id == target_user_id


def authorize(
    role,
    action: Action,
    actor_id: Optional[int] = None,
    target_user_id: Optional[int] = None,
    project_scope: Optional[int] = None,
    target_project_id: Optional[int] = None,
) -> AuthorizationDecision:
    """
    Full authorization check for an action.

    Order: self-protection (400), CLIENT project scope (403), role tier (403).

    Args:
        role: Caller's role in the relevant workspace (None if not a member)
        action: Action being attempted
        actor_id: Caller's user ID
        target_user_id: User the action targets, for self-protected actions
        project_scope: Caller's CLIENT project scope
        target_project_id: Project the action targets, if any

    Returns:
        AuthorizationDecision
    """
    if actor_id is not None and violates_self_protection(actor_id, target_user_id, action):
        return AuthorizationDecision.deny(400, SELF_PROTECTION_MESSAGES[action])

    if _as_role(role) is None:
        return AuthorizationDecision.deny(403, "You are not a member of this workspace")

    if target_project_id is not None and not can_access_project(role, project_scope, target_project_id):
        return AuthorizationDecision.deny(403, "You do not have access to this project")

    if not can(role, action):
        return AuthorizationDecision.deny(403, "You do not have permission to perform this action")

    return AuthorizationDecision.allow()
