"""FastAPI dependencies for authentication and authorization."""
from typing import List, Optional
from fastapi import Cookie, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.exceptions import bad_request, forbidden, unauthorized
from app.config import Settings, get_settings
from app.database import get_db, get_session_factory
from app.models.member import Member, MemberRole
from app.models.user import User
from app.services.authorization import Action, authorize, can
from app.services.cookie_policy import CookiePolicy
from app.services.member_service import MemberService
from app.services.session_lifecycle import SessionLifecycleManager
from app.services.session_resolver import SessionResolver


settings = get_settings()


def get_cookie_policy(settings: Settings = Depends(get_settings)) -> CookiePolicy:
    """Dependency to get the cookie policy for the current configuration."""
    return CookiePolicy.from_settings(settings)


async def get_session_token(
    session_token: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME)
) -> Optional[str]:
    """
    Extract session token from cookie.

    Args:
        session_token: Session token from cookie

    Returns:
        Session token or None
    """
    return session_token


async def get_session_resolver(
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> SessionResolver:
    """Dependency to get the session resolver."""
    return SessionResolver(db, session_factory)


async def get_lifecycle_manager(
    db: AsyncSession = Depends(get_db),
    cookie_policy: CookiePolicy = Depends(get_cookie_policy),
    settings: Settings = Depends(get_settings),
) -> SessionLifecycleManager:
    """
    Dependency to get the session lifecycle manager.

    Args:
        db: Database session
        cookie_policy: Cookie policy
        settings: Application settings

    Returns:
        SessionLifecycleManager instance
    """
    return SessionLifecycleManager(
        session=db,
        cookie_policy=cookie_policy,
        cookie_name=settings.SESSION_COOKIE_NAME,
        session_expiry_days=settings.SESSION_EXPIRY_DAYS,
    )


async def get_current_user(
    session_token: Optional[str] = Depends(get_session_token),
    resolver: SessionResolver = Depends(get_session_resolver)
) -> User:
    """
    Get the current authenticated user.

    Raises:
        HTTPException: If not authenticated or session invalid
    """
    user = await resolver.resolve(session_token)
    if not user:
        raise unauthorized()
    return user


class PermissionChecker:
    """
    Permission checker enforcing the authorization policy.

    Roles are always read from the database for the request at hand.

    Usage:
        member = await permissions.require_member(db, current_user, project.workspace_id)
        permissions.check(member, Action.PROJECT_DELETE, current_user)
    """

    async def require_member(self, db: AsyncSession, user: User, workspace_id: int) -> Member:
        """Return the user's membership in a workspace or raise 403."""
        member = await MemberService(db).get_member(workspace_id, user.id)
        if member is None:
            raise forbidden("You are not a member of this workspace")
        return member

    async def role_over(self, db: AsyncSession, user: User, target_user_id: int) -> Optional[MemberRole]:
        """
        Role used for actions aimed at another user account.

        Only workspaces both users belong to count, so a role held in one
        tenant grants nothing over users of another. None if they share none.
        """
        return await MemberService(db).get_shared_role(user.id, target_user_id)

    async def workspaces_permitting(self, db: AsyncSession, user: User, action: Action) -> List[int]:
        """
        IDs of the workspaces where the user's role allows the action.

        Raises:
            HTTPException: 403 if there are none
        """
        memberships = await MemberService(db).list_memberships(user.id)
        workspace_ids = [m.workspace_id for m in memberships if can(m.role, action)]
        if not workspace_ids:
            raise forbidden("You do not have permission to perform this action")
        return workspace_ids

    def check(
        self,
        role_or_member,
        action: Action,
        user: User,
        target_user_id: Optional[int] = None,
        target_project_id: Optional[int] = None,
    ) -> None:
        """
        Raise unless the action is allowed.

        Args:
            role_or_member: Member row, or a bare role for user-level actions
            action: Action being attempted
            user: Acting user
            target_user_id: User targeted by a self-protected action
            target_project_id: Project the action touches

        Raises:
            HTTPException: 400 for self-targeted protected actions, 403 otherwise
        """
        if isinstance(role_or_member, Member):
            role = role_or_member.role
            project_scope = role_or_member.project_id
        else:
            role = role_or_member
            project_scope = None

        decision = authorize(
            role,
            action,
            actor_id=user.id,
            target_user_id=target_user_id,
            project_scope=project_scope,
            target_project_id=target_project_id,
        )
        if decision.allowed:
            return
        if decision.status_code == 400:
            raise bad_request(decision.reason)
        raise forbidden(decision.reason)


# Global permission checker instance
permissions = PermissionChecker()
