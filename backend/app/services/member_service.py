"""Workspace membership service."""
import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.member import Member, MemberRole
from app.models.user import User
from app.services.errors import ConflictError, ValidationError
from app.services.session_lifecycle import SessionLifecycleManager


logger = logging.getLogger(__name__)


class MemberService:
    """Service for managing workspace members."""

    def __init__(self, session: AsyncSession):
        """
        Initialize member service.

        Args:
            session: Database session
        """
        self.session = session

    async def get_member(self, workspace_id: int, user_id: int) -> Optional[Member]:
        """Get the membership row of a user in a workspace, or None."""
        result = await self.session.execute(
            select(Member).where(
                Member.workspace_id == workspace_id,
                Member.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_member_by_id(self, member_id: int) -> Optional[Member]:
        return await self.session.get(Member, member_id)

    async def get_roles_for_user(self, user_id: int) -> List[str]:
        """All roles a user holds across workspaces."""
        result = await self.session.execute(
            select(Member.role).where(Member.user_id == user_id)
        )
        return list(result.scalars().all())

    async def get_highest_role(self, user_id: int) -> Optional[MemberRole]:
        """Most privileged role a user holds in any workspace, or None."""
        roles = await self.get_roles_for_user(user_id)
        if not roles:
            return None
        return MemberRole.highest(roles)

    async def list_memberships(self, user_id: int) -> List[Member]:
        """All membership rows of a user."""
        result = await self.session.execute(
            select(Member).where(Member.user_id == user_id).order_by(Member.id)
        )
        return list(result.scalars().all())

    async def get_shared_role(self, actor_id: int, target_user_id: int) -> Optional[MemberRole]:
        """
        Most privileged role the actor holds in a workspace the target also belongs to.

        Returns None when the two users share no workspace.
        """
        target_workspaces = select(Member.workspace_id).where(Member.user_id == target_user_id)
        result = await self.session.execute(
            select(Member.role).where(
                Member.user_id == actor_id,
                Member.workspace_id.in_(target_workspaces),
            )
        )
        roles = list(result.scalars().all())
        if not roles:
            return None
        return MemberRole.highest(roles)

    async def list_user_ids(self, workspace_ids: Iterable[int]) -> List[int]:
        """Distinct IDs of users belonging to any of the given workspaces."""
        workspace_ids = list(workspace_ids)
        if not workspace_ids:
            return []
        result = await self.session.execute(
            select(Member.user_id)
            .where(Member.workspace_id.in_(workspace_ids))
            .distinct()
        )
        return list(result.scalars().all())

    async def list_members(
        self,
        workspace_id: int,
        exclude_roles: Iterable[MemberRole] = (),
    ) -> List[Tuple[Member, User]]:
        """List members of a workspace with their user rows, oldest first."""
        query = (
            select(Member, User)
            .join(User, Member.user_id == User.id)
            .where(Member.workspace_id == workspace_id)
            .order_by(Member.id)
        )
        excluded = [role.value for role in exclude_roles]
        if excluded:
            query = query.where(Member.role.not_in(excluded))
        result = await self.session.execute(query)
        return [(member, user) for member, user in result.all()]

    async def ensure_assignable(self, workspace_id: int, user_ids: Iterable[int]) -> None:
        """
        Check that every user can be given work in the workspace.

        Raises:
            ValidationError: If any user is not a non-client member of the workspace
        """
        wanted = set(user_ids)
        if not wanted:
            return
        result = await self.session.execute(
            select(Member.user_id).where(
                Member.workspace_id == workspace_id,
                Member.user_id.in_(wanted),
                Member.role != MemberRole.CLIENT.value,
            )
        )
        invalid = sorted(wanted - set(result.scalars().all()))
        if invalid:
            raise ValidationError(
                "Assignees must be members of the workspace",
                details={"user_ids": invalid},
            )

    async def list_directory(self, workspace_ids: Iterable[int]) -> List[User]:
        """Users belonging to any of the given workspaces, ordered by name."""
        workspace_ids = list(workspace_ids)
        if not workspace_ids:
            return []
        members_of = select(Member.user_id).where(Member.workspace_id.in_(workspace_ids))
        result = await self.session.execute(
            select(User).where(User.id.in_(members_of)).order_by(User.name, User.id)
        )
        return list(result.scalars().all())

    async def add_member(
        self,
        user_id: int,
        workspace_id: int,
        role: MemberRole = MemberRole.EMPLOYEE,
        project_id: Optional[int] = None,
    ) -> Member:
        """
        Add a user to a workspace.

        Args:
            user_id: User to add
            workspace_id: Target workspace
            role: Role to grant
            project_id: Project scope, required for CLIENT

        Returns:
            Created Member

        Raises:
            ValidationError: If a CLIENT is added without a project scope
            ConflictError: If the user is already a member
        """
        if role is MemberRole.CLIENT and project_id is None:
            raise ValidationError("A project is required for client members")

        if await self.get_member(workspace_id, user_id):
            raise ConflictError("User is already a member of this workspace")

        member = Member(
            user_id=user_id,
            workspace_id=workspace_id,
            role=role.value,
            project_id=project_id if role is MemberRole.CLIENT else None,
        )
        self.session.add(member)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError("User is already a member of this workspace") from exc
        await self.session.refresh(member)

        logger.info("Added user %s to workspace %s as %s", user_id, workspace_id, role.value)
        return member

    async def update_role(
        self,
        member: Member,
        role: MemberRole,
        project_id: Optional[int] = None,
    ) -> Member:
        """
        Change a member's role.

        Raises:
            ValidationError: If the new role is CLIENT and no project scope is known
        """
        scope = project_id if project_id is not None else member.project_id
        if role is MemberRole.CLIENT and scope is None:
            raise ValidationError("A project is required for client members")

        member.role = role.value
        member.project_id = scope if role is MemberRole.CLIENT else None
        await self.session.commit()
        await self.session.refresh(member)
        return member

    async def remove_member(self, member: Member, lifecycle: SessionLifecycleManager) -> int:
        """
        Remove a member from a workspace.

        The user is signed out everywhere before the membership is deleted;
        if that fails the membership stays in place. The user account and
        its history are kept.

        Returns:
            Number of sessions cleared
        """
        sessions_cleared = await lifecycle.invalidate_user(member.user_id)

        await self.session.execute(delete(Member).where(Member.id == member.id))
        await self.session.commit()

        logger.info(
            "Removed member %s (user %s) from workspace %s",
            member.id, member.user_id, member.workspace_id
        )
        return sessions_cleared
