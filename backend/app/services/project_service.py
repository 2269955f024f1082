"""Project service."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.member import Member, MemberRole
from app.models.project import Project, Task
from app.services.authorization import PRIVILEGED_ROLES
from app.services.member_service import MemberService


logger = logging.getLogger(__name__)

PROJECT_LIST_LIMIT = 50
UPDATABLE_FIELDS = ("name", "image_url", "post_date", "tentative_end_date", "assignees")


class ProjectService:
    """Service for managing projects."""

    def __init__(self, session: AsyncSession):
        """
        Initialize project service.

        Args:
            session: Database session
        """
        self.session = session

    async def get_project(self, project_id: int) -> Optional[Project]:
        return await self.session.get(Project, project_id)

    async def get_projects(self, project_ids: List[int]) -> List[Project]:
        result = await self.session.execute(
            select(Project).where(Project.id.in_(project_ids))
        )
        return list(result.scalars().all())

    async def create_project(
        self,
        workspace_id: int,
        name: str,
        post_date: datetime,
        tentative_end_date: datetime,
        image_url: Optional[str] = None,
        assignees: Optional[List[int]] = None,
    ) -> Project:
        """
        Create a project in a workspace.

        Raises:
            ValidationError: If an assignee is not a non-client member of the workspace
        """
        if assignees:
            await MemberService(self.session).ensure_assignable(workspace_id, assignees)

        project = Project(
            workspace_id=workspace_id,
            name=name.strip(),
            post_date=post_date,
            tentative_end_date=tentative_end_date,
            image_url=image_url,
            assignees=assignees or [],
        )
        self.session.add(project)
        await self.session.commit()
        await self.session.refresh(project)

        logger.info("Created project %s in workspace %s", project.id, workspace_id)
        return project

    async def list_visible_projects(self, member: Member) -> List[Project]:
        """
        List the projects of a workspace that a member may see.

        - CLIENT: only the scoped project
        - Privileged roles: every project, newest first
        - Others: projects they are assigned to, directly or through a task
        """
        role = member.member_role

        if role is MemberRole.CLIENT:
            if member.project_id is None:
                return []
            project = await self.get_project(member.project_id)
            if project is None or project.workspace_id != member.workspace_id:
                return []
            return [project]

        result = await self.session.execute(
            select(Project)
            .where(Project.workspace_id == member.workspace_id)
            .order_by(desc(Project.created_at), desc(Project.id))
            .limit(PROJECT_LIST_LIMIT)
        )
        projects = list(result.scalars().all())

        if role in PRIVILEGED_ROLES:
            return projects

        task_result = await self.session.execute(
            select(Task.project_id)
            .where(Task.assignee_id == member.user_id)
            .distinct()
        )
        task_project_ids = set(task_result.scalars().all())

        return [
            p for p in projects
            if p.id in task_project_ids or member.user_id in (p.assignees or [])
        ]

    async def update_project(self, project: Project, changes: Dict[str, Any]) -> Project:
        """Apply non-null changes to a project."""
        if changes.get("assignees"):
            await MemberService(self.session).ensure_assignable(project.workspace_id, changes["assignees"])

        for field in UPDATABLE_FIELDS:
            value = changes.get(field)
            if value is not None:
                setattr(project, field, value)
        await self.session.commit()
        await self.session.refresh(project)
        return project

    async def delete_projects(self, project_ids: List[int]) -> int:
        """Delete projects together with their tasks. Returns the number of projects removed."""
        await self.session.execute(delete(Task).where(Task.project_id.in_(project_ids)))
        result = await self.session.execute(delete(Project).where(Project.id.in_(project_ids)))
        await self.session.commit()

        logger.info("Deleted %d project(s): %s", result.rowcount, project_ids)
        return result.rowcount
