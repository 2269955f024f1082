"""Task service."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.project import Project, Task, TaskStatus
from app.services.errors import ValidationError
from app.services.member_service import MemberService
from app.services.notification_service import NotificationService


logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("summary", "description", "status", "assignee_id", "due_date")


class TaskService:
    """Service for managing tasks and subtasks."""

    def __init__(self, session: AsyncSession):
        """
        Initialize task service.

        Args:
            session: Database session
        """
        self.session = session
        self.notifications = NotificationService(session)
        self.members = MemberService(session)

    async def get_task(self, task_id: int) -> Optional[Task]:
        return await self.session.get(Task, task_id)

    async def list_tasks(self, project_id: int) -> List[Task]:
        result = await self.session.execute(
            select(Task)
            .where(Task.project_id == project_id)
            .order_by(Task.created_at.desc(), Task.id.desc())
        )
        return list(result.scalars().all())

    async def _notify_assignee(self, task: Task, assigned_by: int) -> None:
        if task.assignee_id is None or task.assignee_id == assigned_by:
            return
        await self.notifications.notify(
            user_id=task.assignee_id,
            title="New task assigned",
            message=f'You have been assigned "{task.summary}"',
            link=f"/projects/{task.project_id}/tasks/{task.id}",
            commit=False,
        )

    async def create_task(
        self,
        project: Project,
        summary: str,
        created_by: int,
        description: Optional[str] = None,
        status: TaskStatus = TaskStatus.TODO,
        assignee_id: Optional[int] = None,
        parent_task_id: Optional[int] = None,
        due_date: Optional[datetime] = None,
    ) -> Task:
        """
        Create a task in a project, notifying the assignee.

        Raises:
            ValidationError: If the parent task belongs to another project or
                the assignee is not a non-client member of the workspace
        """
        if assignee_id is not None:
            await self.members.ensure_assignable(project.workspace_id, [assignee_id])

        if parent_task_id is not None:
            parent = await self.get_task(parent_task_id)
            if parent is None or parent.project_id != project.id:
                raise ValidationError("Parent task must belong to the same project")

        task = Task(
            workspace_id=project.workspace_id,
            project_id=project.id,
            summary=summary.strip(),
            description=description,
            status=status.value,
            assignee_id=assignee_id,
            parent_task_id=parent_task_id,
            due_date=due_date,
        )
        self.session.add(task)
        await self.session.flush()

        await self._notify_assignee(task, created_by)
        await self.session.commit()
        await self.session.refresh(task)

        logger.info("Created task %s in project %s", task.id, project.id)
        return task

    async def update_task(self, task: Task, changes: Dict[str, Any], updated_by: int) -> Task:
        """
        Apply non-null changes; a new assignee is notified.

        Raises:
            ValidationError: If the new assignee is not a non-client member of the workspace
        """
        previous_assignee = task.assignee_id
        new_assignee = changes.get("assignee_id")
        if new_assignee is not None and new_assignee != previous_assignee:
            await self.members.ensure_assignable(task.workspace_id, [new_assignee])

        for field in UPDATABLE_FIELDS:
            value = changes.get(field)
            if value is None:
                continue
            if isinstance(value, TaskStatus):
                value = value.value
            setattr(task, field, value)

        if task.assignee_id != previous_assignee:
            await self._notify_assignee(task, updated_by)

        await self.session.commit()
        await self.session.refresh(task)
        return task

    async def delete_task(self, task: Task) -> int:
        """
        Delete a task and its subtasks.

        Returns:
            Number of subtasks removed alongside the task
        """
        task_id = task.id
        result = await self.session.execute(delete(Task).where(Task.parent_task_id == task_id))
        subtasks = result.rowcount
        await self.session.execute(delete(Task).where(Task.id == task_id))
        await self.session.commit()

        logger.info("Deleted task %s with %d subtask(s)", task_id, subtasks)
        return subtasks
