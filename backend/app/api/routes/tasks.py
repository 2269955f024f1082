"""Task API routes."""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, permissions
from app.models.user import User
from app.schemas.task import TaskCreate, TaskResponse, TaskUpdate
from app.services.audit_service import AuditService
from app.services.authorization import Action
from app.services.project_service import ProjectService
from app.services.task_service import TaskService
from app.api.exceptions import not_found
from app.api.utils.dependencies import get_project_service, get_task_service
from app.api.utils.request import extract_client_metadata
from app.api.utils.response_builders import success_response


router = APIRouter(prefix="/api/tasks", tags=["Tasks"])


@router.post("")
async def create_task(
    data: TaskCreate,
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service),
    project_service: ProjectService = Depends(get_project_service),
    db: AsyncSession = Depends(get_db)
):
    """Create a task; the assignee is notified."""
    project = await project_service.get_project(data.project_id)
    if not project:
        raise not_found("Project", data.project_id)

    actor = await permissions.require_member(db, current_user, project.workspace_id)
    permissions.check(actor, Action.TASK_CREATE, current_user, target_project_id=project.id)

    task = await task_service.create_task(
        project=project,
        summary=data.summary,
        created_by=current_user.id,
        description=data.description,
        status=data.status,
        assignee_id=data.assignee_id,
        parent_task_id=data.parent_task_id,
        due_date=data.due_date
    )
    return success_response(TaskResponse.model_validate(task))


@router.get("")
async def list_tasks(
    project_id: int = Query(...),
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service),
    project_service: ProjectService = Depends(get_project_service),
    db: AsyncSession = Depends(get_db)
):
    """List the tasks of a project."""
    project = await project_service.get_project(project_id)
    if not project:
        raise not_found("Project", project_id)

    actor = await permissions.require_member(db, current_user, project.workspace_id)
    permissions.check(actor, Action.TASK_VIEW, current_user, target_project_id=project.id)

    tasks = await task_service.list_tasks(project_id)
    documents = [TaskResponse.model_validate(t) for t in tasks]
    return success_response({"documents": documents, "total": len(documents)})


@router.get("/{task_id}")
async def get_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service),
    db: AsyncSession = Depends(get_db)
):
    """Get a single task."""
    task = await task_service.get_task(task_id)
    if not task:
        raise not_found("Task", task_id)

    actor = await permissions.require_member(db, current_user, task.workspace_id)
    permissions.check(actor, Action.TASK_VIEW, current_user, target_project_id=task.project_id)

    return success_response(TaskResponse.model_validate(task))


@router.patch("/{task_id}")
async def update_task(
    task_id: int,
    data: TaskUpdate,
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service),
    db: AsyncSession = Depends(get_db)
):
    """Update a task; a newly assigned user is notified."""
    task = await task_service.get_task(task_id)
    if not task:
        raise not_found("Task", task_id)

    actor = await permissions.require_member(db, current_user, task.workspace_id)
    permissions.check(actor, Action.TASK_UPDATE, current_user, target_project_id=task.project_id)

    task = await task_service.update_task(task, data.model_dump(exclude_unset=True), current_user.id)
    return success_response(TaskResponse.model_validate(task))


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a task and its subtasks. Admins only.

    The deletion is recorded in the audit log before the rows are removed.
    """
    task = await task_service.get_task(task_id)
    if not task:
        raise not_found("Task", task_id)

    actor = await permissions.require_member(db, current_user, task.workspace_id)
    permissions.check(actor, Action.TASK_DELETE, current_user, target_project_id=task.project_id)

    ip_address, user_agent = extract_client_metadata(request)
    await AuditService(db).log_task_delete(
        user_id=current_user.id,
        task_id=task.id,
        details={
            "summary": task.summary,
            "status": task.status,
            "project_id": task.project_id,
            "workspace_id": task.workspace_id,
        },
        ip_address=ip_address,
        user_agent=user_agent
    )

    subtasks = await task_service.delete_task(task)
    return success_response({"id": task_id, "subtasks_deleted": subtasks})
