"""Project API routes."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, permissions
from app.models.user import User
from app.schemas.project import ProjectBulkDelete, ProjectCreate, ProjectResponse, ProjectUpdate
from app.services.authorization import Action
from app.services.project_service import ProjectService
from app.api.exceptions import bad_request, not_found
from app.api.utils.dependencies import get_project_service
from app.api.utils.response_builders import success_response
from app.utils.dates import as_utc


router = APIRouter(prefix="/api/projects", tags=["Projects"])


@router.post("")
async def create_project(
    data: ProjectCreate,
    current_user: User = Depends(get_current_user),
    project_service: ProjectService = Depends(get_project_service),
    db: AsyncSession = Depends(get_db)
):
    """Create a project (privileged roles only)."""
    actor = await permissions.require_member(db, current_user, data.workspace_id)
    permissions.check(actor, Action.PROJECT_CREATE, current_user)

    project = await project_service.create_project(
        workspace_id=data.workspace_id,
        name=data.name,
        post_date=data.post_date,
        tentative_end_date=data.tentative_end_date,
        image_url=data.image_url,
        assignees=data.assignees
    )
    return success_response(ProjectResponse.model_validate(project))


@router.get("")
async def list_projects(
    workspace_id: int = Query(...),
    current_user: User = Depends(get_current_user),
    project_service: ProjectService = Depends(get_project_service),
    db: AsyncSession = Depends(get_db)
):
    """
    List the projects of a workspace visible to the caller.

    Clients only ever see the project they are scoped to.
    """
    actor = await permissions.require_member(db, current_user, workspace_id)
    permissions.check(actor, Action.PROJECT_VIEW, current_user)

    projects = await project_service.list_visible_projects(actor)
    documents = [ProjectResponse.model_validate(p) for p in projects]
    return success_response({"documents": documents, "total": len(documents)})


@router.get("/{project_id}")
async def get_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    project_service: ProjectService = Depends(get_project_service),
    db: AsyncSession = Depends(get_db)
):
    """Get a single project."""
    project = await project_service.get_project(project_id)
    if not project:
        raise not_found("Project", project_id)

    actor = await permissions.require_member(db, current_user, project.workspace_id)
    permissions.check(actor, Action.PROJECT_VIEW, current_user, target_project_id=project.id)

    return success_response(ProjectResponse.model_validate(project))


@router.patch("/{project_id}")
async def update_project(
    project_id: int,
    data: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    project_service: ProjectService = Depends(get_project_service),
    db: AsyncSession = Depends(get_db)
):
    """Update a project (privileged roles only)."""
    project = await project_service.get_project(project_id)
    if not project:
        raise not_found("Project", project_id)

    actor = await permissions.require_member(db, current_user, project.workspace_id)
    permissions.check(actor, Action.PROJECT_UPDATE, current_user, target_project_id=project.id)

    changes = data.model_dump(exclude_unset=True)
    start = as_utc(changes.get("post_date") or project.post_date)
    end = as_utc(changes.get("tentative_end_date") or project.tentative_end_date)
    if start and end and ("post_date" in changes or "tentative_end_date" in changes):
        if end <= start:
            raise bad_request("End date must be after start date")

    project = await project_service.update_project(project, changes)
    return success_response(ProjectResponse.model_validate(project))


@router.delete("/{project_id}")
async def delete_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    project_service: ProjectService = Depends(get_project_service),
    db: AsyncSession = Depends(get_db)
):
    """Delete a project and its tasks (privileged roles only)."""
    project = await project_service.get_project(project_id)
    if not project:
        raise not_found("Project", project_id)

    actor = await permissions.require_member(db, current_user, project.workspace_id)
    permissions.check(actor, Action.PROJECT_DELETE, current_user, target_project_id=project.id)

    await project_service.delete_projects([project.id])
    return success_response({"id": project_id})


@router.post("/bulk-delete")
async def bulk_delete_projects(
    data: ProjectBulkDelete,
    current_user: User = Depends(get_current_user),
    project_service: ProjectService = Depends(get_project_service),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete several projects at once.

    Every project must exist and the caller must be allowed to delete
    projects in each project's workspace; otherwise nothing is deleted.
    """
    project_ids = list(dict.fromkeys(data.project_ids))
    projects = await project_service.get_projects(project_ids)
    if len(projects) != len(project_ids):
        raise not_found("Some projects")

    for workspace_id in {p.workspace_id for p in projects}:
        actor = await permissions.require_member(db, current_user, workspace_id)
        permissions.check(actor, Action.PROJECT_DELETE, current_user)

    deleted = await project_service.delete_projects(project_ids)
    return success_response({"deleted_count": deleted, "project_ids": project_ids})
