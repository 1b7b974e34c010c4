"""Project endpoints."""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from ... import models, schemas
from ...filters import Filters
from ...services import Services
from ..dependencies import authorized_user, get_services

logger = logging.getLogger("issuetracker-core.api.projects")

router = APIRouter(tags=["projects"])


@router.post("", response_model=schemas.ProjectEnvelope, status_code=201)
async def create_project(
    body: schemas.ProjectCreate,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    """
    Create a new project.

    - **name**: Unique project name (5-500 bytes)
    - **description**: Description (5-5000 bytes)
    - **assigned_to**: Optional id of a user with the lead role
    - **start_date**, **target_end_date**: Required; the target must come after the start
    """
    project = await services.projects.create_project(
        name=body.name,
        description=body.description,
        start_date=body.start_date,
        target_end_date=body.target_end_date,
        actor=actor,
        assigned_to=body.assigned_to,
    )
    return {"project": project}


@router.get("", response_model=schemas.ProjectListResponse)
async def list_projects(
    name: str = Query("", description="Substring of the project name"),
    assigned_to: Optional[int] = Query(None, description="Filter by lead"),
    start_date: Optional[date] = Query(None),
    target_end_date: Optional[date] = Query(None),
    actual_end_date: Optional[date] = Query(None),
    created_by: str = Query(""),
    page: int = Query(1, description="Page number"),
    page_size: int = Query(20, description="Items per page"),
    sort: str = Query("id", description="Sort key, '-' prefix for descending"),
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    """List projects with optional filtering, sorting and pagination."""
    projects, metadata = await services.projects.list_projects(
        Filters(page=page, page_size=page_size, sort=sort),
        name=name,
        assigned_to=assigned_to,
        start_date=start_date,
        target_end_date=target_end_date,
        actual_end_date=actual_end_date,
        created_by=created_by,
    )
    return {"projects": projects, "metadata": metadata}


@router.get("/{project_id}", response_model=schemas.ProjectEnvelope)
async def get_project(
    project_id: int,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    return {"project": await services.projects.get_project(project_id)}


@router.patch("/{project_id}", response_model=schemas.ProjectEnvelope)
async def update_project(
    project_id: int,
    body: schemas.ProjectUpdate,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    """Partially update a project. Leads may only update projects assigned to them."""
    project = await services.projects.update_project(
        project_id,
        actor,
        name=body.name,
        description=body.description,
        assigned_to=body.assigned_to,
        start_date=body.start_date,
        target_end_date=body.target_end_date,
        actual_end_date=body.actual_end_date,
    )
    return {"project": project}


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: int,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    await services.projects.delete_project(project_id)
    return Response(status_code=204)


@router.post("/{project_id}/users", response_model=schemas.UserEnvelope, status_code=201)
async def add_project_user(
    project_id: int,
    body: schemas.ProjectMemberCreate,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    """Add a member to the project's team."""
    user = await services.projects.assign_user(project_id, body.user_id)
    return {"user": user}


@router.get("/{project_id}/users", response_model=schemas.UserListResponse)
async def list_project_users(
    project_id: int,
    role: str = Query("", description="Filter by role"),
    page: int = Query(1),
    page_size: int = Query(20),
    sort: str = Query("id"),
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    users, metadata = await services.projects.list_project_users(
        project_id, Filters(page=page, page_size=page_size, sort=sort), role=role
    )
    return {"users": users, "metadata": metadata}


@router.get("/{project_id}/users/{user_id}", response_model=schemas.UserEnvelope)
async def get_project_user(
    project_id: int,
    user_id: int,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    return {"user": await services.projects.get_project_user(project_id, user_id)}
