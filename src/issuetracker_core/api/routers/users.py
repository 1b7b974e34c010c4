"""User endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from ... import models, schemas
from ...filters import Filters
from ...services import Services
from ..dependencies import authorized_user, get_optional_user, get_services

logger = logging.getLogger("issuetracker-core.api.users")

router = APIRouter(tags=["users"])


@router.post("", response_model=schemas.UserEnvelope, status_code=202)
async def register_user(
    body: schemas.UserCreate,
    services: Services = Depends(get_services),
    actor: Optional[models.User] = Depends(get_optional_user),
):
    """
    Register a user. The account stays inactive until its activation token is redeemed.

    - **name**, **email**, **password**: required
    - **role**: optional; anything other than member needs an admin credential
    """
    user = await services.users.create_user(
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role.value if body.role else None,
        actor=actor,
    )
    return {"user": user}


@router.put("/activated", response_model=schemas.UserEnvelope)
async def activate_user(
    body: schemas.ActivationRequest,
    services: Services = Depends(get_services),
):
    """Redeem an activation token."""
    user = await services.users.activate_user(body.token)
    return {"user": user}


@router.get("", response_model=schemas.UserListResponse)
async def list_users(
    name: str = Query("", description="Substring of the user's name"),
    email: str = Query("", description="Exact email address"),
    role: str = Query("", description="Filter by role"),
    page: int = Query(1, description="Page number"),
    page_size: int = Query(20, description="Items per page"),
    sort: str = Query("id", description="Sort key, '-' prefix for descending"),
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    users, metadata = await services.users.list_users(
        Filters(page=page, page_size=page_size, sort=sort), name=name, email=email, role=role
    )
    return {"users": users, "metadata": metadata}


@router.get("/{user_id}", response_model=schemas.UserEnvelope)
async def get_user(
    user_id: int,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    return {"user": await services.users.get_user(user_id)}


@router.get("/{user_id}/projects", response_model=schemas.ProjectListResponse)
async def list_user_projects(
    user_id: int,
    page: int = Query(1),
    page_size: int = Query(20),
    sort: str = Query("id"),
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    """Projects the user is a team member of."""
    projects, metadata = await services.projects.list_projects_for_user(
        user_id, Filters(page=page, page_size=page_size, sort=sort)
    )
    return {"projects": projects, "metadata": metadata}


@router.patch("/{user_id}", response_model=schemas.UserEnvelope)
async def update_user(
    user_id: int,
    body: schemas.UserUpdate,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    user = await services.users.update_user(
        user_id,
        actor,
        name=body.name,
        email=body.email,
        role=body.role.value if body.role else None,
    )
    return {"user": user}


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: int,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    await services.users.delete_user(user_id)
    return Response(status_code=204)
