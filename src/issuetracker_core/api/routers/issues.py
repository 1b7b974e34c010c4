"""Issue endpoints."""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from ... import models, schemas
from ...filters import Filters
from ...services import Services
from ..dependencies import authorized_user, get_services

logger = logging.getLogger("issuetracker-core.api.issues")

router = APIRouter(tags=["issues"])


@router.post("", response_model=schemas.IssueEnvelope, status_code=201)
async def create_issue(
    body: schemas.IssueCreate,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    """
    Report an issue. The caller becomes its reporter.

    - **assigned_to**: Optional id of a project team member with the member role
    - **priority**: low (default), medium or high
    """
    issue = await services.issues.create_issue(
        title=body.title,
        description=body.description,
        project_id=body.project_id,
        target_resolution_date=body.target_resolution_date,
        actor=actor,
        reported_date=body.reported_date,
        assigned_to=body.assigned_to,
        priority=body.priority.value if body.priority else None,
    )
    return {"issue": issue}


@router.get("", response_model=schemas.IssueListResponse)
async def list_issues(
    title: str = Query("", description="Substring of the issue title"),
    reported_date: Optional[date] = Query(None),
    project_id: Optional[int] = Query(None),
    assigned_to: Optional[int] = Query(None),
    status: str = Query(""),
    priority: str = Query(""),
    page: int = Query(1, description="Page number"),
    page_size: int = Query(20, description="Items per page"),
    sort: str = Query("id", description="Sort key, '-' prefix for descending"),
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    issues, metadata = await services.issues.list_issues(
        Filters(page=page, page_size=page_size, sort=sort),
        title=title,
        reported_date=reported_date,
        project_id=project_id,
        assigned_to=assigned_to,
        status=status,
        priority=priority,
    )
    return {"issues": issues, "metadata": metadata}


@router.get("/{issue_id}", response_model=schemas.IssueEnvelope)
async def get_issue(
    issue_id: int,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    return {"issue": await services.issues.get_issue(issue_id)}


@router.patch("/{issue_id}", response_model=schemas.IssueEnvelope)
async def update_issue(
    issue_id: int,
    body: schemas.IssueUpdate,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    """Partially update an issue. Supplying actual_resolution_date closes it."""
    issue = await services.issues.update_issue(
        issue_id,
        actor,
        title=body.title,
        description=body.description,
        assigned_to=body.assigned_to,
        priority=body.priority.value if body.priority else None,
        target_resolution_date=body.target_resolution_date,
        progress=body.progress,
        actual_resolution_date=body.actual_resolution_date,
        resolution_summary=body.resolution_summary,
    )
    return {"issue": issue}


@router.delete("/{issue_id}", status_code=204)
async def delete_issue(
    issue_id: int,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    await services.issues.delete_issue(issue_id)
    return Response(status_code=204)
