"""Issue report endpoints."""
from fastapi import APIRouter, Depends

from ... import models
from ...repositories.reports import (
    AssigneeCount,
    PriorityCount,
    ReporterCount,
    StatusCount,
    TargetDateCount,
)
from ...services import Services
from ...services.reports import IssuesReport
from ..dependencies import authorized_user, get_services

router = APIRouter(tags=["reports"])


@router.get("/projects/{project_id}/issues", response_model=IssuesReport)
async def issues_report(
    project_id: int,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    """Every issue aggregate for a project in one response."""
    return await services.reports.issues_report(project_id)


@router.get("/projects/{project_id}/issues/status", response_model=list[StatusCount])
async def issues_status_report(
    project_id: int,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    return await services.reports.status_report(project_id)


@router.get("/projects/{project_id}/issues/assignees", response_model=list[AssigneeCount])
async def issues_assignee_report(
    project_id: int,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    return await services.reports.assignee_report(project_id)


@router.get("/projects/{project_id}/issues/reporters", response_model=list[ReporterCount])
async def issues_reporter_report(
    project_id: int,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    return await services.reports.reporter_report(project_id)


@router.get("/projects/{project_id}/issues/priority", response_model=list[PriorityCount])
async def issues_priority_report(
    project_id: int,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    return await services.reports.priority_report(project_id)


@router.get("/projects/{project_id}/issues/target-dates", response_model=list[TargetDateCount])
async def issues_target_date_report(
    project_id: int,
    services: Services = Depends(get_services),
    actor: models.User = Depends(authorized_user),
):
    return await services.reports.target_date_report(project_id)
