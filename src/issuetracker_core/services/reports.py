"""Per-project issue reports."""
from pydantic import BaseModel

from ..repositories import ProjectRepository, ReportRepository
from ..repositories.reports import (
    AssigneeCount,
    PriorityCount,
    ReporterCount,
    StatusCount,
    TargetDateCount,
)
from .base import DEFAULT_TIMEOUT, BaseService, translate_store_errors, with_deadline


class IssuesReport(BaseModel):
    """All issue aggregates for one project."""

    project_id: int
    status: list[StatusCount]
    assignees: list[AssigneeCount]
    reporters: list[ReporterCount]
    priority: list[PriorityCount]
    target_dates: list[TargetDateCount]


class ReportService(BaseService):
    """Read-only issue aggregates. Every report requires the project to exist."""

    def __init__(self, reports: ReportRepository, projects: ProjectRepository, timeout: float = DEFAULT_TIMEOUT):
        super().__init__(None, timeout)
        self.reports = reports
        self.projects = projects

    async def _require_project(self, project_id: int) -> None:
        with translate_store_errors():
            await self.projects.get_by_id(project_id)

    @with_deadline
    async def status_report(self, project_id: int) -> list[StatusCount]:
        await self._require_project(project_id)
        return await self.reports.status_counts(project_id)

    @with_deadline
    async def assignee_report(self, project_id: int) -> list[AssigneeCount]:
        await self._require_project(project_id)
        return await self.reports.assignee_counts(project_id)

    @with_deadline
    async def reporter_report(self, project_id: int) -> list[ReporterCount]:
        await self._require_project(project_id)
        return await self.reports.reporter_counts(project_id)

    @with_deadline
    async def priority_report(self, project_id: int) -> list[PriorityCount]:
        await self._require_project(project_id)
        return await self.reports.priority_counts(project_id)

    @with_deadline
    async def target_date_report(self, project_id: int) -> list[TargetDateCount]:
        await self._require_project(project_id)
        return await self.reports.target_date_counts(project_id)

    @with_deadline
    async def issues_report(self, project_id: int) -> IssuesReport:
        await self._require_project(project_id)
        return IssuesReport(
            project_id=project_id,
            status=await self.reports.status_counts(project_id),
            assignees=await self.reports.assignee_counts(project_id),
            reporters=await self.reports.reporter_counts(project_id),
            priority=await self.reports.priority_counts(project_id),
            target_dates=await self.reports.target_date_counts(project_id),
        )
