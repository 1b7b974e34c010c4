"""Issue persistence."""
from datetime import date
from typing import Optional

from sqlalchemy import delete, select

from .. import models
from ..filters import Filters, Metadata
from .base import SqlRepository, contains_ci
from .errors import NotFound


class SqlIssueRepository(SqlRepository):
    """IssueRepository backed by SQLAlchemy."""

    model = models.Issue
    update_fields = (
        "title",
        "description",
        "assigned_to",
        "status",
        "priority",
        "target_resolution_date",
        "progress",
        "actual_resolution_date",
        "resolution_summary",
        "modified_by",
    )

    async def create(self, issue: models.Issue) -> models.Issue:
        return await self._insert(issue)

    async def get_by_id(self, issue_id: int) -> models.Issue:
        if issue_id is None or issue_id < 1:
            raise NotFound()
        async with self.session_factory() as session:
            issue = await session.get(models.Issue, issue_id)
        if issue is None:
            raise NotFound()
        return issue

    async def get_all(
        self,
        title: str,
        reported_date: Optional[date],
        project_id: Optional[int],
        assigned_to: Optional[int],
        status: str,
        priority: str,
        filters: Filters,
    ) -> tuple[list[models.Issue], Metadata]:
        i = models.Issue
        conditions = []
        if title:
            conditions.append(contains_ci(i.title, title))
        if reported_date:
            conditions.append(i.reported_date == reported_date)
        if project_id:
            conditions.append(i.project_id == project_id)
        if assigned_to:
            conditions.append(i.assigned_to == assigned_to)
        if status:
            conditions.append(i.status == status)
        if priority:
            conditions.append(i.priority == priority)
        return await self._paginate(select(i).where(*conditions), i, filters)

    async def update(self, issue: models.Issue) -> models.Issue:
        return await self._versioned_update(issue)

    async def delete(self, issue_id: Optional[int]) -> None:
        if issue_id is None or issue_id < 1:
            raise NotFound()
        async with self.session_factory() as session:
            result = await session.execute(delete(models.Issue).where(models.Issue.id == issue_id))
            if result.rowcount == 0:
                raise NotFound()
            await session.commit()
