"""Aggregate issue counts for a project."""
from typing import Protocol

from pydantic import BaseModel
from sqlalchemy import func, select

from .. import models
from .base import SqlRepository


class StatusCount(BaseModel):
    issue_status: str
    issues_count: int


class PriorityCount(BaseModel):
    issue_priority: str
    issues_count: int


class AssigneeCount(BaseModel):
    assignee_id: int
    assignee_name: str
    issues_assigned: int


class ReporterCount(BaseModel):
    reporter_id: int
    reporter_name: str
    issues_reported: int


class TargetDateCount(BaseModel):
    target_resolution_date: str
    issues_count: int


class ReportRepository(Protocol):
    async def status_counts(self, project_id: int) -> list[StatusCount]: ...
    async def assignee_counts(self, project_id: int) -> list[AssigneeCount]: ...
    async def reporter_counts(self, project_id: int) -> list[ReporterCount]: ...
    async def priority_counts(self, project_id: int) -> list[PriorityCount]: ...
    async def target_date_counts(self, project_id: int) -> list[TargetDateCount]: ...


class SqlReportRepository(SqlRepository):
    """ReportRepository backed by SQLAlchemy."""

    model = models.Issue

    async def _rows(self, stmt) -> list:
        async with self.session_factory() as session:
            return (await session.execute(stmt)).all()

    async def status_counts(self, project_id: int) -> list[StatusCount]:
        i = models.Issue
        stmt = (
            select(i.status, func.count(i.id))
            .where(i.project_id == project_id)
            .group_by(i.status)
            .order_by(i.status)
        )
        return [StatusCount(issue_status=s, issues_count=n) for s, n in await self._rows(stmt)]

    async def priority_counts(self, project_id: int) -> list[PriorityCount]:
        i = models.Issue
        stmt = (
            select(i.priority, func.count(i.id))
            .where(i.project_id == project_id)
            .group_by(i.priority)
            .order_by(i.priority)
        )
        return [PriorityCount(issue_priority=p, issues_count=n) for p, n in await self._rows(stmt)]

    async def assignee_counts(self, project_id: int) -> list[AssigneeCount]:
        i, u = models.Issue, models.User
        stmt = (
            select(u.id, u.name, func.count(i.id))
            .join(i, i.assigned_to == u.id)
            .where(i.project_id == project_id)
            .group_by(u.id, u.name)
            .order_by(u.id)
        )
        return [
            AssigneeCount(assignee_id=uid, assignee_name=name, issues_assigned=n)
            for uid, name, n in await self._rows(stmt)
        ]

    async def reporter_counts(self, project_id: int) -> list[ReporterCount]:
        i, u = models.Issue, models.User
        stmt = (
            select(u.id, u.name, func.count(i.id))
            .join(i, i.reporter_id == u.id)
            .where(i.project_id == project_id)
            .group_by(u.id, u.name)
            .order_by(u.id)
        )
        return [
            ReporterCount(reporter_id=uid, reporter_name=name, issues_reported=n)
            for uid, name, n in await self._rows(stmt)
        ]

    async def target_date_counts(self, project_id: int) -> list[TargetDateCount]:
        i = models.Issue
        stmt = (
            select(i.target_resolution_date, func.count(i.id))
            .where(i.project_id == project_id)
            .group_by(i.target_resolution_date)
            .order_by(i.target_resolution_date)
        )
        return [
            TargetDateCount(target_resolution_date=d.isoformat(), issues_count=n)
            for d, n in await self._rows(stmt)
        ]
