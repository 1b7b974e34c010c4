"""Project and project membership persistence."""
from datetime import date
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from .. import models
from ..filters import Filters, Metadata
from .base import SqlRepository, contains_ci, is_unique_violation
from .errors import DuplicateKey, NotFound


class SqlProjectRepository(SqlRepository):
    """ProjectRepository backed by SQLAlchemy."""

    model = models.Project
    update_fields = (
        "name",
        "description",
        "assigned_to",
        "start_date",
        "target_end_date",
        "actual_end_date",
        "modified_by",
    )
    unique_constraint = "projects_name_key"

    async def create(self, project: models.Project) -> models.Project:
        return await self._insert(project)

    async def get_by_id(self, project_id: int) -> models.Project:
        if project_id is None or project_id < 1:
            raise NotFound()
        async with self.session_factory() as session:
            project = await session.get(models.Project, project_id)
        if project is None:
            raise NotFound()
        return project

    async def get_all(
        self,
        name: str,
        assigned_to: Optional[int],
        start_date: Optional[date],
        target_end_date: Optional[date],
        actual_end_date: Optional[date],
        created_by: str,
        filters: Filters,
    ) -> tuple[list[models.Project], Metadata]:
        p = models.Project
        conditions = []
        if name:
            conditions.append(contains_ci(p.name, name))
        if assigned_to:
            conditions.append(p.assigned_to == assigned_to)
        if start_date:
            conditions.append(p.start_date == start_date)
        if target_end_date:
            conditions.append(p.target_end_date == target_end_date)
        if actual_end_date:
            conditions.append(p.actual_end_date == actual_end_date)
        if created_by:
            conditions.append(contains_ci(p.created_by, created_by))
        return await self._paginate(select(p).where(*conditions), p, filters)

    async def get_all_for_user(self, user_id: int, filters: Filters) -> tuple[list[models.Project], Metadata]:
        stmt = (
            select(models.Project)
            .join(models.ProjectMember, models.ProjectMember.project_id == models.Project.id)
            .where(models.ProjectMember.user_id == user_id)
        )
        return await self._paginate(stmt, models.Project, filters)

    async def update(self, project: models.Project) -> models.Project:
        return await self._versioned_update(project)

    async def delete(self, project_id: Optional[int]) -> None:
        if project_id is None or project_id < 1:
            raise NotFound()
        async with self.session_factory() as session:
            result = await session.execute(delete(models.Project).where(models.Project.id == project_id))
            if result.rowcount == 0:
                raise NotFound()
            await session.commit()

    async def add_member(self, project_id: int, user_id: int) -> None:
        """
        Record user_id as a member of project_id.

        Raises:
            DuplicateKey: If the user is already a member
        """
        async with self.session_factory() as session:
            session.add(models.ProjectMember(project_id=project_id, user_id=user_id))
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                if is_unique_violation(e):
                    raise DuplicateKey("projects_users_pkey") from e
                raise

    async def get_member(self, project_id: int, user_id: int) -> models.User:
        """
        Fetch a user through their membership of a project.

        Raises:
            NotFound: If the user is not a member of the project
        """
        stmt = (
            select(models.User)
            .join(models.ProjectMember, models.ProjectMember.user_id == models.User.id)
            .where(models.ProjectMember.project_id == project_id, models.User.id == user_id)
        )
        async with self.session_factory() as session:
            user = (await session.execute(stmt)).scalar_one_or_none()
        if user is None:
            raise NotFound()
        return user

    async def get_members(self, project_id: int, role: str, filters: Filters) -> tuple[list[models.User], Metadata]:
        stmt = (
            select(models.User)
            .join(models.ProjectMember, models.ProjectMember.user_id == models.User.id)
            .where(models.ProjectMember.project_id == project_id)
        )
        if role:
            stmt = stmt.where(models.User.role == role)
        return await self._paginate(stmt, models.User, filters)
