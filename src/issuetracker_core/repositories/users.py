"""User persistence."""
from typing import Optional

from sqlalchemy import delete, func, select

from .. import models
from ..filters import Filters, Metadata
from .base import SqlRepository, contains_ci
from .errors import NotFound


class SqlUserRepository(SqlRepository):
    """UserRepository backed by SQLAlchemy."""

    model = models.User
    update_fields = ("name", "email", "password_hash", "role", "activated", "modified_by")
    unique_constraint = "ix_users_email_lower"

    async def create(self, user: models.User) -> models.User:
        return await self._insert(user)

    async def get_by_id(self, user_id: int) -> models.User:
        if user_id is None or user_id < 1:
            raise NotFound()
        async with self.session_factory() as session:
            user = await session.get(models.User, user_id)
        if user is None:
            raise NotFound()
        return user

    async def get_by_email(self, email: str) -> models.User:
        stmt = select(models.User).where(func.lower(models.User.email) == email.lower())
        async with self.session_factory() as session:
            user = (await session.execute(stmt)).scalar_one_or_none()
        if user is None:
            raise NotFound()
        return user

    async def get_all(
        self,
        name: str,
        email: str,
        role: str,
        filters: Filters,
    ) -> tuple[list[models.User], Metadata]:
        conditions = []
        if name:
            conditions.append(contains_ci(models.User.name, name))
        if email:
            conditions.append(func.lower(models.User.email) == email.lower())
        if role:
            conditions.append(models.User.role == role)
        return await self._paginate(select(models.User).where(*conditions), models.User, filters)

    async def update(self, user: models.User) -> models.User:
        return await self._versioned_update(user)

    async def delete(self, user_id: Optional[int]) -> None:
        if user_id is None or user_id < 1:
            raise NotFound()
        async with self.session_factory() as session:
            result = await session.execute(delete(models.User).where(models.User.id == user_id))
            if result.rowcount == 0:
                raise NotFound()
            await session.commit()
