"""Repository protocols and the shared SQLAlchemy plumbing behind them.

There is one protocol per aggregate root. Services receive the repositories
they need through their constructors.
"""
import logging
from datetime import date
from typing import Any, Optional, Protocol, Sequence, TypeVar

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .. import models
from ..filters import Filters, Metadata, calculate_metadata
from .errors import DuplicateKey, EditConflict

logger = logging.getLogger("issuetracker-core.repositories")

UNIQUE_VIOLATION = "23505"

ModelT = TypeVar("ModelT")


def is_unique_violation(error: IntegrityError) -> bool:
    """True when the driver reports a unique constraint violation."""
    orig = error.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code is not None:
        return code == UNIQUE_VIOLATION
    message = str(orig).lower()
    return "unique" in message or "duplicate key" in message


class UserRepository(Protocol):
    async def create(self, user: models.User) -> models.User: ...
    async def get_by_id(self, user_id: int) -> models.User: ...
    async def get_by_email(self, email: str) -> models.User: ...
    async def get_all(self, name: str, email: str, role: str, filters: Filters) -> tuple[list[models.User], Metadata]: ...
    async def update(self, user: models.User) -> models.User: ...
    async def delete(self, user_id: int) -> None: ...


class ProjectRepository(Protocol):
    async def create(self, project: models.Project) -> models.Project: ...
    async def get_by_id(self, project_id: int) -> models.Project: ...
    async def get_all(
        self,
        name: str,
        assigned_to: Optional[int],
        start_date: Optional[date],
        target_end_date: Optional[date],
        actual_end_date: Optional[date],
        created_by: str,
        filters: Filters,
    ) -> tuple[list[models.Project], Metadata]: ...
    async def get_all_for_user(self, user_id: int, filters: Filters) -> tuple[list[models.Project], Metadata]: ...
    async def update(self, project: models.Project) -> models.Project: ...
    async def delete(self, project_id: int) -> None: ...
    async def add_member(self, project_id: int, user_id: int) -> None: ...
    async def get_member(self, project_id: int, user_id: int) -> models.User: ...
    async def get_members(self, project_id: int, role: str, filters: Filters) -> tuple[list[models.User], Metadata]: ...


class IssueRepository(Protocol):
    async def create(self, issue: models.Issue) -> models.Issue: ...
    async def get_by_id(self, issue_id: int) -> models.Issue: ...
    async def get_all(
        self,
        title: str,
        reported_date: Optional[date],
        project_id: Optional[int],
        assigned_to: Optional[int],
        status: str,
        priority: str,
        filters: Filters,
    ) -> tuple[list[models.Issue], Metadata]: ...
    async def update(self, issue: models.Issue) -> models.Issue: ...
    async def delete(self, issue_id: int) -> None: ...


class TokenRepository(Protocol):
    async def create(self, token: models.Token) -> None: ...
    async def get_user_for_token(self, scope: str, token_hash: bytes) -> models.User: ...
    async def delete_all_for_user(self, scope: str, user_id: int) -> None: ...


class SqlRepository:
    """Common plumbing for SQLAlchemy backed repositories."""

    model: Any = None
    # Mutable columns written by a versioned update
    update_fields: Sequence[str] = ()
    # Constraint name reported on a unique violation
    unique_constraint: str = ""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _insert(self, entity: ModelT) -> ModelT:
        async with self.session_factory() as session:
            session.add(entity)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                if is_unique_violation(e):
                    raise DuplicateKey(self.unique_constraint) from e
                raise
            await session.refresh(entity)
        return entity

    async def _versioned_update(self, entity: ModelT) -> ModelT:
        """
        Write entity's mutable fields only if its version is still current.

        The version check, the write and the increment happen in one UPDATE.
        On success the entity's version and modified_on are refreshed.

        Raises:
            EditConflict: If the stored version differs or the row is gone
            DuplicateKey: If the write violates a uniqueness constraint
        """
        model = self.model
        values = {field: getattr(entity, field) for field in self.update_fields}
        values["modified_on"] = models.utcnow()
        values["version"] = model.version + 1

        stmt = (
            update(model)
            .where(model.id == entity.id, model.version == entity.version)
            .values(**values)
            .returning(model.modified_on, model.version)
            .execution_options(synchronize_session=False)
        )

        async with self.session_factory() as session:
            try:
                row = (await session.execute(stmt)).first()
            except IntegrityError as e:
                await session.rollback()
                if is_unique_violation(e):
                    raise DuplicateKey(self.unique_constraint) from e
                raise
            if row is None:
                await session.rollback()
                logger.info(f"Edit conflict on {model.__tablename__} id={entity.id} version={entity.version}")
                raise EditConflict()
            await session.commit()

        entity.modified_on, entity.version = row
        return entity

    async def _paginate(self, stmt: Select, sort_model: Any, filters: Filters) -> tuple[list, Metadata]:
        """
        Run a listing with total count, safelisted ordering, limit and offset.

        The total comes from a window count so one round trip returns both the
        page and the number of matching rows.
        """
        column = getattr(sort_model, filters.sort_column)
        ordering = column.desc() if filters.sort_direction == "DESC" else column.asc()
        stmt = (
            stmt.add_columns(func.count().over().label("total_records"))
            .order_by(ordering, sort_model.id.asc())
            .limit(filters.limit)
            .offset(filters.offset)
        )

        async with self.session_factory() as session:
            rows = (await session.execute(stmt)).all()

        total = rows[0].total_records if rows else 0
        return [row[0] for row in rows], calculate_metadata(total, filters.page, filters.page_size)


def contains_ci(column, value: str):
    """Case-insensitive substring match with LIKE wildcards escaped."""
    return func.lower(column).contains(value.lower(), autoescape=True)
