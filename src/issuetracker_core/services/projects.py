"""Project domain operations."""
import logging
from datetime import date
from typing import Optional

from .. import models
from ..errors import invalid_role, not_permitted
from ..filters import PROJECT_SORT_SAFELIST, USER_SORT_SAFELIST, Filters, Metadata
from ..models import ELEVATED_ROLES, UserRole
from ..notifications import NotificationDispatcher
from ..repositories import ProjectRepository, UserRepository
from ..validator import Validator, check_after, check_length
from .base import DEFAULT_TIMEOUT, BaseService, translate_store_errors, with_deadline

logger = logging.getLogger("issuetracker-core.services.projects")

DUPLICATE_NAME = "a project with this name already exists"


def validate_project(v: Validator, project: models.Project) -> None:
    check_length(v, project.name, "name", 5, 500)
    check_length(v, project.description, "description", 5, 5000)
    v.check(project.start_date is not None, "start_date", "must be provided")
    v.check(project.target_end_date is not None, "target_end_date", "must be provided")
    check_after(v, project.target_end_date, project.start_date, "target_end_date", "must not be before start date")
    check_after(v, project.actual_end_date, project.start_date, "actual_end_date", "must not be before start date")


class ProjectService(BaseService):
    """Creates, lists, updates and assigns projects."""

    def __init__(
        self,
        projects: ProjectRepository,
        users: UserRepository,
        dispatcher: Optional[NotificationDispatcher] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        super().__init__(dispatcher, timeout)
        self.projects = projects
        self.users = users

    async def _eligible_lead(self, user_id: int) -> models.User:
        """Fetch a prospective project assignee and require the lead role."""
        with translate_store_errors():
            assignee = await self.users.get_by_id(user_id)
        if assignee.role != UserRole.LEAD.value:
            logger.info(f"Rejected project assignment to user {user_id} with role '{assignee.role}'")
            raise invalid_role()
        return assignee

    def _notify_assignment(self, assignee: models.User, project: models.Project) -> None:
        self.notify(
            assignee.email,
            "project_assign",
            {
                "name": assignee.name,
                "projectID": str(project.id),
                "projectName": project.name,
            },
        )

    @with_deadline
    async def create_project(
        self,
        name: str,
        description: str,
        start_date: Optional[date],
        target_end_date: Optional[date],
        actor: models.User,
        assigned_to: Optional[int] = None,
    ) -> models.Project:
        """
        Create a project, optionally assigned to a lead.

        Args:
            name: Unique project name
            description: Project description
            start_date: Start date
            target_end_date: Planned end date, after start_date
            actor: Authenticated user creating the project
            assigned_to: Id of a user with the lead role

        Returns:
            The created project

        Raises:
            DomainError: FAILED_VALIDATION, NOT_FOUND or INVALID_ROLE
        """
        project = models.Project(
            name=name,
            description=description,
            start_date=start_date,
            target_end_date=target_end_date,
            created_by=actor.email,
            modified_by=actor.email,
            version=1,
        )
        v = Validator()
        validate_project(v, project)
        v.raise_if_invalid()

        assignee = None
        if assigned_to is not None:
            assignee = await self._eligible_lead(assigned_to)
            project.assigned_to = assignee.id

        with translate_store_errors("name", DUPLICATE_NAME):
            project = await self.projects.create(project)
        logger.info(f"Created project '{project.name}' (ID: {project.id})")

        if assignee is not None:
            self._notify_assignment(assignee, project)
        return project

    @with_deadline
    async def get_project(self, project_id: int) -> models.Project:
        with translate_store_errors():
            return await self.projects.get_by_id(project_id)

    @with_deadline
    async def list_projects(
        self,
        filters: Filters,
        name: str = "",
        assigned_to: Optional[int] = None,
        start_date: Optional[date] = None,
        target_end_date: Optional[date] = None,
        actual_end_date: Optional[date] = None,
        created_by: str = "",
    ) -> tuple[list[models.Project], Metadata]:
        filters = filters.model_copy(update={"sort_safelist": PROJECT_SORT_SAFELIST})
        v = Validator()
        filters.validate_into(v)
        v.raise_if_invalid()
        return await self.projects.get_all(
            name, assigned_to, start_date, target_end_date, actual_end_date, created_by, filters
        )

    @with_deadline
    async def list_projects_for_user(self, user_id: int, filters: Filters) -> tuple[list[models.Project], Metadata]:
        filters = filters.model_copy(update={"sort_safelist": PROJECT_SORT_SAFELIST})
        v = Validator()
        filters.validate_into(v)
        v.raise_if_invalid()
        with translate_store_errors():
            await self.users.get_by_id(user_id)
        return await self.projects.get_all_for_user(user_id, filters)

    @with_deadline
    async def update_project(
        self,
        project_id: int,
        actor: models.User,
        name: Optional[str] = None,
        description: Optional[str] = None,
        assigned_to: Optional[int] = None,
        start_date: Optional[date] = None,
        target_end_date: Optional[date] = None,
        actual_end_date: Optional[date] = None,
    ) -> models.Project:
        """
        Apply partial changes to a project under optimistic concurrency.

        Leads may only update projects assigned to them. Only admins and
        managers can change the assignee; an assignee supplied by anyone else
        is ignored.

        Raises:
            DomainError: NOT_FOUND, NOT_PERMITTED, INVALID_ROLE,
                FAILED_VALIDATION or EDIT_CONFLICT
        """
        with translate_store_errors():
            project = await self.projects.get_by_id(project_id)

        if actor.role not in ELEVATED_ROLES and project.assigned_to != actor.id:
            logger.info(f"User {actor.id} ({actor.role}) may not update project {project_id}")
            raise not_permitted()

        if name is not None:
            project.name = name
        if description is not None:
            project.description = description
        if start_date is not None:
            project.start_date = start_date
        if target_end_date is not None:
            project.target_end_date = target_end_date
        if actual_end_date is not None:
            project.actual_end_date = actual_end_date
        project.modified_by = actor.email

        v = Validator()
        validate_project(v, project)
        v.raise_if_invalid()

        assignee = None
        if assigned_to is not None and actor.role in ELEVATED_ROLES:
            assignee = await self._eligible_lead(assigned_to)
            project.assigned_to = assignee.id

        with translate_store_errors("name", DUPLICATE_NAME):
            project = await self.projects.update(project)
        logger.info(f"Updated project {project.id} to version {project.version}")

        if assignee is not None:
            self._notify_assignment(assignee, project)
        return project

    @with_deadline
    async def delete_project(self, project_id: int) -> None:
        with translate_store_errors():
            await self.projects.delete(project_id)
        logger.info(f"Deleted project {project_id}")

    @with_deadline
    async def assign_user(self, project_id: int, user_id: int) -> models.User:
        """
        Add a user with the member role to a project's team.

        Raises:
            DomainError: NOT_FOUND, INVALID_ROLE, or FAILED_VALIDATION when the
                user already belongs to the project
        """
        with translate_store_errors():
            await self.projects.get_by_id(project_id)
            user = await self.users.get_by_id(user_id)
        if user.role != UserRole.MEMBER.value:
            raise invalid_role()
        with translate_store_errors("user", "already assigned to project"):
            await self.projects.add_member(project_id, user_id)
        logger.info(f"Added user {user_id} to project {project_id}")
        return user

    @with_deadline
    async def list_project_users(
        self, project_id: int, filters: Filters, role: str = ""
    ) -> tuple[list[models.User], Metadata]:
        filters = filters.model_copy(update={"sort_safelist": USER_SORT_SAFELIST})
        v = Validator()
        filters.validate_into(v)
        v.raise_if_invalid()
        with translate_store_errors():
            await self.projects.get_by_id(project_id)
        return await self.projects.get_members(project_id, role, filters)

    @with_deadline
    async def get_project_user(self, project_id: int, user_id: int) -> models.User:
        with translate_store_errors():
            return await self.projects.get_member(project_id, user_id)
