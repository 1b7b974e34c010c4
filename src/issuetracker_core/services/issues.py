"""Issue domain operations."""
import logging
from datetime import date
from typing import Optional

from .. import models
from ..errors import invalid_role, not_permitted
from ..filters import ISSUE_SORT_SAFELIST, Filters, Metadata
from ..models import IssuePriority, UserRole
from ..notifications import NotificationDispatcher
from ..repositories import IssueRepository, ProjectRepository
from ..state_machine import INITIAL_STATUS, status_after_update
from ..validator import Validator, byte_length, check_after, check_length, permitted_value
from .base import DEFAULT_TIMEOUT, BaseService, translate_store_errors, with_deadline

logger = logging.getLogger("issuetracker-core.services.issues")

PRIORITIES = tuple(p.value for p in IssuePriority)


def _check_optional_text(v: Validator, value: Optional[str], key: str) -> None:
    if value:
        v.check(byte_length(value) >= 5, key, "must not be less than 5 bytes long")
        v.check(byte_length(value) <= 1000, key, "must not be more than 1000 bytes long")


def validate_issue(v: Validator, issue: models.Issue) -> None:
    check_length(v, issue.title, "title", 5, 500)
    check_length(v, issue.description, "description", 5, 5000)
    v.check(issue.reported_date is not None, "reported_date", "must be provided")
    v.check(issue.target_resolution_date is not None, "target_resolution_date", "must be provided")
    check_after(
        v, issue.target_resolution_date, issue.reported_date,
        "target_resolution_date", "must not be before reported date",
    )
    v.check(permitted_value(issue.priority, *PRIORITIES), "priority", "must be low, medium or high")
    _check_optional_text(v, issue.progress, "progress")
    _check_optional_text(v, issue.resolution_summary, "resolution_summary")
    check_after(
        v, issue.actual_resolution_date, issue.reported_date,
        "actual_resolution_date", "must not be before reported date",
    )


class IssueService(BaseService):
    """Creates, lists, updates and assigns issues."""

    def __init__(
        self,
        issues: IssueRepository,
        projects: ProjectRepository,
        dispatcher: Optional[NotificationDispatcher] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        super().__init__(dispatcher, timeout)
        self.issues = issues
        self.projects = projects

    async def _eligible_member(self, project_id: int, user_id: int) -> models.User:
        """
        Fetch a prospective issue assignee through the project's team.

        Raises:
            DomainError: NOT_FOUND if the user is not on the project,
                INVALID_ROLE if they do not hold the member role
        """
        with translate_store_errors():
            assignee = await self.projects.get_member(project_id, user_id)
        if assignee.role != UserRole.MEMBER.value:
            logger.info(f"Rejected issue assignment to user {user_id} with role '{assignee.role}'")
            raise invalid_role()
        return assignee

    def _notify_assignment(self, assignee: models.User, issue: models.Issue) -> None:
        self.notify(
            assignee.email,
            "issue_assign",
            {
                "name": assignee.name,
                "issueID": str(issue.id),
                "issueTitle": issue.title,
                "issuePriority": issue.priority,
            },
        )

    @with_deadline
    async def create_issue(
        self,
        title: str,
        description: str,
        project_id: int,
        target_resolution_date: Optional[date],
        actor: models.User,
        reported_date: Optional[date] = None,
        assigned_to: Optional[int] = None,
        priority: Optional[str] = None,
    ) -> models.Issue:
        """
        Report a new issue against a project. The actor becomes the reporter.

        Raises:
            DomainError: FAILED_VALIDATION, NOT_FOUND or INVALID_ROLE
        """
        issue = models.Issue(
            title=title,
            description=description,
            reporter_id=actor.id,
            reported_date=reported_date or models.today(),
            project_id=project_id,
            status=INITIAL_STATUS.value,
            priority=priority or IssuePriority.LOW.value,
            target_resolution_date=target_resolution_date,
            progress="",
            resolution_summary="",
            created_by=actor.email,
            modified_by=actor.email,
            version=1,
        )
        v = Validator()
        validate_issue(v, issue)
        v.raise_if_invalid()

        with translate_store_errors():
            await self.projects.get_by_id(project_id)

        assignee = None
        if assigned_to is not None:
            assignee = await self._eligible_member(project_id, assigned_to)
            issue.assigned_to = assignee.id

        issue = await self.issues.create(issue)
        logger.info(f"Created issue '{issue.title}' (ID: {issue.id}) in project {project_id}")

        if assignee is not None:
            self._notify_assignment(assignee, issue)
        return issue

    @with_deadline
    async def get_issue(self, issue_id: int) -> models.Issue:
        with translate_store_errors():
            return await self.issues.get_by_id(issue_id)

    @with_deadline
    async def list_issues(
        self,
        filters: Filters,
        title: str = "",
        reported_date: Optional[date] = None,
        project_id: Optional[int] = None,
        assigned_to: Optional[int] = None,
        status: str = "",
        priority: str = "",
    ) -> tuple[list[models.Issue], Metadata]:
        filters = filters.model_copy(update={"sort_safelist": ISSUE_SORT_SAFELIST})
        v = Validator()
        filters.validate_into(v)
        v.raise_if_invalid()
        return await self.issues.get_all(title, reported_date, project_id, assigned_to, status, priority, filters)

    @with_deadline
    async def update_issue(
        self,
        issue_id: int,
        actor: models.User,
        title: Optional[str] = None,
        description: Optional[str] = None,
        assigned_to: Optional[int] = None,
        priority: Optional[str] = None,
        target_resolution_date: Optional[date] = None,
        progress: Optional[str] = None,
        actual_resolution_date: Optional[date] = None,
        resolution_summary: Optional[str] = None,
    ) -> models.Issue:
        """
        Apply partial changes to an issue under optimistic concurrency.

        Members may only update issues they reported or are assigned to.
        Supplying an actual resolution date closes the issue.

        Raises:
            DomainError: NOT_FOUND, NOT_PERMITTED, INVALID_ROLE,
                FAILED_VALIDATION or EDIT_CONFLICT
        """
        with translate_store_errors():
            issue = await self.issues.get_by_id(issue_id)

        if actor.role == UserRole.MEMBER.value and actor.id not in (issue.assigned_to, issue.reporter_id):
            logger.info(f"User {actor.id} may not update issue {issue_id}")
            raise not_permitted()

        if title is not None:
            issue.title = title
        if description is not None:
            issue.description = description
        if priority is not None:
            issue.priority = priority
        if target_resolution_date is not None:
            issue.target_resolution_date = target_resolution_date
        if progress is not None:
            issue.progress = progress
        if actual_resolution_date is not None:
            issue.actual_resolution_date = actual_resolution_date
        if resolution_summary is not None:
            issue.resolution_summary = resolution_summary
        issue.status = status_after_update(issue.status, actual_resolution_date is not None).value
        issue.modified_by = actor.email

        v = Validator()
        validate_issue(v, issue)
        v.raise_if_invalid()

        assignee = None
        if assigned_to is not None:
            assignee = await self._eligible_member(issue.project_id, assigned_to)
            issue.assigned_to = assignee.id

        with translate_store_errors():
            issue = await self.issues.update(issue)
        logger.info(f"Updated issue {issue.id} to version {issue.version}")

        if assignee is not None:
            self._notify_assignment(assignee, issue)
        return issue

    @with_deadline
    async def delete_issue(self, issue_id: int) -> None:
        with translate_store_errors():
            await self.issues.delete(issue_id)
        logger.info(f"Deleted issue {issue_id}")
