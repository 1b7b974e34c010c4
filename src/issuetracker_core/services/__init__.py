"""Domain services and their assembly."""
from datetime import timedelta
from typing import NamedTuple

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import Settings
from ..notifications import NotificationDispatcher
from ..repositories import (
    SqlIssueRepository,
    SqlProjectRepository,
    SqlReportRepository,
    SqlTokenRepository,
    SqlUserRepository,
)
from .issues import IssueService
from .projects import ProjectService
from .reports import ReportService
from .users import UserService


class Services(NamedTuple):
    users: UserService
    projects: ProjectService
    issues: IssueService
    reports: ReportService


def build_services(
    session_factory: async_sessionmaker[AsyncSession],
    dispatcher: NotificationDispatcher,
    settings: Settings,
) -> Services:
    """Wire repositories into services. The single assembly point for the domain layer."""
    users = SqlUserRepository(session_factory)
    projects = SqlProjectRepository(session_factory)
    issues = SqlIssueRepository(session_factory)
    tokens = SqlTokenRepository(session_factory)
    reports = SqlReportRepository(session_factory)
    timeout = settings.request_timeout

    return Services(
        users=UserService(
            users,
            tokens,
            jwt_secret=settings.jwt_secret.get_secret_value(),
            jwt_issuer=settings.jwt_issuer,
            dispatcher=dispatcher,
            timeout=timeout,
            activation_ttl=timedelta(days=settings.activation_token_ttl_days),
            access_ttl=timedelta(hours=settings.jwt_ttl_hours),
            bcrypt_rounds=settings.bcrypt_rounds,
        ),
        projects=ProjectService(projects, users, dispatcher=dispatcher, timeout=timeout),
        issues=IssueService(issues, projects, dispatcher=dispatcher, timeout=timeout),
        reports=ReportService(reports, projects, timeout=timeout),
    )


__all__ = ["IssueService", "ProjectService", "ReportService", "Services", "UserService", "build_services"]
