"""Persistence layer: one repository per aggregate root."""
from .base import IssueRepository, ProjectRepository, TokenRepository, UserRepository
from .errors import DuplicateKey, EditConflict, NotFound, RepositoryError
from .issues import SqlIssueRepository
from .projects import SqlProjectRepository
from .reports import ReportRepository, SqlReportRepository
from .tokens import SqlTokenRepository
from .users import SqlUserRepository

__all__ = [
    "DuplicateKey",
    "EditConflict",
    "IssueRepository",
    "NotFound",
    "ProjectRepository",
    "ReportRepository",
    "RepositoryError",
    "SqlIssueRepository",
    "SqlProjectRepository",
    "SqlReportRepository",
    "SqlTokenRepository",
    "SqlUserRepository",
    "TokenRepository",
    "UserRepository",
]
