"""Shared fixtures: an in-memory database, recording mail sender and wired services."""
from datetime import date
import itertools

import pytest
import pytest_asyncio
from sqlalchemy.pool import StaticPool

from issuetracker_core import models
from issuetracker_core.config import Settings
from issuetracker_core.database import build_engine, build_session_factory, init_db
from issuetracker_core.notifications import NotificationDispatcher
from issuetracker_core.passwords import hash_password
from issuetracker_core.repositories import (
    SqlIssueRepository,
    SqlProjectRepository,
    SqlTokenRepository,
    SqlUserRepository,
)
from issuetracker_core.services import build_services

PASSWORD = "pa55word1234"
_password_hash = hash_password(PASSWORD, rounds=4)
_sequence = itertools.count(1)


class RecordingSender:
    """Mail sender that records instead of sending."""

    def __init__(self):
        self.sent: list[tuple[str, str, dict]] = []

    def send(self, recipient, template, data):
        self.sent.append((recipient, template, dict(data)))

    def templates(self) -> list[str]:
        return [template for _, template, _ in self.sent]


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite://",
        jwt_secret="test-secret",
        jwt_issuer="issuetracker-test",
        bcrypt_rounds=4,
        mail_retry_delay=0.0,
        limiter_enabled=False,
    )


@pytest_asyncio.fixture
async def engine(settings):
    engine = build_engine(
        settings.database_url,
        settings,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def dispatcher(sender):
    return NotificationDispatcher(sender, max_attempts=3, retry_delay=0.0)


@pytest.fixture
def services(session_factory, dispatcher, settings):
    return build_services(session_factory, dispatcher, settings)


@pytest.fixture
def user_repo(session_factory):
    return SqlUserRepository(session_factory)


@pytest.fixture
def project_repo(session_factory):
    return SqlProjectRepository(session_factory)


@pytest.fixture
def issue_repo(session_factory):
    return SqlIssueRepository(session_factory)


@pytest.fixture
def token_repo(session_factory):
    return SqlTokenRepository(session_factory)


@pytest.fixture
def make_user(user_repo):
    """Insert a user directly, bypassing registration."""

    async def _make_user(role: str = "member", activated: bool = True, name: str = None, email: str = None):
        n = next(_sequence)
        user = models.User(
            name=name or f"{role.title()} User {n}",
            email=email or f"{role}{n}@example.com",
            password_hash=_password_hash,
            role=role,
            activated=activated,
            created_by="fixtures",
            modified_by="fixtures",
            version=1,
        )
        return await user_repo.create(user)

    return _make_user


@pytest.fixture
def make_project(project_repo):
    """Insert a project directly."""

    async def _make_project(name: str = None, assigned_to: int = None):
        n = next(_sequence)
        project = models.Project(
            name=name or f"Project number {n}",
            description="A project used in tests",
            assigned_to=assigned_to,
            start_date=date(2026, 1, 1),
            target_end_date=date(2026, 12, 31),
            created_by="fixtures",
            modified_by="fixtures",
            version=1,
        )
        return await project_repo.create(project)

    return _make_project


@pytest.fixture
def drain(dispatcher):
    """Wait for every scheduled notification to finish."""

    async def _drain():
        await dispatcher.shutdown(timeout=5)

    return _drain
