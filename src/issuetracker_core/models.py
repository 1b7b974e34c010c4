"""SQLAlchemy database models."""
from datetime import date, datetime, timezone
import enum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today() -> date:
    return utcnow().date()


class UserRole(str, enum.Enum):
    """User role enum, ordered from most to least privileged."""

    ADMIN = "admin"
    MANAGER = "manager"
    LEAD = "lead"
    MEMBER = "member"


# Roles allowed to (re)assign projects to leads
ELEVATED_ROLES = frozenset({UserRole.ADMIN.value, UserRole.MANAGER.value})


class IssueStatus(str, enum.Enum):
    """Issue status enum."""

    OPEN = "open"
    CLOSED = "closed"


class IssuePriority(str, enum.Enum):
    """Issue priority enum."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TokenScope(str, enum.Enum):
    """What a token may be redeemed for."""

    ACTIVATION = "activation"


class User(Base):
    """A person who can sign in and be assigned work."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    email = Column(String(320), nullable=False)
    password_hash = Column(LargeBinary, nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.MEMBER.value)
    activated = Column(Boolean, nullable=False, default=False)
    created_on = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_by = Column(Text, nullable=False, default="")
    modified_on = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    modified_by = Column(Text, nullable=False, default="")
    version = Column(Integer, nullable=False, default=1)

    memberships = relationship(
        "ProjectMember", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        # Emails are unique regardless of case
        Index("ix_users_email_lower", func.lower(email), unique=True),
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


class Project(Base):
    """A body of work led by a single lead."""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    start_date = Column(Date, nullable=False)
    target_end_date = Column(Date, nullable=False)
    actual_end_date = Column(Date, nullable=True)
    created_on = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_by = Column(Text, nullable=False, default="", index=True)
    modified_on = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    modified_by = Column(Text, nullable=False, default="")
    version = Column(Integer, nullable=False, default=1)

    members = relationship(
        "ProjectMember", back_populates="project", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        UniqueConstraint("name", name="projects_name_key"),
    )

    def __repr__(self):
        return f"<Project(id={self.id}, name='{self.name}')>"


class ProjectMember(Base):
    """Membership of a user in a project (projects_users)."""

    __tablename__ = "projects_users"

    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True)
    assigned_on = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    project = relationship("Project", back_populates="members")
    user = relationship("User", back_populates="memberships")

    def __repr__(self):
        return f"<ProjectMember(project_id={self.project_id}, user_id={self.user_id})>"


class Issue(Base):
    """A unit of reported work within a project."""

    __tablename__ = "issues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    reporter_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reported_date = Column(Date, nullable=False, default=today, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=IssueStatus.OPEN.value, index=True)
    priority = Column(String(20), nullable=False, default=IssuePriority.LOW.value, index=True)
    target_resolution_date = Column(Date, nullable=False)
    progress = Column(Text, nullable=False, default="")
    actual_resolution_date = Column(Date, nullable=True)
    resolution_summary = Column(Text, nullable=False, default="")
    created_on = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_by = Column(Text, nullable=False, default="")
    modified_on = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    modified_by = Column(Text, nullable=False, default="")
    version = Column(Integer, nullable=False, default=1)

    def __repr__(self):
        return f"<Issue(id={self.id}, title='{self.title}', status='{self.status}')>"


class Token(Base):
    """Hashed single-purpose token. The plaintext is never stored."""

    __tablename__ = "tokens"

    hash = Column(LargeBinary, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expiry = Column(DateTime(timezone=True), nullable=False)
    scope = Column(String(30), nullable=False)

    def __repr__(self):
        return f"<Token(user_id={self.user_id}, scope='{self.scope}')>"
