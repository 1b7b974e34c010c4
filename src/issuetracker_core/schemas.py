"""Pydantic schemas for request/response validation."""
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .filters import Metadata
from .models import IssuePriority, IssueStatus, UserRole


# User Schemas

class UserCreate(BaseModel):
    """Registration payload. Field rules are enforced by the user service."""

    name: str = ""
    email: str = ""
    password: str = ""
    role: Optional[UserRole] = None


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None


class UserResponse(BaseModel):
    """User as returned to clients; the password hash is never exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    activated: bool
    created_on: datetime
    created_by: str
    modified_on: datetime
    modified_by: str


class UserEnvelope(BaseModel):
    user: UserResponse


class UserListResponse(BaseModel):
    users: list[UserResponse]
    metadata: Metadata


class ActivationRequest(BaseModel):
    token: str = ""


# Token Schemas

class AuthenticationRequest(BaseModel):
    email: str = ""
    password: str = ""


class AuthenticationResponse(BaseModel):
    authentication_token: str


class ActivationTokenRequest(BaseModel):
    email: str = ""


class MessageResponse(BaseModel):
    message: str


# Project Schemas

class ProjectCreate(BaseModel):
    name: str = ""
    description: str = ""
    assigned_to: Optional[int] = None
    start_date: Optional[date] = None
    target_end_date: Optional[date] = None


class ProjectUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    name: Optional[str] = None
    description: Optional[str] = None
    assigned_to: Optional[int] = None
    start_date: Optional[date] = None
    target_end_date: Optional[date] = None
    actual_end_date: Optional[date] = None


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    assigned_to: Optional[int] = None
    start_date: date
    target_end_date: date
    actual_end_date: Optional[date] = None
    created_on: datetime
    created_by: str
    modified_on: datetime
    modified_by: str
    version: int


class ProjectEnvelope(BaseModel):
    project: ProjectResponse


class ProjectListResponse(BaseModel):
    projects: list[ProjectResponse]
    metadata: Metadata


class ProjectMemberCreate(BaseModel):
    user_id: int = Field(..., ge=1)


# Issue Schemas

class IssueCreate(BaseModel):
    title: str = ""
    description: str = ""
    reported_date: Optional[date] = None
    project_id: int = Field(..., ge=1)
    assigned_to: Optional[int] = None
    priority: Optional[IssuePriority] = None
    target_resolution_date: Optional[date] = None


class IssueUpdate(BaseModel):
    """Partial update; supplying actual_resolution_date closes the issue."""

    title: Optional[str] = None
    description: Optional[str] = None
    assigned_to: Optional[int] = None
    priority: Optional[IssuePriority] = None
    target_resolution_date: Optional[date] = None
    progress: Optional[str] = None
    actual_resolution_date: Optional[date] = None
    resolution_summary: Optional[str] = None


class IssueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    reporter_id: int
    reported_date: date
    project_id: int
    assigned_to: Optional[int] = None
    status: IssueStatus
    priority: IssuePriority
    target_resolution_date: date
    progress: str = ""
    actual_resolution_date: Optional[date] = None
    resolution_summary: str = ""
    created_on: datetime
    created_by: str
    modified_on: datetime
    modified_by: str
    version: int


class IssueEnvelope(BaseModel):
    issue: IssueResponse


class IssueListResponse(BaseModel):
    issues: list[IssueResponse]
    metadata: Metadata
