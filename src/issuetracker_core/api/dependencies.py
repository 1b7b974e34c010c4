"""Request-scoped dependencies: services, the authenticated actor and permissions."""
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .. import models
from ..config import Settings
from ..errors import DomainError, ErrorKind, not_permitted
from ..permissions import PermissionTable, action_from_method
from ..services import Services
from ..tokens import verify_access_token

logger = logging.getLogger("issuetracker-core.api.dependencies")

bearer_scheme = HTTPBearer(auto_error=False)


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_permissions(request: Request) -> PermissionTable:
    return request.app.state.permissions


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def resource_from_path(path: str, prefix: str = "v1") -> str:
    """First path segment after the API version prefix, e.g. "/v1/projects/3" -> "projects"."""
    parts = [part for part in path.strip("/").split("/") if part]
    if len(parts) < 2 or parts[0] != prefix:
        return ""
    return parts[1]


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    services: Services = Depends(get_services),
    settings: Settings = Depends(get_app_settings),
) -> Optional[models.User]:
    """
    Resolve the bearer credential to a user, or None when no credential is sent.

    Raises:
        DomainError: INVALID_AUTHENTICATION for a bad credential or unknown subject
    """
    if credentials is None:
        return None
    if credentials.scheme.lower() != "bearer":
        raise DomainError(ErrorKind.INVALID_AUTHENTICATION)

    user_id = verify_access_token(
        credentials.credentials,
        settings.jwt_secret.get_secret_value(),
        settings.jwt_issuer,
    )
    try:
        return await services.users.get_user(user_id)
    except DomainError as e:
        if e.kind == ErrorKind.NOT_FOUND:
            raise DomainError(ErrorKind.INVALID_AUTHENTICATION) from e
        raise


async def get_current_user(user: Optional[models.User] = Depends(get_optional_user)) -> models.User:
    """Require an authenticated, activated user."""
    if user is None:
        raise DomainError(ErrorKind.INVALID_AUTHENTICATION, "you must be authenticated to access this resource")
    if not user.activated:
        raise DomainError(ErrorKind.NOT_PERMITTED, "your user account must be activated to access this resource")
    return user


async def authorized_user(
    request: Request,
    user: models.User = Depends(get_current_user),
    permissions: PermissionTable = Depends(get_permissions),
) -> models.User:
    """
    Require the current user's role to permit this request.

    The action comes from the HTTP method and the resource from the first
    path segment after the version prefix.
    """
    action = action_from_method(request.method)
    resource = resource_from_path(request.url.path)
    if not permissions.has_permission(user.role, action, resource):
        logger.info(f"Denied {user.role} user {user.id}: {action} {resource}")
        raise not_permitted()
    return user
