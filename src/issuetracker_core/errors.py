"""Domain error taxonomy.

Every failure a domain service reports is a DomainError carrying one ErrorKind.
The kinds are fixed; anything a failure needs to say about itself (such as the
field messages of a failed validation) travels on the exception instance.
"""
import enum
from typing import Mapping, Optional


class ErrorKind(str, enum.Enum):
    """Kinds of failure reported by the domain services."""

    NOT_FOUND = "not_found"
    FAILED_VALIDATION = "failed_validation"
    EDIT_CONFLICT = "edit_conflict"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_AUTHENTICATION = "invalid_authentication"
    INVALID_ROLE = "invalid_role"
    NOT_PERMITTED = "not_permitted"
    ALREADY_ACTIVATED = "already_activated"
    CANCELED = "canceled"


DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NOT_FOUND: "the requested resource could not be found",
    ErrorKind.FAILED_VALIDATION: "the request contains invalid data",
    ErrorKind.EDIT_CONFLICT: "unable to update the record due to an edit conflict, please try again",
    ErrorKind.INVALID_CREDENTIALS: "invalid authentication credentials",
    ErrorKind.INVALID_AUTHENTICATION: "invalid or missing authentication token",
    ErrorKind.INVALID_ROLE: "the user does not have the role required for this assignment",
    ErrorKind.NOT_PERMITTED: "your user account doesn't have the necessary permissions to access this resource",
    ErrorKind.ALREADY_ACTIVATED: "user has already been activated",
    ErrorKind.CANCELED: "the request was canceled",
}


class DomainError(Exception):
    """A classified failure of a domain operation."""

    def __init__(
        self,
        kind: ErrorKind,
        message: Optional[str] = None,
        errors: Optional[Mapping[str, str]] = None,
    ):
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        # Sorted by field name so repeated failures render identically
        self.errors: dict[str, str] = dict(sorted((errors or {}).items()))
        super().__init__(self.message)

    def __repr__(self):
        return f"DomainError(kind={self.kind.value!r}, errors={self.errors!r})"


def failed_validation(errors: Mapping[str, str]) -> DomainError:
    """Build a FAILED_VALIDATION error from a field -> message mapping."""
    return DomainError(ErrorKind.FAILED_VALIDATION, errors=errors)


def not_found() -> DomainError:
    return DomainError(ErrorKind.NOT_FOUND)


def edit_conflict() -> DomainError:
    return DomainError(ErrorKind.EDIT_CONFLICT)


def invalid_role() -> DomainError:
    return DomainError(ErrorKind.INVALID_ROLE)


def not_permitted() -> DomainError:
    return DomainError(ErrorKind.NOT_PERMITTED)


def canceled() -> DomainError:
    return DomainError(ErrorKind.CANCELED)
