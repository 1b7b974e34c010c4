"""Shared plumbing for the domain services: deadlines and error translation."""
import asyncio
import functools
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from ..errors import canceled, edit_conflict, failed_validation, not_found
from ..notifications import NotificationDispatcher
from ..repositories.errors import DuplicateKey, EditConflict, NotFound

logger = logging.getLogger("issuetracker-core.services")

DEFAULT_TIMEOUT = 5.0


def with_deadline(func):
    """
    Run a service coroutine under the service's deadline.

    When the deadline expires, the in-flight store call is cancelled and the
    operation fails with a CANCELED DomainError. Cancellation coming from the
    caller (for example a client disconnect) propagates unchanged.
    """

    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            async with asyncio.timeout(self.timeout):
                return await func(self, *args, **kwargs)
        except TimeoutError as e:
            logger.debug(f"{type(self).__name__}.{func.__name__} exceeded its {self.timeout}s deadline")
            raise canceled() from e

    return wrapper


@contextmanager
def translate_store_errors(duplicate_field: Optional[str] = None, duplicate_message: str = "") -> Iterator[None]:
    """
    Map store-level errors onto the domain taxonomy.

    Args:
        duplicate_field: Field named in the FAILED_VALIDATION raised for a DuplicateKey
        duplicate_message: Message for that field

    Raises:
        DomainError: NOT_FOUND, EDIT_CONFLICT or FAILED_VALIDATION
    """
    try:
        yield
    except NotFound as e:
        raise not_found() from e
    except EditConflict as e:
        raise edit_conflict() from e
    except DuplicateKey as e:
        if duplicate_field is None:
            raise
        raise failed_validation({duplicate_field: duplicate_message}) from e


class BaseService:
    """Holds the collaborators every domain service shares."""

    def __init__(self, dispatcher: Optional[NotificationDispatcher] = None, timeout: float = DEFAULT_TIMEOUT):
        self.dispatcher = dispatcher
        self.timeout = timeout

    def notify(self, recipient: str, template: str, data: dict[str, str]) -> None:
        """Schedule a notification without waiting for it."""
        if self.dispatcher is None:
            logger.debug(f"No dispatcher configured; dropping '{template}' for {recipient}")
            return
        self.dispatcher.dispatch(recipient, template, data)
