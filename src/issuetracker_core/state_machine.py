"""Issue status transitions.

Issues are created open. Recording an actual resolution date closes them.
There is no way back to open.
"""
import logging

from .models import IssueStatus

logger = logging.getLogger("issuetracker-core.state_machine")


class StateTransitionError(Exception):
    """Raised when an invalid status transition is attempted."""

    def __init__(self, message: str, current_status: IssueStatus, requested_status: IssueStatus):
        super().__init__(message)
        self.current_status = current_status
        self.requested_status = requested_status


# Maps current status -> allowed next statuses
TRANSITION_MATRIX: dict[IssueStatus, list[IssueStatus]] = {
    IssueStatus.OPEN: [
        IssueStatus.OPEN,
        IssueStatus.CLOSED,     # Resolved
    ],
    IssueStatus.CLOSED: [
        IssueStatus.CLOSED,     # Terminal
    ],
}

INITIAL_STATUS = IssueStatus.OPEN


def is_transition_valid(current_status: IssueStatus, new_status: IssueStatus) -> bool:
    return new_status in TRANSITION_MATRIX.get(current_status, [])


def validate_transition(current_status: IssueStatus, new_status: IssueStatus) -> None:
    """
    Validate a status transition and raise exception if invalid.

    Raises:
        StateTransitionError: If the transition is not allowed
    """
    if is_transition_valid(current_status, new_status):
        return

    error_msg = f"Invalid status transition: {current_status.value} → {new_status.value}."
    if current_status == IssueStatus.CLOSED:
        error_msg += " Closed issues cannot be reopened."
    logger.warning(f"Blocked transition: {error_msg}")
    raise StateTransitionError(error_msg, current_status, new_status)


def status_after_update(current_status: str, resolution_recorded: bool) -> IssueStatus:
    """
    Status an issue moves to after an update.

    Args:
        current_status: Stored status value
        resolution_recorded: True when the update supplies an actual resolution date

    Returns:
        CLOSED when a resolution is recorded, otherwise the current status
    """
    current = IssueStatus(current_status)
    new_status = IssueStatus.CLOSED if resolution_recorded else current
    validate_transition(current, new_status)
    return new_status
