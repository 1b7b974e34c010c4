"""Fire-and-forget notification delivery.

Each dispatch runs as its own asyncio task with bounded retries. Delivery
failures are logged and never reach the operation that scheduled them. Tasks
are tracked so shutdown can wait for in-flight deliveries up to a deadline.
"""
import asyncio
import logging
from typing import Mapping, Protocol

logger = logging.getLogger("issuetracker-core.notifications")


class Sender(Protocol):
    """Blocking delivery of one rendered template."""

    def send(self, recipient: str, template: str, data: Mapping[str, str]) -> None: ...


class NotificationDispatcher:
    """Schedules deliveries and tracks them until they finish."""

    def __init__(self, sender: Sender, max_attempts: int = 3, retry_delay: float = 5.0):
        self.sender = sender
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay
        self._tasks: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def dispatch(self, recipient: str, template: str, data: Mapping[str, str]) -> asyncio.Task:
        """
        Schedule a delivery and return immediately.

        Args:
            recipient: Email address
            template: Template identifier
            data: Template values

        Returns:
            The delivery task; callers never need to await it
        """
        task = asyncio.get_running_loop().create_task(
            self._deliver(recipient, template, dict(data)),
            name=f"notify:{template}:{recipient}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _deliver(self, recipient: str, template: str, data: dict[str, str]) -> bool:
        for attempt in range(1, self.max_attempts + 1):
            try:
                await asyncio.to_thread(self.sender.send, recipient, template, data)
                return True
            except asyncio.CancelledError:
                logger.warning(f"Delivery of '{template}' to {recipient} abandoned on attempt {attempt}")
                raise
            except Exception as e:
                logger.warning(
                    f"Attempt {attempt}/{self.max_attempts} to send '{template}' to {recipient} failed: {e}",
                    exc_info=True,
                )
            if attempt < self.max_attempts:
                await asyncio.sleep(self.retry_delay)

        logger.error(f"Giving up on '{template}' email to {recipient} after {self.max_attempts} attempts")
        return False

    async def shutdown(self, timeout: float) -> int:
        """
        Wait for in-flight deliveries, then cancel whatever is left.

        Args:
            timeout: Seconds to wait before giving up

        Returns:
            Number of deliveries abandoned at the deadline
        """
        pending = set(self._tasks)
        if not pending:
            return 0

        logger.info(f"Waiting up to {timeout}s for {len(pending)} notification(s)")
        _, still_pending = await asyncio.wait(pending, timeout=timeout)
        for task in still_pending:
            task.cancel()
        if still_pending:
            logger.warning(f"Abandoned {len(still_pending)} notification(s) at shutdown")
        return len(still_pending)
