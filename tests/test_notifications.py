"""Tests for notification dispatch and email rendering."""
import asyncio
import threading
import time

import pytest

from issuetracker_core.mailer import Mailer, TemplateError, parse_template, render_template
from issuetracker_core.notifications import NotificationDispatcher


class FlakySender:
    """Fails a fixed number of times before succeeding."""

    def __init__(self, failures: int):
        self.failures = failures
        self.calls = 0

    def send(self, recipient, template, data):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("smtp unavailable")


class HangingSender:
    """Blocks until released."""

    def __init__(self):
        self.release = threading.Event()

    def send(self, recipient, template, data):
        self.release.wait(timeout=10)


class TestDispatcher:
    """Test fire-and-forget delivery."""

    async def test_retries_until_success(self):
        """Test that a sender failing twice succeeds on the third attempt."""
        sender = FlakySender(failures=2)
        dispatcher = NotificationDispatcher(sender, max_attempts=3, retry_delay=0)
        task = dispatcher.dispatch("a@example.com", "user_welcome", {"name": "A"})
        assert await task is True
        assert sender.calls == 3

    async def test_failure_is_contained(self):
        """Test that exhausting retries never raises into the caller."""
        sender = FlakySender(failures=100)
        dispatcher = NotificationDispatcher(sender, max_attempts=3, retry_delay=0)
        task = dispatcher.dispatch("a@example.com", "user_welcome", {})
        assert await task is False
        assert sender.calls == 3
        assert dispatcher.in_flight == 0

    async def test_dispatch_returns_immediately(self):
        sender = HangingSender()
        dispatcher = NotificationDispatcher(sender, max_attempts=1, retry_delay=0)
        started = time.monotonic()
        dispatcher.dispatch("a@example.com", "user_welcome", {})
        assert time.monotonic() - started < 0.5
        assert dispatcher.in_flight == 1
        sender.release.set()
        assert await dispatcher.shutdown(timeout=5) == 0

    async def test_shutdown_respects_deadline(self):
        """Test that shutdown gives up on a hung delivery at its deadline."""
        sender = HangingSender()
        dispatcher = NotificationDispatcher(sender, max_attempts=1, retry_delay=0)
        dispatcher.dispatch("a@example.com", "user_welcome", {})
        await asyncio.sleep(0)

        started = time.monotonic()
        abandoned = await dispatcher.shutdown(timeout=0.1)
        assert abandoned == 1
        assert time.monotonic() - started < 2
        sender.release.set()

    async def test_shutdown_with_nothing_pending(self):
        dispatcher = NotificationDispatcher(FlakySender(0))
        assert await dispatcher.shutdown(timeout=1) == 0


class TestTemplates:
    """Test email template rendering."""

    def test_welcome(self):
        subject, body = render_template(
            "user_welcome", {"name": "Alice", "userID": "7", "activationToken": "T" * 26}
        )
        assert subject
        assert "Alice" in body
        assert "T" * 26 in body

    @pytest.mark.parametrize(
        "name, data",
        [
            ("token_activation", {"name": "Alice", "activationToken": "X" * 26}),
            ("project_assign", {"name": "Lee", "projectID": "3", "projectName": "Apollo"}),
            ("issue_assign", {"name": "Mo", "issueID": "9", "issueTitle": "Crash", "issuePriority": "high"}),
        ],
    )
    def test_every_template_renders(self, name, data):
        subject, body = render_template(name, data)
        assert subject
        for value in data.values():
            assert value in body

    def test_missing_value(self):
        with pytest.raises(TemplateError, match="activationToken"):
            render_template("user_welcome", {"name": "Alice", "userID": "7"})

    def test_unknown_template(self):
        with pytest.raises(TemplateError):
            render_template("no_such_template", {})

    def test_frontmatter_required(self):
        with pytest.raises(TemplateError):
            parse_template("Hello {name}")
        with pytest.raises(TemplateError):
            parse_template("---\ntitle: no subject\n---\nbody")

    def test_build_message(self):
        mailer = Mailer(host="localhost", port=25, sender="Issue Tracker <no-reply@example.com>")
        msg = mailer.build_message(
            "lee@example.com", "project_assign", {"name": "Lee", "projectID": "3", "projectName": "Apollo"}
        )
        assert msg["To"] == "lee@example.com"
        assert msg["From"] == "Issue Tracker <no-reply@example.com>"
        assert msg["Subject"]

    def test_send_uses_smtp(self, mocker):
        smtp = mocker.patch("issuetracker_core.mailer.smtplib.SMTP")
        mailer = Mailer(host="smtp.example.com", port=587, username="u", password="p", starttls=True)
        mailer.send("a@example.com", "token_activation", {"name": "A", "activationToken": "Z" * 26})

        smtp.assert_called_once_with("smtp.example.com", 587, timeout=10.0)
        server = smtp.return_value.__enter__.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("u", "p")
        server.send_message.assert_called_once()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
