"""Tests for issue operations."""
from datetime import timedelta

import pytest

from issuetracker_core import models
from issuetracker_core.errors import DomainError, ErrorKind
from issuetracker_core.filters import Filters
from issuetracker_core.repositories import EditConflict


async def _create(services, actor, project_id, **overrides):
    fields = dict(
        title="Login page broken",
        description="Submitting the form returns a 500",
        project_id=project_id,
        target_resolution_date=models.today() + timedelta(days=7),
        actor=actor,
    )
    fields.update(overrides)
    return await services.issues.create_issue(**fields)


@pytest.fixture
async def team(make_user, make_project, services):
    """A project with one lead owner and two team members."""
    lead = await make_user("lead")
    project = await make_project(assigned_to=lead.id)
    alice = await make_user("member")
    bob = await make_user("member")
    await services.projects.assign_user(project.id, alice.id)
    await services.projects.assign_user(project.id, bob.id)
    return project, lead, alice, bob


class TestCreateIssue:
    """Test issue creation."""

    async def test_defaults(self, services, team):
        """Test that a new issue is open, low priority and reported today."""
        project, lead, _, _ = team
        issue = await _create(services, lead, project.id)
        assert issue.status == "open"
        assert issue.priority == "low"
        assert issue.reported_date == models.today()
        assert issue.reporter_id == lead.id
        assert issue.version == 1

    async def test_assignment_notifies_member(self, services, team, sender, drain):
        """Test that assigning a team member emails them after the issue exists."""
        project, lead, alice, _ = team
        issue = await _create(services, lead, project.id, assigned_to=alice.id, priority="high")
        assert issue.assigned_to == alice.id

        await drain()
        assert sender.sent == [
            (
                alice.email,
                "issue_assign",
                {"name": alice.name, "issueID": str(issue.id), "issueTitle": issue.title, "issuePriority": "high"},
            )
        ]

    async def test_assignee_must_be_on_team(self, services, team, make_user, sender, drain):
        """Test that an outsider cannot be assigned and nothing is sent."""
        project, lead, _, _ = team
        outsider = await make_user("member")
        with pytest.raises(DomainError) as exc_info:
            await _create(services, lead, project.id, assigned_to=outsider.id)
        assert exc_info.value.kind == ErrorKind.NOT_FOUND
        await drain()
        assert sender.sent == []

    async def test_unknown_project(self, services, team):
        _, lead, _, _ = team
        with pytest.raises(DomainError) as exc_info:
            await _create(services, lead, 9999)
        assert exc_info.value.kind == ErrorKind.NOT_FOUND

    async def test_validation_errors_aggregate(self, services, team):
        """Test that every invalid field is reported at once."""
        project, lead, _, _ = team
        with pytest.raises(DomainError) as exc_info:
            await _create(
                services, lead, project.id,
                title="bad", description="", priority="urgent",
                target_resolution_date=models.today() - timedelta(days=1),
            )
        errors = exc_info.value.errors
        assert set(errors) == {"title", "description", "priority", "target_resolution_date"}
        assert errors["priority"] == "must be low, medium or high"
        assert list(errors) == sorted(errors)


class TestUpdateIssue:
    """Test issue updates."""

    async def test_member_cannot_update_unrelated_issue(self, services, team):
        """Test that a member who neither reported nor owns an issue is refused."""
        project, lead, alice, bob = team
        issue = await _create(services, lead, project.id, assigned_to=alice.id)

        with pytest.raises(DomainError) as exc_info:
            await services.issues.update_issue(issue.id, bob, progress="Looking into it")
        assert exc_info.value.kind == ErrorKind.NOT_PERMITTED

        stored = await services.issues.get_issue(issue.id)
        assert stored.progress == ""
        assert stored.version == 1

    async def test_assignee_and_reporter_may_update(self, services, team):
        project, lead, alice, bob = team
        issue = await _create(services, bob, project.id, assigned_to=alice.id)
        issue = await services.issues.update_issue(issue.id, alice, progress="Reproduced locally")
        issue = await services.issues.update_issue(issue.id, bob, priority="medium")
        assert issue.progress == "Reproduced locally"
        assert issue.priority == "medium"
        assert issue.version == 3

    async def test_resolution_date_closes(self, services, team):
        """Test that recording a resolution date closes the issue."""
        project, lead, _, _ = team
        issue = await _create(services, lead, project.id)
        issue = await services.issues.update_issue(
            issue.id, lead,
            actual_resolution_date=models.today() + timedelta(days=1),
            resolution_summary="Fixed the handler",
        )
        assert issue.status == "closed"

        issue = await services.issues.update_issue(issue.id, lead, progress="Post-mortem written")
        assert issue.status == "closed"

    async def test_reassign_to_non_team_member_rejected(self, services, team):
        """Test that an issue cannot be reassigned to someone off the team."""
        project, lead, alice, _ = team
        issue = await _create(services, lead, project.id, assigned_to=alice.id)
        with pytest.raises(DomainError) as exc_info:
            await services.issues.update_issue(issue.id, lead, assigned_to=lead.id)
        assert exc_info.value.kind == ErrorKind.NOT_FOUND
        assert (await services.issues.get_issue(issue.id)).assigned_to == alice.id

    async def test_stale_version_conflicts(self, services, team, issue_repo):
        """Test that writing an outdated copy fails with an edit conflict."""
        project, lead, _, _ = team
        issue = await _create(services, lead, project.id)
        stale = await issue_repo.get_by_id(issue.id)
        await services.issues.update_issue(issue.id, lead, progress="First writer wins")

        stale.progress = "Second writer loses"
        with pytest.raises(EditConflict):
            await issue_repo.update(stale)
        assert (await services.issues.get_issue(issue.id)).progress == "First writer wins"

    async def test_team_member_with_other_role_rejected(self, services, team, make_user, project_repo):
        """Test that a team member whose role is not member cannot hold issues."""
        project, lead, alice, _ = team
        other_lead = await make_user("lead")
        await project_repo.add_member(project.id, other_lead.id)
        issue = await _create(services, lead, project.id, assigned_to=alice.id)

        with pytest.raises(DomainError) as exc_info:
            await services.issues.update_issue(issue.id, lead, assigned_to=other_lead.id)
        assert exc_info.value.kind == ErrorKind.INVALID_ROLE


class TestListIssues:
    """Test issue listings."""

    async def test_filters(self, services, team):
        project, lead, alice, _ = team
        await _create(services, lead, project.id, title="Crash on save", priority="high", assigned_to=alice.id)
        await _create(services, lead, project.id, title="Typo in footer")

        issues, metadata = await services.issues.list_issues(Filters(), priority="high")
        assert [i.title for i in issues] == ["Crash on save"]
        assert metadata.total_records == 1

        issues, _ = await services.issues.list_issues(Filters(), assigned_to=alice.id)
        assert len(issues) == 1

        issues, _ = await services.issues.list_issues(Filters(sort="-title"), project_id=project.id)
        assert [i.title for i in issues] == ["Typo in footer", "Crash on save"]

    async def test_empty_listing_has_empty_metadata(self, services):
        issues, metadata = await services.issues.list_issues(Filters(), title="nothing matches")
        assert issues == []
        assert metadata.is_empty

    async def test_delete(self, services, team):
        project, lead, _, _ = team
        issue = await _create(services, lead, project.id)
        await services.issues.delete_issue(issue.id)
        with pytest.raises(DomainError) as exc_info:
            await services.issues.get_issue(issue.id)
        assert exc_info.value.kind == ErrorKind.NOT_FOUND


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
