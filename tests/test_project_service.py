"""Tests for project operations."""
from datetime import date

import pytest

from issuetracker_core.errors import DomainError, ErrorKind
from issuetracker_core.filters import Filters


async def _create(services, actor, **overrides):
    fields = dict(
        name="Apollo rollout",
        description="Ship the new release",
        start_date=date(2026, 1, 1),
        target_end_date=date(2026, 6, 30),
        actor=actor,
    )
    fields.update(overrides)
    return await services.projects.create_project(**fields)


class TestCreateProject:
    """Test project creation."""

    async def test_creates_with_audit_fields(self, services, make_user):
        """Test that a new project records its creator and starts at version 1."""
        manager = await make_user("manager")
        project = await _create(services, manager)
        assert project.id is not None
        assert project.version == 1
        assert project.created_by == manager.email
        assert project.modified_by == manager.email

    async def test_short_name_rejected(self, services, make_user):
        """Test that a 4 byte name fails validation on the name field."""
        manager = await make_user("manager")
        with pytest.raises(DomainError) as exc_info:
            await _create(services, manager, name="abcd")
        assert exc_info.value.kind == ErrorKind.FAILED_VALIDATION
        assert exc_info.value.errors == {"name": "must not be less than 5 bytes long"}

    async def test_target_must_follow_start(self, services, make_user):
        manager = await make_user("manager")
        with pytest.raises(DomainError) as exc_info:
            await _create(services, manager, target_end_date=date(2025, 12, 31))
        assert exc_info.value.errors == {"target_end_date": "must not be before start date"}

    async def test_duplicate_name_rejected(self, services, make_user):
        """Test that a second project with the same name is a validation failure."""
        manager = await make_user("manager")
        await _create(services, manager)
        with pytest.raises(DomainError) as exc_info:
            await _create(services, manager)
        assert exc_info.value.kind == ErrorKind.FAILED_VALIDATION
        assert exc_info.value.errors == {"name": "a project with this name already exists"}

    async def test_assign_to_lead_notifies(self, services, make_user, sender, drain):
        """Test that assigning a lead stores the assignee and emails them."""
        manager = await make_user("manager")
        lead = await make_user("lead")
        project = await _create(services, manager, assigned_to=lead.id)
        assert project.assigned_to == lead.id

        await drain()
        assert sender.sent == [
            (lead.email, "project_assign", {"name": lead.name, "projectID": str(project.id), "projectName": project.name})
        ]

    async def test_assign_to_non_lead_rejected(self, services, make_user, sender, drain):
        """Test that only leads may be assigned, and nothing is created or sent otherwise."""
        manager = await make_user("manager")
        member = await make_user("member")
        with pytest.raises(DomainError) as exc_info:
            await _create(services, manager, assigned_to=member.id)
        assert exc_info.value.kind == ErrorKind.INVALID_ROLE

        projects, _ = await services.projects.list_projects(Filters())
        assert projects == []
        await drain()
        assert sender.sent == []

    async def test_assign_to_unknown_user(self, services, make_user):
        manager = await make_user("manager")
        with pytest.raises(DomainError) as exc_info:
            await _create(services, manager, assigned_to=9999)
        assert exc_info.value.kind == ErrorKind.NOT_FOUND


class TestUpdateProject:
    """Test project updates and reassignment."""

    async def test_partial_update_bumps_version(self, services, make_user, make_project):
        manager = await make_user("manager")
        project = await make_project()
        updated = await services.projects.update_project(project.id, manager, description="A new description")
        assert updated.description == "A new description"
        assert updated.name == project.name
        assert updated.version == 2
        assert updated.modified_by == manager.email

    async def test_reassign_to_member_rejected(self, services, make_user, make_project):
        """Test that reassigning to a non-lead leaves the assignee unchanged."""
        manager = await make_user("manager")
        lead = await make_user("lead")
        member = await make_user("member")
        project = await make_project(assigned_to=lead.id)

        with pytest.raises(DomainError) as exc_info:
            await services.projects.update_project(project.id, manager, assigned_to=member.id)
        assert exc_info.value.kind == ErrorKind.INVALID_ROLE

        stored = await services.projects.get_project(project.id)
        assert stored.assigned_to == lead.id
        assert stored.version == 1

    async def test_lead_cannot_update_foreign_project(self, services, make_user, make_project):
        """Test that a lead may only update projects assigned to them."""
        owner = await make_user("lead")
        other = await make_user("lead")
        project = await make_project(assigned_to=owner.id)

        with pytest.raises(DomainError) as exc_info:
            await services.projects.update_project(project.id, other, description="Hijacked project")
        assert exc_info.value.kind == ErrorKind.NOT_PERMITTED

        updated = await services.projects.update_project(project.id, owner, description="Owner's edit here")
        assert updated.description == "Owner's edit here"

    async def test_lead_assignee_change_ignored(self, services, make_user, make_project, sender, drain):
        """Test that an assignee supplied by a lead is dropped while other changes apply."""
        owner = await make_user("lead")
        other = await make_user("lead")
        project = await make_project(assigned_to=owner.id)

        updated = await services.projects.update_project(
            project.id, owner, assigned_to=other.id, description="Still mine to edit"
        )
        assert updated.assigned_to == owner.id
        assert updated.description == "Still mine to edit"
        await drain()
        assert sender.sent == []

    async def test_actual_end_date_before_start(self, services, make_user, make_project):
        manager = await make_user("manager")
        project = await make_project()
        with pytest.raises(DomainError) as exc_info:
            await services.projects.update_project(project.id, manager, actual_end_date=date(2025, 1, 1))
        assert "actual_end_date" in exc_info.value.errors

    async def test_missing_project(self, services, make_user):
        manager = await make_user("manager")
        with pytest.raises(DomainError) as exc_info:
            await services.projects.update_project(404, manager, name="Nothing here")
        assert exc_info.value.kind == ErrorKind.NOT_FOUND


class TestMembership:
    """Test project team membership."""

    async def test_assign_member_and_list(self, services, make_user, make_project):
        project = await make_project()
        member = await make_user("member")
        await services.projects.assign_user(project.id, member.id)

        users, metadata = await services.projects.list_project_users(project.id, Filters())
        assert [u.id for u in users] == [member.id]
        assert metadata.total_records == 1

        fetched = await services.projects.get_project_user(project.id, member.id)
        assert fetched.email == member.email

        projects, _ = await services.projects.list_projects_for_user(member.id, Filters())
        assert [p.id for p in projects] == [project.id]

    async def test_assign_twice_rejected(self, services, make_user, make_project):
        project = await make_project()
        member = await make_user("member")
        await services.projects.assign_user(project.id, member.id)
        with pytest.raises(DomainError) as exc_info:
            await services.projects.assign_user(project.id, member.id)
        assert exc_info.value.errors == {"user": "already assigned to project"}

    async def test_only_members_join_teams(self, services, make_user, make_project):
        project = await make_project()
        lead = await make_user("lead")
        with pytest.raises(DomainError) as exc_info:
            await services.projects.assign_user(project.id, lead.id)
        assert exc_info.value.kind == ErrorKind.INVALID_ROLE

    async def test_non_member_lookup(self, services, make_user, make_project):
        project = await make_project()
        member = await make_user("member")
        with pytest.raises(DomainError) as exc_info:
            await services.projects.get_project_user(project.id, member.id)
        assert exc_info.value.kind == ErrorKind.NOT_FOUND


class TestListAndDelete:
    """Test listing filters and deletion."""

    async def test_name_filter_is_case_insensitive(self, services, make_project):
        await make_project(name="Billing overhaul")
        await make_project(name="Search relevance")
        projects, metadata = await services.projects.list_projects(Filters(), name="BILLING")
        assert [p.name for p in projects] == ["Billing overhaul"]
        assert metadata.total_records == 1

    async def test_invalid_sort_rejected(self, services):
        with pytest.raises(DomainError) as exc_info:
            await services.projects.list_projects(Filters(sort="password"))
        assert exc_info.value.errors == {"sort": "invalid sort value"}

    async def test_delete(self, services, make_project):
        project = await make_project()
        await services.projects.delete_project(project.id)
        with pytest.raises(DomainError) as exc_info:
            await services.projects.get_project(project.id)
        assert exc_info.value.kind == ErrorKind.NOT_FOUND

        with pytest.raises(DomainError) as exc_info:
            await services.projects.delete_project(project.id)
        assert exc_info.value.kind == ErrorKind.NOT_FOUND


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
