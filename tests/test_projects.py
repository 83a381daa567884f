"""Unit tests for teamtrack.services.projects — ProjectService over a MemoryStore."""

from unittest.mock import MagicMock

import pytest

from teamtrack.engine.context import Actor, actor_scope
from teamtrack.engine.errors import (
    TeamTrackAuthenticationError,
    TeamTrackConflictError,
    TeamTrackNotFoundError,
    TeamTrackSecurityError,
    TeamTrackValidationError,
)
from teamtrack.models import Project, ProjectStatus, Role
from teamtrack.services.projects import ProjectService


@pytest.fixture
def service(store):
    return ProjectService(store)


class TestCreate:

    def test_admin_creates(self, service, store, admin):
        project = service.create("  Gemini  ", "Orbit", actor=admin)
        assert project.title == "Gemini"
        assert project.created_by == "admin"
        assert project.status is ProjectStatus.ACTIVE
        assert store.find_project(project.id) is not None

    @pytest.mark.parametrize("actor_name", ["manager", "member"])
    def test_non_admin_forbidden(self, service, store, actor_name, request):
        with pytest.raises(TeamTrackSecurityError):
            service.create("Gemini", "Orbit", actor=request.getfixturevalue(actor_name))
        assert len(store.list_projects()) == 1

    def test_missing_fields(self, service, admin):
        with pytest.raises(TeamTrackValidationError) as exc_info:
            service.create("", "Orbit", actor=admin)
        assert exc_info.value.validation_errors

    def test_authorization_checked_before_validation(self, service, member):
        with pytest.raises(TeamTrackSecurityError):
            service.create("", "", actor=member)

    def test_no_actor(self, service):
        with pytest.raises(TeamTrackAuthenticationError):
            service.create("Gemini", "Orbit")

    def test_actor_from_context(self, service, admin):
        with actor_scope(admin):
            project = service.create("Gemini", "Orbit")
        assert project.created_by == "admin"


class TestRead:

    def test_member_lists_assigned_only(self, service, store, member):
        store.add_project(Project(id="p2", title="Other", description="d", created_by="admin", assigned_members=["u2"]))
        assert [p.id for p in service.list(actor=member)] == ["p1"]

    def test_manager_lists_all(self, service, store, manager):
        store.add_project(Project(id="p2", title="Other", description="d", created_by="admin"))
        assert {p.id for p in service.list(actor=manager)} == {"p1", "p2"}

    def test_outsider_lists_nothing(self, service, outsider):
        assert service.list(actor=outsider) == []

    def test_listing_filtered_by_store_for_members(self, project, member, manager):
        store = MagicMock()
        store.list_projects.return_value = [project]
        service = ProjectService(store)

        service.list(actor=member)
        store.list_projects.assert_called_with(member_id="u1")
        service.list(actor=manager)
        store.list_projects.assert_called_with(member_id=None)

    def test_unauthenticated_list_skips_store(self):
        store = MagicMock()
        with pytest.raises(TeamTrackAuthenticationError):
            ProjectService(store).list(actor=None)
        store.list_projects.assert_not_called()

    def test_member_gets_assigned_project(self, service, member):
        assert service.get("p1", actor=member).title == "Apollo"

    def test_outsider_get_forbidden(self, service, outsider):
        with pytest.raises(TeamTrackSecurityError):
            service.get("p1", actor=outsider)

    def test_get_missing(self, service, member):
        with pytest.raises(TeamTrackNotFoundError):
            service.get("nope", actor=member)


class TestUpdate:

    def test_manager_updates(self, service, manager):
        updated = service.update("p1", actor=manager, title="Apollo 11", status="Completed")
        assert updated.title == "Apollo 11"
        assert updated.status is ProjectStatus.COMPLETED
        assert updated.created_by == "admin"

    def test_member_forbidden(self, service, member):
        with pytest.raises(TeamTrackSecurityError):
            service.update("p1", actor=member, title="Mine")

    def test_created_by_immutable(self, service, admin):
        with pytest.raises(TeamTrackValidationError):
            service.update("p1", actor=admin, created_by="u1")

    def test_invalid_status(self, service, admin):
        with pytest.raises(TeamTrackValidationError):
            service.update("p1", actor=admin, status="Paused")

    def test_no_changes_returns_current(self, service, admin):
        assert service.update("p1", actor=admin).title == "Apollo"

    def test_update_missing(self, service, admin):
        with pytest.raises(TeamTrackNotFoundError):
            service.update("nope", actor=admin, title="x")


class TestDelete:

    def test_admin_deletes_with_tasks(self, service, store, admin):
        service.delete("p1", actor=admin)
        assert store.find_project("p1") is None
        assert store.find_tasks("p1") == []

    def test_manager_forbidden(self, service, store, manager):
        with pytest.raises(TeamTrackSecurityError):
            service.delete("p1", actor=manager)
        assert store.find_project("p1") is not None

    def test_member_delete_missing_is_forbidden(self, service, member):
        with pytest.raises(TeamTrackSecurityError):
            service.delete("nope", actor=member)

    def test_admin_delete_missing_not_found(self, service, admin):
        with pytest.raises(TeamTrackNotFoundError):
            service.delete("nope", actor=admin)


class TestAssignMember:

    def test_admin_assigns(self, service, admin):
        project = service.assign_member("p1", "u2", actor=admin)
        assert project.assigned_members == ["u1", "u2"]

    def test_duplicate_conflict(self, service, store, admin):
        with pytest.raises(TeamTrackConflictError):
            service.assign_member("p1", "u1", actor=admin)
        assert store.find_project("p1").assigned_members == ["u1"]

    def test_unknown_user(self, service, admin):
        with pytest.raises(TeamTrackNotFoundError) as exc_info:
            service.assign_member("p1", "ghost", actor=admin)
        assert exc_info.value.resource_type == "user"

    def test_unknown_project(self, service, admin):
        with pytest.raises(TeamTrackNotFoundError) as exc_info:
            service.assign_member("nope", "u2", actor=admin)
        assert exc_info.value.resource_type == "project"

    def test_manager_forbidden(self, service, manager):
        with pytest.raises(TeamTrackSecurityError):
            service.assign_member("p1", "u2", actor=manager)

    def test_member_id_required(self, service, admin):
        with pytest.raises(TeamTrackValidationError, match="Member ID is required"):
            service.assign_member("p1", "", actor=admin)

    def test_assignment_grants_read(self, service, admin):
        bob = Actor(id="u2", role=Role.MEMBER)
        with pytest.raises(TeamTrackSecurityError):
            service.get("p1", actor=bob)
        service.assign_member("p1", "u2", actor=admin)
        assert service.get("p1", actor=bob).id == "p1"


def test_operations_are_audited(service, admin, log_dir):
    from teamtrack.engine.logging import get_file_logger

    project = service.create("Gemini", "Orbit", actor=admin)
    service.update(project.id, actor=admin, description="Low orbit")

    entries = get_file_logger().query("projects", "execution")
    assert [e["event"] for e in entries] == ["project_update", "project_create"]
    assert entries[0]["fields_changed"] == ["description"]
