"""Tests for teamtrack.store.sql — SqlStore against a SQLite file."""

from datetime import datetime, timedelta, timezone

import pytest

from teamtrack.db.session import init_db
from teamtrack.engine.errors import TeamTrackConflictError
from teamtrack.models import Project, ProjectStatus, TaskStatus
from teamtrack.reports.aggregator import count_overdue
from teamtrack.services.projects import ProjectService
from teamtrack.store.sql import SqlStore

from tests.conftest import NOW, make_task, make_user


@pytest.fixture
def sql_store(tmp_path):
    factory = init_db(f"sqlite:///{tmp_path / 'teamtrack.db'}", create_tables=True)
    store = SqlStore(factory)
    for user in (make_user("admin", "Ada"), make_user("u1", "Alice"), make_user("u2", "Bob")):
        store.add_user(user)
    store.add_project(Project(id="p1", title="Apollo", description="Moon", created_by="admin", assigned_members=["u1"]))
    yield store
    store.close()


class TestUsers:

    def test_find_user(self, sql_store):
        assert sql_store.find_user("u1").name == "Alice"
        assert sql_store.find_user("nope") is None

    def test_find_by_email_normalized(self, sql_store):
        assert sql_store.find_user_by_email("  U1@Example.com ").id == "u1"

    def test_password_hash_round_trips(self, sql_store):
        user = make_user("u3", "Cy").model_copy(update={"password_hash": "$2b$hash"})
        sql_store.add_user(user)
        assert sql_store.find_user("u3").password_hash == "$2b$hash"

    def test_list_users(self, sql_store):
        assert {u.id for u in sql_store.list_users()} == {"admin", "u1", "u2"}


class TestProjects:

    def test_find_project(self, sql_store):
        project = sql_store.find_project("p1")
        assert project.title == "Apollo"
        assert project.assigned_members == ["u1"]
        assert project.status is ProjectStatus.ACTIVE

    def test_list_by_member(self, sql_store):
        sql_store.add_project(Project(id="p2", title="B", description="d", created_by="admin", assigned_members=["u2"]))
        assert [p.id for p in sql_store.list_projects()] == ["p1", "p2"]
        assert [p.id for p in sql_store.list_projects(member_id="u2")] == ["p2"]

    def test_update_project(self, sql_store):
        updated = sql_store.update_project("p1", {"title": "Apollo 11", "status": ProjectStatus.COMPLETED})
        assert updated.title == "Apollo 11"
        assert sql_store.find_project("p1").status is ProjectStatus.COMPLETED

    def test_update_missing(self, sql_store):
        assert sql_store.update_project("nope", {"title": "x"}) is None

    def test_assign_member_preserves_order(self, sql_store):
        sql_store.assign_member("p1", "u2")
        sql_store.assign_member("p1", "admin")
        assert sql_store.find_project("p1").assigned_members == ["u1", "u2", "admin"]

    def test_assign_member_idempotent(self, sql_store):
        assert sql_store.assign_member("p1", "u1").assigned_members == ["u1"]

    def test_assign_member_touches_updated_at(self, sql_store):
        before = sql_store.find_project("p1").updated_at
        sql_store.assign_member("p1", "u2")
        assert sql_store.find_project("p1").updated_at > before

    def test_delete_project_cascades_tasks(self, sql_store):
        sql_store.add_task(make_task("t1", "u1"))
        assert sql_store.delete_project("p1") is True
        assert sql_store.find_project("p1") is None
        assert sql_store.find_task("t1") is None
        assert sql_store.delete_project("p1") is False


class TestTasks:

    def test_find_tasks_with_assignee(self, sql_store):
        sql_store.add_task(make_task("t1", "u1"))
        sql_store.add_task(make_task("t2", "u2", status=TaskStatus.DONE))

        plain = sql_store.find_tasks("p1")
        assert all(t.assignee is None for t in plain)

        populated = {t.id: t for t in sql_store.find_tasks("p1", with_assignee=True)}
        assert populated["t2"].assignee.name == "Bob"
        assert populated["t2"].assigned_to == "u2"
        assert populated["t2"].status is TaskStatus.DONE

    def test_find_task(self, sql_store):
        sql_store.add_task(make_task("t1", "u1"))
        assert sql_store.find_task("t1", with_assignee=True).assignee.email == "u1@example.com"
        assert sql_store.find_task("nope") is None

    def test_update_task(self, sql_store):
        sql_store.add_task(make_task("t1", "u1"))
        due = NOW + timedelta(days=9)
        updated = sql_store.update_task("t1", {"status": TaskStatus.IN_PROGRESS, "due_date": due})
        assert updated.status is TaskStatus.IN_PROGRESS
        assert sql_store.find_task("t1").status is TaskStatus.IN_PROGRESS

    def test_due_date_offset_survives_round_trip(self, sql_store):
        """SQLite keeps no offset; values are stored and read back as UTC."""
        ist = timezone(timedelta(hours=5))
        sql_store.add_task(make_task("t1", "u1", due_date=datetime(2024, 6, 10, 10, 0, tzinfo=ist)))

        due = sql_store.find_task("t1").due_date
        assert due == datetime(2024, 6, 10, 5, 0, tzinfo=timezone.utc)
        assert due.utcoffset() == timedelta(0)
        assert count_overdue(sql_store.find_tasks("p1"), datetime(2024, 6, 10, 6, 0, tzinfo=timezone.utc)) == 1

    def test_update_task_due_date_stored_as_utc(self, sql_store):
        sql_store.add_task(make_task("t1", "u1"))
        ist = timezone(timedelta(hours=5))
        sql_store.update_task("t1", {"due_date": datetime(2024, 6, 20, 3, 0, tzinfo=ist)})
        assert sql_store.find_task("t1").due_date == datetime(2024, 6, 19, 22, 0, tzinfo=timezone.utc)

    def test_delete_task(self, sql_store):
        sql_store.add_task(make_task("t1", "u1"))
        assert sql_store.delete_task("t1") is True
        assert sql_store.delete_task("t1") is False


def test_services_over_sql_store(sql_store, admin):
    service = ProjectService(sql_store)
    service.assign_member("p1", "u2", actor=admin)
    with pytest.raises(TeamTrackConflictError):
        service.assign_member("p1", "u2", actor=admin)
    assert sql_store.find_project("p1").assigned_members == ["u1", "u2"]
