"""
TeamTrack Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from teamtrack.engine.context import Actor, set_current_actor
from teamtrack.engine.errors import TeamTrackUpstreamError
from teamtrack.models import Project, Role, Task, TaskPriority, TaskStatus, User
from teamtrack.security.permissions import AccessGate
from teamtrack.store.memory import MemoryStore


# ---------------------------------------------------------------------------
# Global state — config cache, audit logger, bound actor
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_globals():
    """Reset global singletons between tests."""
    import teamtrack.engine.config as cfg_mod
    import teamtrack.engine.logging as log_mod

    cfg_mod._config = None
    log_mod._file_logger = None
    set_current_actor(None)
    yield
    log_mod._file_logger = None
    set_current_actor(None)


NOW = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


# ---------------------------------------------------------------------------
# Users and actors
# ---------------------------------------------------------------------------

def make_user(user_id: str, name: str, role: Role = Role.MEMBER) -> User:
    return User(id=user_id, name=name, email=f"{user_id}@example.com", role=role)


@pytest.fixture
def users() -> dict:
    return {
        "admin": make_user("admin", "Ada Admin", Role.ADMIN),
        "mgr": make_user("mgr", "Max Manager", Role.MANAGER),
        "u1": make_user("u1", "Alice"),
        "u2": make_user("u2", "Bob"),
        "u9": make_user("u9", "Zed"),
    }


@pytest.fixture
def admin() -> Actor:
    return Actor(id="admin", role=Role.ADMIN)


@pytest.fixture
def manager() -> Actor:
    return Actor(id="mgr", role=Role.MANAGER)


@pytest.fixture
def member() -> Actor:
    """u1 — member of project p1."""
    return Actor(id="u1", role=Role.MEMBER)


@pytest.fixture
def outsider() -> Actor:
    """u9 — belongs to no project."""
    return Actor(id="u9", role=Role.MEMBER)


# ---------------------------------------------------------------------------
# Projects, tasks, store
# ---------------------------------------------------------------------------

@pytest.fixture
def project() -> Project:
    return Project(
        id="p1",
        title="Apollo",
        description="Moon landing",
        created_by="admin",
        assigned_members=["u1"],
    )


def make_task(
    task_id: str,
    assigned_to: str,
    status: TaskStatus = TaskStatus.TODO,
    priority: TaskPriority = TaskPriority.MEDIUM,
    due_date: Optional[datetime] = None,
    updated_at: Optional[datetime] = None,
    project_id: str = "p1",
) -> Task:
    return Task(
        id=task_id,
        project_id=project_id,
        title=f"Task {task_id}",
        description=f"Do {task_id}",
        priority=priority,
        status=status,
        assigned_to=assigned_to,
        due_date=due_date or NOW + timedelta(days=3),
        created_at=NOW - timedelta(days=30),
        updated_at=updated_at or NOW - timedelta(days=1),
    )


@pytest.fixture
def tasks() -> List[Task]:
    return [
        make_task("t1", "u1", status=TaskStatus.DONE, priority=TaskPriority.HIGH),
        make_task("t2", "u2", status=TaskStatus.IN_PROGRESS, due_date=NOW - timedelta(days=2)),
        make_task("t3", "u1", priority=TaskPriority.LOW),
    ]


@pytest.fixture
def store(users, project, tasks) -> MemoryStore:
    s = MemoryStore()
    for user in users.values():
        s.add_user(user)
    s.add_project(project)
    for task in tasks:
        s.add_task(task)
    return s


@pytest.fixture
def gate() -> AccessGate:
    return AccessGate()


# ---------------------------------------------------------------------------
# Text generation
# ---------------------------------------------------------------------------

class FakeGenerator:
    """TextGenerator double: returns *text*, raises *error*, or sleeps *delay* seconds first."""

    def __init__(self, text: str = "generated", error: Optional[Exception] = None, delay: float = 0):
        self.text = text
        self.error = error
        self.delay = delay
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator(text="All good.")


@pytest.fixture
def failing_generator() -> FakeGenerator:
    return FakeGenerator(error=TeamTrackUpstreamError("HTTP 500", provider="gemini", upstream_status=500))


@pytest.fixture
def log_dir(tmp_path):
    """Initialize the audit logger under a temp directory."""
    from teamtrack.engine.logging import init_logging

    directory = tmp_path / "logs"
    init_logging(str(directory), "DEBUG")
    return directory
