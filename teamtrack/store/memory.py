"""In-process store backed by dicts. Used by tests and single-process runs."""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

from teamtrack.models import Project, Task, User, utcnow
from teamtrack.store.base import Store


class MemoryStore(Store):
    """
    Thread-safe dict store. Every read returns a copy so callers can never
    mutate stored state through a snapshot.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._users: Dict[str, User] = {}
        self._projects: Dict[str, Project] = {}
        self._tasks: Dict[str, Task] = {}

    # -- users ---------------------------------------------------------------

    def find_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy() if user else None

    def find_user_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return user.model_copy()
        return None

    def list_users(self) -> List[User]:
        with self._lock:
            return [u.model_copy() for u in self._users.values()]

    def add_user(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = user.model_copy()
        return user

    # -- projects ------------------------------------------------------------

    def list_projects(self, member_id: Optional[str] = None) -> List[Project]:
        with self._lock:
            return [
                p.model_copy(deep=True) for p in self._projects.values()
                if member_id is None or p.has_member(member_id)
            ]

    def find_project(self, project_id: str) -> Optional[Project]:
        with self._lock:
            project = self._projects.get(project_id)
            return project.model_copy(deep=True) if project else None

    def add_project(self, project: Project) -> Project:
        with self._lock:
            self._projects[project.id] = project.model_copy(deep=True)
        return project

    def update_project(self, project_id: str, changes: Dict[str, Any]) -> Optional[Project]:
        with self._lock:
            project = self._projects.get(project_id)
            if project is None:
                return None
            updated = project.model_copy(update={**changes, "updated_at": utcnow()}, deep=True)
            self._projects[project_id] = updated
            return updated.model_copy(deep=True)

    def delete_project(self, project_id: str) -> bool:
        with self._lock:
            if self._projects.pop(project_id, None) is None:
                return False
            for task_id in [t.id for t in self._tasks.values() if t.project_id == project_id]:
                del self._tasks[task_id]
            return True

    def assign_member(self, project_id: str, user_id: str) -> Optional[Project]:
        with self._lock:
            project = self._projects.get(project_id)
            if project is None:
                return None
            if not project.has_member(user_id):
                members = [*project.assigned_members, user_id]
                self._projects[project_id] = project.model_copy(
                    update={"assigned_members": members, "updated_at": utcnow()}, deep=True,
                )
            return self._projects[project_id].model_copy(deep=True)

    # -- tasks ---------------------------------------------------------------

    def _populate(self, task: Task, with_assignee: bool) -> Task:
        copy = task.model_copy()
        if with_assignee:
            user = self._users.get(task.assigned_to)
            copy.assignee = user.summary() if user else None
        return copy

    def find_tasks(self, project_id: str, with_assignee: bool = False) -> List[Task]:
        with self._lock:
            return [
                self._populate(t, with_assignee) for t in self._tasks.values()
                if t.project_id == project_id
            ]

    def find_task(self, task_id: str, with_assignee: bool = False) -> Optional[Task]:
        with self._lock:
            task = self._tasks.get(task_id)
            return self._populate(task, with_assignee) if task else None

    def add_task(self, task: Task) -> Task:
        with self._lock:
            self._tasks[task.id] = task.model_copy(update={"assignee": None})
        return task

    def update_task(self, task_id: str, changes: Dict[str, Any]) -> Optional[Task]:
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                return None
            updated = task.model_copy(update={**changes, "updated_at": utcnow()})
            self._tasks[task_id] = updated
            return updated.model_copy()

    def delete_task(self, task_id: str) -> bool:
        with self._lock:
            return self._tasks.pop(task_id, None) is not None
