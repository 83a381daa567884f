"""
Store interface — persistence collaborator for users, projects and tasks.

Implementations return fresh snapshots (pydantic models) and never authorize.
Assignee resolution is a store capability requested with ``with_assignee``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from teamtrack.models import Project, Task, User


class Store(ABC):

    # -- users ---------------------------------------------------------------

    @abstractmethod
    def find_user(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    def find_user_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    def list_users(self) -> List[User]:
        ...

    @abstractmethod
    def add_user(self, user: User) -> User:
        ...

    # -- projects ------------------------------------------------------------

    @abstractmethod
    def list_projects(self, member_id: Optional[str] = None) -> List[Project]:
        """All projects, or only those *member_id* is assigned to."""

    @abstractmethod
    def find_project(self, project_id: str) -> Optional[Project]:
        ...

    @abstractmethod
    def add_project(self, project: Project) -> Project:
        ...

    @abstractmethod
    def update_project(self, project_id: str, changes: Dict[str, Any]) -> Optional[Project]:
        ...

    @abstractmethod
    def delete_project(self, project_id: str) -> bool:
        """Delete the project and every task that belongs to it."""

    @abstractmethod
    def assign_member(self, project_id: str, user_id: str) -> Optional[Project]:
        """Append *user_id* to the project's members; no-op if already present."""

    # -- tasks ---------------------------------------------------------------

    @abstractmethod
    def find_tasks(self, project_id: str, with_assignee: bool = False) -> List[Task]:
        ...

    @abstractmethod
    def find_task(self, task_id: str, with_assignee: bool = False) -> Optional[Task]:
        ...

    @abstractmethod
    def add_task(self, task: Task) -> Task:
        ...

    @abstractmethod
    def update_task(self, task_id: str, changes: Dict[str, Any]) -> Optional[Task]:
        ...

    @abstractmethod
    def delete_task(self, task_id: str) -> bool:
        ...

    def close(self) -> None:
        """Release resources held by the store."""
