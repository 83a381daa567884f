"""SQLAlchemy-backed store."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from teamtrack.db.models import ProjectMemberRow, ProjectRow, TaskRow, UserRow
from teamtrack.db.session import dispose, session_scope
from teamtrack.models import Project, Task, User, UserSummary, as_utc, utcnow
from teamtrack.store.base import Store

logger = logging.getLogger("teamtrack.store.sql")

_ENUM_FIELDS = ("role", "status", "priority")


def _plain(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Unwrap enum members to their stored string values; datetimes go in as UTC."""
    plain = {}
    for k, v in changes.items():
        if k in _ENUM_FIELDS and hasattr(v, "value"):
            v = v.value
        elif isinstance(v, datetime):
            v = as_utc(v)
        plain[k] = v
    return plain


def _user(row: UserRow) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        role=row.role,
        password_hash=row.password_hash,
        created_at=row.created_at,
    )


def _project(row: ProjectRow) -> Project:
    return Project(
        id=row.id,
        title=row.title,
        description=row.description,
        created_by=row.created_by,
        assigned_members=[m.user_id for m in row.members],
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _task(row: TaskRow, with_assignee: bool) -> Task:
    assignee = None
    if with_assignee and row.assignee is not None:
        assignee = UserSummary(id=row.assignee.id, name=row.assignee.name, email=row.assignee.email)
    return Task(
        id=row.id,
        project_id=row.project_id,
        title=row.title,
        description=row.description,
        priority=row.priority,
        status=row.status,
        assigned_to=row.assigned_to,
        due_date=row.due_date,
        created_at=row.created_at,
        updated_at=row.updated_at,
        assignee=assignee,
    )


class SqlStore(Store):
    """Store over the users/projects/project_members/tasks tables."""

    def __init__(self, session_factory: sessionmaker):
        self._factory = session_factory

    # -- users ---------------------------------------------------------------

    def find_user(self, user_id: str) -> Optional[User]:
        with session_scope(self._factory) as session:
            row = session.get(UserRow, user_id)
            return _user(row) if row else None

    def find_user_by_email(self, email: str) -> Optional[User]:
        with session_scope(self._factory) as session:
            row = session.scalars(
                select(UserRow).where(UserRow.email == email.strip().lower())
            ).first()
            return _user(row) if row else None

    def list_users(self) -> List[User]:
        with session_scope(self._factory) as session:
            return [_user(r) for r in session.scalars(select(UserRow).order_by(UserRow.created_at))]

    def add_user(self, user: User) -> User:
        with session_scope(self._factory) as session:
            session.add(UserRow(
                id=user.id,
                name=user.name,
                email=user.email,
                role=user.role.value,
                password_hash=user.password_hash,
                created_at=user.created_at,
            ))
        return user

    # -- projects ------------------------------------------------------------

    def list_projects(self, member_id: Optional[str] = None) -> List[Project]:
        stmt = select(ProjectRow).order_by(ProjectRow.created_at)
        if member_id is not None:
            stmt = stmt.join(ProjectMemberRow).where(ProjectMemberRow.user_id == member_id)
        with session_scope(self._factory) as session:
            return [_project(r) for r in session.scalars(stmt).unique()]

    def find_project(self, project_id: str) -> Optional[Project]:
        with session_scope(self._factory) as session:
            row = session.get(ProjectRow, project_id)
            return _project(row) if row else None

    def add_project(self, project: Project) -> Project:
        with session_scope(self._factory) as session:
            row = ProjectRow(
                id=project.id,
                title=project.title,
                description=project.description,
                created_by=project.created_by,
                status=project.status.value,
                created_at=project.created_at,
                updated_at=project.updated_at,
            )
            row.members = [
                ProjectMemberRow(user_id=uid, position=i)
                for i, uid in enumerate(project.assigned_members)
            ]
            session.add(row)
        return project

    def update_project(self, project_id: str, changes: Dict[str, Any]) -> Optional[Project]:
        with session_scope(self._factory) as session:
            row = session.get(ProjectRow, project_id)
            if row is None:
                return None
            for key, value in _plain(changes).items():
                setattr(row, key, value)
            session.flush()
            return _project(row)

    def delete_project(self, project_id: str) -> bool:
        with session_scope(self._factory) as session:
            row = session.get(ProjectRow, project_id)
            if row is None:
                return False
            logger.debug("Deleting project %s with %d task(s)", project_id, len(row.tasks))
            session.delete(row)
            return True

    def assign_member(self, project_id: str, user_id: str) -> Optional[Project]:
        with session_scope(self._factory) as session:
            row = session.get(ProjectRow, project_id)
            if row is None:
                return None
            if user_id not in {m.user_id for m in row.members}:
                row.members.append(ProjectMemberRow(user_id=user_id, position=len(row.members)))
                row.updated_at = utcnow()
                session.flush()
            return _project(row)

    # -- tasks ---------------------------------------------------------------

    def find_tasks(self, project_id: str, with_assignee: bool = False) -> List[Task]:
        stmt = (
            select(TaskRow)
            .where(TaskRow.project_id == project_id)
            .order_by(TaskRow.created_at)
        )
        with session_scope(self._factory) as session:
            return [_task(r, with_assignee) for r in session.scalars(stmt).unique()]

    def find_task(self, task_id: str, with_assignee: bool = False) -> Optional[Task]:
        with session_scope(self._factory) as session:
            row = session.get(TaskRow, task_id)
            return _task(row, with_assignee) if row else None

    def add_task(self, task: Task) -> Task:
        with session_scope(self._factory) as session:
            session.add(TaskRow(
                id=task.id,
                project_id=task.project_id,
                title=task.title,
                description=task.description,
                priority=task.priority.value,
                status=task.status.value,
                assigned_to=task.assigned_to,
                due_date=task.due_date,
                created_at=task.created_at,
                updated_at=task.updated_at,
            ))
        return task

    def update_task(self, task_id: str, changes: Dict[str, Any]) -> Optional[Task]:
        with session_scope(self._factory) as session:
            row = session.get(TaskRow, task_id)
            if row is None:
                return None
            for key, value in _plain(changes).items():
                setattr(row, key, value)
            session.flush()
            return _task(row, with_assignee=False)

    def delete_task(self, task_id: str) -> bool:
        with session_scope(self._factory) as session:
            row = session.get(TaskRow, task_id)
            if row is None:
                return False
            session.delete(row)
            return True

    def close(self) -> None:
        dispose(self._factory)
