"""
TeamTrack tables.

1. users           — accounts with role and bcrypt password hash
2. projects        — project header rows
3. project_members — project ↔ user junction (one row per member)
4. tasks           — tasks, deleted with their project
"""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from teamtrack.db.base import Base, TimestampMixin


class UserRow(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(20), default="Member", nullable=False)
    password_hash = Column(String(255), nullable=True)

    __table_args__ = (
        CheckConstraint("role IN ('Admin', 'Manager', 'Member')", name="ck_users_role"),
    )

    def __repr__(self) -> str:
        return f"<UserRow(id={self.id}, email='{self.email}', role='{self.role}')>"


class ProjectRow(Base, TimestampMixin):
    __tablename__ = "projects"

    id = Column(String(32), primary_key=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    created_by = Column(String(32), ForeignKey("users.id"), nullable=False)
    status = Column(String(20), default="Active", nullable=False)

    members = relationship(
        "ProjectMemberRow",
        order_by="ProjectMemberRow.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    tasks = relationship("TaskRow", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("status IN ('Active', 'Completed')", name="ck_projects_status"),
    )

    def __repr__(self) -> str:
        return f"<ProjectRow(id={self.id}, title='{self.title}')>"


class ProjectMemberRow(Base):
    __tablename__ = "project_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(String(32), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_members"),
    )


class TaskRow(Base, TimestampMixin):
    __tablename__ = "tasks"

    id = Column(String(32), primary_key=True)
    project_id = Column(
        String(32), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    priority = Column(String(10), default="Medium", nullable=False)
    status = Column(String(20), default="Todo", nullable=False)
    assigned_to = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    due_date = Column(DateTime(timezone=True), nullable=False)

    assignee = relationship("UserRow", lazy="joined")

    __table_args__ = (
        CheckConstraint("priority IN ('Low', 'Medium', 'High')", name="ck_tasks_priority"),
        CheckConstraint("status IN ('Todo', 'InProgress', 'Done')", name="ck_tasks_status"),
    )

    def __repr__(self) -> str:
        return f"<TaskRow(id={self.id}, title='{self.title}', status='{self.status}')>"
