"""
TeamTrack domain models — users, projects and tasks as pydantic snapshots.

The store returns these snapshots; the gate and the aggregator only ever read
them. ``Task.assigned_to`` is always a scalar user id. The resolved assignee,
when the store was asked for it, lives in the separate ``assignee`` field.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are read as UTC; aware ones are converted to it."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Role(str, Enum):
    ADMIN = "Admin"
    MANAGER = "Manager"
    MEMBER = "Member"


class ProjectStatus(str, Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"


class TaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TaskStatus(str, Enum):
    TODO = "Todo"
    IN_PROGRESS = "InProgress"
    DONE = "Done"


class UserSummary(BaseModel):
    """Public identity of a user, as embedded in populated tasks."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str


class User(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=255)
    role: Role = Role.MEMBER
    password_hash: Optional[str] = Field(default=None, exclude=True, repr=False)
    created_at: datetime = Field(default_factory=utcnow)

    utc_dates = field_validator("created_at")(as_utc)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    def summary(self) -> UserSummary:
        return UserSummary(id=self.id, name=self.name, email=self.email)


class Project(BaseModel):
    id: str = Field(default_factory=new_id)
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    created_by: str
    assigned_members: List[str] = Field(default_factory=list)
    status: ProjectStatus = ProjectStatus.ACTIVE
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    utc_dates = field_validator("created_at", "updated_at")(as_utc)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return v.strip()

    @field_validator("assigned_members")
    @classmethod
    def dedupe_members(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))

    def has_member(self, user_id: str) -> bool:
        return user_id in self.assigned_members


class Task(BaseModel):
    id: str = Field(default_factory=new_id)
    project_id: str
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    assigned_to: str
    due_date: datetime
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # Populated only when the store is asked with_assignee=True
    assignee: Optional[UserSummary] = None

    utc_dates = field_validator("due_date", "created_at", "updated_at")(as_utc)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return v.strip()


# ---------------------------------------------------------------------------
# Operation inputs
# ---------------------------------------------------------------------------

class ProjectDraft(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)


class ProjectChanges(BaseModel):
    """Mutable project fields. ``created_by`` is deliberately absent."""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1)
    status: Optional[ProjectStatus] = None


class TaskDraft(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    assigned_to: str = Field(min_length=1)
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    due_date: datetime

    utc_dates = field_validator("due_date")(as_utc)


class TaskChanges(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1)
    assigned_to: Optional[str] = Field(default=None, min_length=1)
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[datetime] = None

    utc_dates = field_validator("due_date")(as_utc)
