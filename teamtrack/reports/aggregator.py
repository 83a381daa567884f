"""Aggregation rules — reduce a project's tasks to weekly-report statistics."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel

from teamtrack.models import Project, Task, TaskPriority, TaskStatus, as_utc

DEFAULT_WINDOW = timedelta(days=7)
DEFAULT_TOP_N = 3
UNKNOWN_CONTRIBUTOR = "Unknown"
NO_CONTRIBUTORS = "No contributors"


class PriorityBreakdown(BaseModel):
    high: int = 0
    medium: int = 0
    low: int = 0

    @property
    def total(self) -> int:
        return self.high + self.medium + self.low


class WeeklyStats(BaseModel):
    project_title: str
    tasks_completed: int
    overdue_tasks: int
    top_contributors: str
    priority_breakdown: PriorityBreakdown


class TaskLine(BaseModel):
    title: str
    status: str


class ProjectSummaryInput(BaseModel):
    project_title: str
    project_description: str
    tasks: List[TaskLine]


def completed_within(
    tasks: Iterable[Task],
    now: datetime,
    window: timedelta = DEFAULT_WINDOW,
) -> List[Task]:
    """Tasks marked Done whose last update falls inside the window ending at *now*."""
    since = as_utc(now) - window
    return [t for t in tasks if t.status is TaskStatus.DONE and as_utc(t.updated_at) >= since]


def count_overdue(tasks: Iterable[Task], now: datetime) -> int:
    now = as_utc(now)
    return sum(1 for t in tasks if as_utc(t.due_date) < now and t.status is not TaskStatus.DONE)


def priority_breakdown(tasks: Iterable[Task]) -> PriorityBreakdown:
    counts = Counter(t.priority for t in tasks)
    return PriorityBreakdown(
        high=counts[TaskPriority.HIGH],
        medium=counts[TaskPriority.MEDIUM],
        low=counts[TaskPriority.LOW],
    )


def contributor_name(task: Task) -> str:
    if task.assignee is not None and task.assignee.name:
        return task.assignee.name
    return UNKNOWN_CONTRIBUTOR


def top_contributors(completed: Sequence[Task], limit: int = DEFAULT_TOP_N) -> str:
    """
    Rank assignees of *completed* by task count.

    Ties keep first-seen order (Counter preserves insertion order and
    ``sorted`` is stable).
    """
    counts = Counter(contributor_name(t) for t in completed)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:limit]
    rendered = ", ".join(f"{name} ({count} tasks)" for name, count in ranked)
    return rendered or NO_CONTRIBUTORS


def build_weekly_stats(
    project_title: str,
    tasks: Sequence[Task],
    now: datetime,
    window: timedelta = DEFAULT_WINDOW,
    limit: int = DEFAULT_TOP_N,
) -> WeeklyStats:
    completed = completed_within(tasks, now, window)
    return WeeklyStats(
        project_title=project_title,
        tasks_completed=len(completed),
        overdue_tasks=count_overdue(tasks, now),
        top_contributors=top_contributors(completed, limit),
        priority_breakdown=priority_breakdown(tasks),
    )


def build_summary_input(project: Project, tasks: Optional[Iterable[Task]] = None) -> ProjectSummaryInput:
    """Shape a project and its tasks for the summary prompt; no aggregation."""
    return ProjectSummaryInput(
        project_title=project.title,
        project_description=project.description,
        tasks=[TaskLine(title=t.title, status=t.status.value) for t in tasks or ()],
    )
