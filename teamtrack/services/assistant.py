"""
Assistant — natural-language text from task and project data.

Every operation returns a usable string: upstream errors and timeouts are
logged and replaced by a fixed fallback for that call site.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional, Protocol

from teamtrack.engine.errors import TeamTrackUpstreamError, TeamTrackValidationError
from teamtrack.engine.logging import log, log_assistant_call
from teamtrack.models import TaskPriority
from teamtrack.reports.aggregator import ProjectSummaryInput, WeeklyStats

logger = logging.getLogger("teamtrack.services.assistant")

EMPTY_DESCRIPTION = "Complete the task as described."
DEFAULT_PRIORITY = TaskPriority.MEDIUM.value
SUMMARY_UNAVAILABLE = "Project summary not available."
REPORT_UNAVAILABLE = "Weekly report not available."


def description_fallback(title: str) -> str:
    return f"Complete the task: {title}. Ensure quality standards are met."


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> str:
        ...


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

def description_prompt(title: str) -> str:
    return (
        "You are a helpful project management assistant. Write a clear, concise "
        f'and actionable task description (2-3 sentences) for the task: "{title}"'
    )


def priority_prompt(title: str, description: str) -> str:
    return (
        f'You are a project management assistant. Given the task title "{title}" '
        f'and description "{description}", answer with exactly one priority level: '
        "Low, Medium or High. Weigh urgency, impact and dependencies."
    )


def summary_prompt(data: ProjectSummaryInput) -> str:
    tasks = "; ".join(f'Task: "{t.title}", Status: "{t.status}"' for t in data.tasks)
    return (
        f'You are a project management assistant. Summarize the current status of the project "{data.project_title}". '
        f'Project description: "{data.project_description}". '
        f"Tasks: {tasks or 'none'}. "
        "Give a concise summary highlighting key points and overall progress."
    )


def weekly_report_prompt(stats: WeeklyStats) -> str:
    pb = stats.priority_breakdown
    return (
        f'You are a project management assistant. Write a weekly report for the project "{stats.project_title}". '
        f"Tasks completed this week: {stats.tasks_completed}. "
        f"Overdue tasks: {stats.overdue_tasks}. "
        f"Top contributors this week: {stats.top_contributors}. "
        f"Priority breakdown: High - {pb.high}, Medium - {pb.medium}, Low - {pb.low}. "
        "Summarize the project's current status and give recommendations for the coming week."
    )


class AssistantService:
    """Wraps a TextGenerator with timeouts, logging and per-call fallbacks."""

    def __init__(self, generator: TextGenerator, timeout: float = 30.0):
        self._generator = generator
        self._timeout = timeout

    async def _call(self, operation: str, prompt: str) -> Optional[str]:
        """Run the generator; None means the upstream call failed."""
        start = time.monotonic()
        try:
            text = await asyncio.wait_for(self._generator.generate(prompt), timeout=self._timeout)
        except (TeamTrackUpstreamError, asyncio.TimeoutError) as e:
            error = str(e) or e.__class__.__name__
            logger.warning("Assistant %s failed: %s", operation, error)
            log(log_assistant_call(
                operation, (time.monotonic() - start) * 1000,
                success=False, used_fallback=True, error=error,
            ))
            return None

        text = (text or "").strip()
        log(log_assistant_call(
            operation, (time.monotonic() - start) * 1000,
            success=True, used_fallback=not text,
        ))
        return text

    async def generate_task_description(self, title: str) -> str:
        if not title or not title.strip():
            raise TeamTrackValidationError("Title is required to generate description")
        text = await self._call("generate_description", description_prompt(title))
        if text is None:
            return description_fallback(title)
        return text or EMPTY_DESCRIPTION

    async def suggest_priority(self, title: str, description: str) -> str:
        if not title or not description:
            raise TeamTrackValidationError("Title and description are required to suggest priority")
        text = await self._call("suggest_priority", priority_prompt(title, description))
        candidate = (text or "").strip().strip(".").lower()
        for priority in TaskPriority:
            if candidate == priority.value.lower():
                return priority.value
        return DEFAULT_PRIORITY

    async def generate_summary(self, data: ProjectSummaryInput) -> str:
        text = await self._call("generate_summary", summary_prompt(data))
        return text or SUMMARY_UNAVAILABLE

    async def generate_weekly_report(self, stats: WeeklyStats) -> str:
        text = await self._call("generate_weekly_report", weekly_report_prompt(stats))
        return text or REPORT_UNAVAILABLE
