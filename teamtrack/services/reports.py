"""
Report generation — weekly statistics and project summaries.

The project and its tasks are fetched concurrently (they do not depend on
each other), joined, authorized with the ReadProject rule, aggregated, and
handed to the assistant.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

from teamtrack.engine.config import ReportsConfig
from teamtrack.engine.context import Actor, get_current_actor
from teamtrack.models import Project, Task, utcnow
from teamtrack.reports.aggregator import WeeklyStats, build_summary_input, build_weekly_stats
from teamtrack.security.permissions import AccessGate, Action
from teamtrack.services.assistant import AssistantService
from teamtrack.store.base import Store

logger = logging.getLogger("teamtrack.services.reports")


class ReportService:

    def __init__(
        self,
        store: Store,
        assistant: AssistantService,
        gate: Optional[AccessGate] = None,
        config: Optional[ReportsConfig] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._store = store
        self._assistant = assistant
        self._gate = gate or AccessGate()
        self._config = config or ReportsConfig()
        self._clock = clock

    async def _fetch(self, actor: Optional[Actor], project_id: str) -> Tuple[Project, List[Task]]:
        project, tasks = await asyncio.gather(
            asyncio.to_thread(self._store.find_project, project_id),
            asyncio.to_thread(self._store.find_tasks, project_id, True),
        )
        self._gate.enforce(actor, Action.READ_PROJECT, project=project, resource_id=project_id)
        return project, tasks

    async def weekly_stats(self, project_id: str, actor: Optional[Actor] = None) -> WeeklyStats:
        actor = actor or get_current_actor()
        project, tasks = await self._fetch(actor, project_id)
        return build_weekly_stats(
            project.title,
            tasks,
            now=self._clock(),
            window=timedelta(days=self._config.window_days),
            limit=self._config.top_contributors,
        )

    async def weekly_report(self, project_id: str, actor: Optional[Actor] = None) -> str:
        stats = await self.weekly_stats(project_id, actor)
        logger.debug("Weekly stats for %s: %s", project_id, stats.model_dump())
        return await self._assistant.generate_weekly_report(stats)

    async def project_summary(self, project_id: str, actor: Optional[Actor] = None) -> str:
        actor = actor or get_current_actor()
        project, tasks = await self._fetch(actor, project_id)
        return await self._assistant.generate_summary(build_summary_input(project, tasks))
