"""
TeamTrack Runtime — wires the configured collaborators together.

Usage:
    runtime = TeamTrackRuntime(load_config())
    runtime.startup()
    try:
        runtime.projects.list(actor)
    finally:
        await runtime.shutdown()
"""

from __future__ import annotations

import logging
from typing import Optional

from teamtrack.engine.config import TeamTrackConfig
from teamtrack.engine.logging import init_logging, log, log_system_event, shutdown_logging
from teamtrack.engine.security import AuthService, TokenService
from teamtrack.integrations.gemini import GeminiClient
from teamtrack.security.permissions import AccessGate
from teamtrack.services.assistant import AssistantService, TextGenerator
from teamtrack.services.projects import ProjectService
from teamtrack.services.reports import ReportService
from teamtrack.services.tasks import TaskService
from teamtrack.store.base import Store

logger = logging.getLogger("teamtrack.runtime")


class TeamTrackRuntime:
    """Holds one instance of each service, built from a TeamTrackConfig."""

    def __init__(
        self,
        config: TeamTrackConfig,
        store: Optional[Store] = None,
        generator: Optional[TextGenerator] = None,
    ):
        self.config = config
        self._store = store
        self._generator = generator
        self._started = False

    def startup(self, create_tables: bool = False) -> None:
        if self._started:
            return
        if self.config.logging.enabled:
            init_logging(self.config.logging.directory, self.config.logging.level)

        if self._store is None:
            from teamtrack.db.session import init_db
            from teamtrack.store.sql import SqlStore

            factory = init_db(
                self.config.database.url,
                echo=self.config.database.echo,
                create_tables=create_tables,
            )
            self._store = SqlStore(factory)
        if self._generator is None:
            self._generator = GeminiClient.from_config(self.config.assistant)

        self.gate = AccessGate()
        self.tokens = TokenService.from_config(self.config.security)
        self.auth = AuthService(
            self._store,
            self.tokens,
            bootstrap=self.config.bootstrap,
            bcrypt_rounds=self.config.security.bcrypt_rounds,
        )
        self.projects = ProjectService(self._store, self.gate)
        self.tasks = TaskService(self._store, self.gate)
        self.assistant = AssistantService(self._generator, timeout=self.config.assistant.timeout)
        self.reports = ReportService(self._store, self.assistant, self.gate, self.config.reports)

        self._started = True
        log(log_system_event("startup", details={"environment": self.config.environment}))
        logger.info("%s runtime started (%s)", self.config.name, self.config.environment)

    @property
    def store(self) -> Store:
        if self._store is None:
            raise RuntimeError("Runtime not started. Call startup() first.")
        return self._store

    async def shutdown(self) -> None:
        if not self._started:
            return
        aclose = getattr(self._generator, "aclose", None)
        if aclose is not None:
            await aclose()
        self._store.close()
        log(log_system_event("shutdown"))
        shutdown_logging()
        self._started = False
        logger.info("Runtime stopped")
