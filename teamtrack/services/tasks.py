"""Task operations within a project."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from teamtrack.engine.context import Actor, get_current_actor
from teamtrack.engine.errors import TeamTrackNotFoundError
from teamtrack.engine.logging import log, log_record_operation
from teamtrack.models import Task, TaskChanges, TaskDraft
from teamtrack.security.permissions import AccessGate, Action
from teamtrack.services.projects import parse
from teamtrack.store.base import Store

logger = logging.getLogger("teamtrack.services.tasks")


class TaskService:

    def __init__(self, store: Store, gate: Optional[AccessGate] = None):
        self._store = store
        self._gate = gate or AccessGate()

    def create(self, project_id: str, actor: Optional[Actor] = None, **fields: Any) -> Task:
        """
        Create a task in *project_id*.

        Fields: title, description, assigned_to, due_date, and optionally
        priority and status.
        """
        actor = actor or get_current_actor()
        project = self._store.find_project(project_id)
        self._gate.enforce(actor, Action.CREATE_TASK, project=project, resource_id=project_id)
        draft = parse(TaskDraft, "Please fill all the fields, task creation failed", **fields)

        task = Task(project_id=project_id, **draft.model_dump())
        self._store.add_task(task)
        log(log_record_operation("create", "task", task.id, actor.id))
        logger.info("Task %s created in project %s by %s", task.id, project_id, actor.id)
        return task

    def list(self, project_id: str, actor: Optional[Actor] = None) -> List[Task]:
        """Tasks of a project, each with its resolved assignee."""
        actor = actor or get_current_actor()
        project = self._store.find_project(project_id)
        self._gate.enforce(actor, Action.READ_TASK_LIST, project=project, resource_id=project_id)
        return self._store.find_tasks(project_id, with_assignee=True)

    def get(self, task_id: str, actor: Optional[Actor] = None) -> Task:
        actor = actor or get_current_actor()
        task = self._store.find_task(task_id, with_assignee=True)
        self._gate.enforce(actor, Action.READ_TASK, task=task, resource_id=task_id)
        return task

    def update(self, task_id: str, actor: Optional[Actor] = None, **changes: Any) -> Task:
        actor = actor or get_current_actor()
        task = self._store.find_task(task_id)
        self._gate.enforce(actor, Action.UPDATE_TASK, task=task, resource_id=task_id)

        values = parse(TaskChanges, "Invalid task fields", **changes).model_dump(exclude_none=True)
        if not values:
            return task
        updated = self._store.update_task(task_id, values)
        if updated is None:
            raise TeamTrackNotFoundError("Task not found", resource_type="task", resource_id=task_id)
        log(log_record_operation("update", "task", task_id, actor.id, fields_changed=sorted(values)))
        return updated

    def delete(self, task_id: str, actor: Optional[Actor] = None) -> None:
        actor = actor or get_current_actor()
        task = self._store.find_task(task_id)
        self._gate.enforce(actor, Action.DELETE_TASK, task=task, resource_id=task_id)
        self._store.delete_task(task_id)
        log(log_record_operation("delete", "task", task_id, actor.id))
        logger.info("Task %s deleted by %s", task_id, actor.id)
