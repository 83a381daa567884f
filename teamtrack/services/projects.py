"""
Project operations — create, list, read, update, delete, assign members.

Each operation resolves the actor, asks the gate, then touches the store.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from pydantic import BaseModel, ValidationError

from teamtrack.engine.context import Actor, get_current_actor
from teamtrack.engine.errors import TeamTrackNotFoundError, TeamTrackValidationError
from teamtrack.engine.logging import log, log_record_operation
from teamtrack.models import Project, ProjectChanges, ProjectDraft
from teamtrack.security.permissions import AccessGate, Action
from teamtrack.store.base import Store

logger = logging.getLogger("teamtrack.services.projects")


def parse(model: type, message: str, **fields: Any) -> BaseModel:
    """Build an input model, converting pydantic errors to TeamTrackValidationError."""
    try:
        return model(**fields)
    except ValidationError as e:
        raise TeamTrackValidationError(
            message, validation_errors=e.errors(include_url=False),
        ) from e


class ProjectService:

    def __init__(self, store: Store, gate: Optional[AccessGate] = None):
        self._store = store
        self._gate = gate or AccessGate()

    def create(self, title: str, description: str, actor: Optional[Actor] = None) -> Project:
        actor = actor or get_current_actor()
        self._gate.enforce(actor, Action.CREATE_PROJECT)
        draft = parse(ProjectDraft, "Please fill all the fields", title=title, description=description)

        project = Project(title=draft.title, description=draft.description, created_by=actor.id)
        self._store.add_project(project)
        log(log_record_operation("create", "project", project.id, actor.id))
        logger.info("Project %s created by %s", project.id, actor.id)
        return project

    def list(self, actor: Optional[Actor] = None) -> List[Project]:
        actor = actor or get_current_actor()
        projects = self._store.list_projects(member_id=self._gate.list_scope(actor))
        return self._gate.visible_projects(actor, projects)

    def get(self, project_id: str, actor: Optional[Actor] = None) -> Project:
        actor = actor or get_current_actor()
        project = self._store.find_project(project_id)
        self._gate.enforce(actor, Action.READ_PROJECT, project=project, resource_id=project_id)
        return project

    def update(self, project_id: str, actor: Optional[Actor] = None, **changes: Any) -> Project:
        """Change title, description or status. ``created_by`` cannot be changed."""
        actor = actor or get_current_actor()
        project = self._store.find_project(project_id)
        self._gate.enforce(actor, Action.UPDATE_PROJECT, project=project, resource_id=project_id)

        values = parse(ProjectChanges, "Invalid project fields", **changes).model_dump(exclude_none=True)
        if not values:
            return project
        updated = self._store.update_project(project_id, values)
        if updated is None:
            raise TeamTrackNotFoundError("Project not found", resource_type="project", resource_id=project_id)
        log(log_record_operation("update", "project", project_id, actor.id, fields_changed=sorted(values)))
        return updated

    def delete(self, project_id: str, actor: Optional[Actor] = None) -> None:
        """Delete a project together with its tasks."""
        actor = actor or get_current_actor()
        project = self._store.find_project(project_id)
        self._gate.enforce(actor, Action.DELETE_PROJECT, project=project, resource_id=project_id)
        self._store.delete_project(project_id)
        log(log_record_operation("delete", "project", project_id, actor.id))
        logger.info("Project %s deleted by %s", project_id, actor.id)

    def assign_member(self, project_id: str, member_id: str, actor: Optional[Actor] = None) -> Project:
        """
        Add *member_id* to the project.

        Raises:
            TeamTrackSecurityError for non-Admins.
            TeamTrackNotFoundError if the project or user does not exist.
            TeamTrackConflictError if the user is already a member.
        """
        actor = actor or get_current_actor()
        if not member_id:
            raise TeamTrackValidationError("Member ID is required")
        project = self._store.find_project(project_id)
        member = self._store.find_user(member_id)
        self._gate.enforce(
            actor, Action.ASSIGN_MEMBER,
            project=project, member_id=member_id, member=member, resource_id=project_id,
        )

        updated = self._store.assign_member(project_id, member_id)
        log(log_record_operation("assign_member", "project", project_id, actor.id, fields_changed=["assigned_members"]))
        logger.info("User %s assigned to project %s", member_id, project_id)
        return updated
