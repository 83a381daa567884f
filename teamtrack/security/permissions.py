"""
TeamTrack Access Gate — role-based authorization for project and task actions.

One decision table covers every resource-scoped operation. Services never
compare role strings themselves; they ask the gate.

Evaluation order (first match wins):
    1. No actor                          → Unauthenticated
    2. Role-only rule fails              → Forbidden   (before any existence check,
                                                        unless the rule is existence_first)
    3. Required resource is missing      → NotFound
    4. Membership / assignee rule fails  → Forbidden
    5. AssignMember: already assigned    → DuplicateMember
                     target user missing → NotFound

The gate is pure: it reads the snapshots it is given and holds no state, so a
single instance is shared across concurrent requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from teamtrack.engine.context import Actor
from teamtrack.engine.errors import (
    TeamTrackAuthenticationError,
    TeamTrackConflictError,
    TeamTrackError,
    TeamTrackNotFoundError,
    TeamTrackSecurityError,
)
from teamtrack.engine.logging import log, log_access_decision
from teamtrack.models import Project, Role, Task, User

logger = logging.getLogger("teamtrack.security.permissions")


class Action(str, Enum):
    CREATE_PROJECT = "CreateProject"
    READ_PROJECT_LIST = "ReadProjectList"
    READ_PROJECT = "ReadProject"
    UPDATE_PROJECT = "UpdateProject"
    DELETE_PROJECT = "DeleteProject"
    ASSIGN_MEMBER = "AssignMember"
    CREATE_TASK = "CreateTask"
    READ_TASK_LIST = "ReadTaskList"
    READ_TASK = "ReadTask"
    UPDATE_TASK = "UpdateTask"
    DELETE_TASK = "DeleteTask"


class DenyReason(str, Enum):
    UNAUTHENTICATED = "Unauthenticated"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    DUPLICATE_MEMBER = "DuplicateMember"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None
    resource_type: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


# ---------------------------------------------------------------------------
# Decision table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Rule:
    """
    roles: roles allowed outright, without looking at the resource.
    resource: "project" / "task" when the action needs that snapshot.
    grant: extra allowance for actors outside ``roles`` (membership, assignee).
    existence_first: look the resource up before the role check.
    """

    roles: frozenset
    resource: Optional[str] = None
    grant: Optional[Callable[[Actor, Optional[Project], Optional[Task]], bool]] = None
    existence_first: bool = False

    @property
    def role_only(self) -> bool:
        return self.grant is None


def _is_member(actor: Actor, project: Optional[Project], task: Optional[Task]) -> bool:
    return project is not None and project.has_member(actor.id)


def _is_assignee(actor: Actor, project: Optional[Project], task: Optional[Task]) -> bool:
    return task is not None and task.assigned_to == actor.id


def _anyone(actor: Actor, project: Optional[Project], task: Optional[Task]) -> bool:
    return True


ADMIN = frozenset({Role.ADMIN})
ADMIN_OR_MANAGER = frozenset({Role.ADMIN, Role.MANAGER})

DECISION_TABLE: Dict[Action, Rule] = {
    Action.CREATE_PROJECT: Rule(roles=ADMIN),
    # Listing is open to every actor; visible_projects() narrows it for Members.
    Action.READ_PROJECT_LIST: Rule(roles=ADMIN_OR_MANAGER, grant=_anyone),
    Action.READ_PROJECT: Rule(roles=ADMIN, resource="project", grant=_is_member),
    Action.UPDATE_PROJECT: Rule(roles=ADMIN_OR_MANAGER, resource="project"),
    Action.DELETE_PROJECT: Rule(roles=ADMIN, resource="project"),
    Action.ASSIGN_MEMBER: Rule(roles=ADMIN, resource="project"),
    Action.CREATE_TASK: Rule(roles=ADMIN, resource="project", grant=_is_member),
    Action.READ_TASK_LIST: Rule(roles=ADMIN, resource="project", grant=_is_member),
    Action.READ_TASK: Rule(roles=ADMIN, resource="task", grant=_is_assignee),
    Action.UPDATE_TASK: Rule(roles=ADMIN_OR_MANAGER, resource="task", grant=_is_assignee),
    Action.DELETE_TASK: Rule(roles=ADMIN, resource="task", existence_first=True),
}


class AccessGate:
    """
    Decides whether an actor may perform an action on a resource snapshot.

    ``decide`` returns a Decision; ``enforce`` raises the matching error kind
    and writes a security audit entry for denials.
    """

    def __init__(self, table: Optional[Dict[Action, Rule]] = None):
        self._table = table or DECISION_TABLE

    def decide(
        self,
        actor: Optional[Actor],
        action: Action,
        *,
        project: Optional[Project] = None,
        task: Optional[Task] = None,
        member_id: Optional[str] = None,
        member: Optional[User] = None,
    ) -> Decision:
        rule = self._table[action]

        if actor is None:
            return Decision(False, DenyReason.UNAUTHENTICATED)

        privileged = actor.role in rule.roles
        missing = _missing_resource(rule, project, task)

        if rule.existence_first and missing:
            return Decision(False, DenyReason.NOT_FOUND, missing)
        if rule.role_only and not privileged:
            return Decision(False, DenyReason.FORBIDDEN)
        if missing:
            return Decision(False, DenyReason.NOT_FOUND, missing)

        if not privileged and not rule.grant(actor, project, task):
            return Decision(False, DenyReason.FORBIDDEN)

        if action is Action.ASSIGN_MEMBER:
            if project.has_member(member_id or (member.id if member else "")):
                return Decision(False, DenyReason.DUPLICATE_MEMBER)
            if member is None:
                return Decision(False, DenyReason.NOT_FOUND, "user")

        return ALLOW

    def enforce(
        self,
        actor: Optional[Actor],
        action: Action,
        *,
        project: Optional[Project] = None,
        task: Optional[Task] = None,
        member_id: Optional[str] = None,
        member: Optional[User] = None,
        resource_id: Optional[str] = None,
    ) -> None:
        """Raise the error kind matching a denial; return silently on allow."""
        decision = self.decide(
            actor, action, project=project, task=task, member_id=member_id, member=member,
        )
        if decision.allowed:
            return

        resource_type = decision.resource_type or _resource_type_of(action)
        if resource_id is None:
            resource_id = (task.id if task else None) or (project.id if project else None)

        log(log_access_decision(
            action=action.value,
            allowed=False,
            actor_id=actor.id if actor else None,
            role=actor.role.value if actor else None,
            resource_type=resource_type,
            resource_id=resource_id,
            reason=decision.reason.value,
        ))
        logger.debug("Denied %s for %s: %s", action.value, actor, decision.reason.value)
        raise _error_for(decision, action, actor, resource_type, resource_id, member_id)

    def list_scope(self, actor: Optional[Actor]) -> Optional[str]:
        """Member id to filter a project listing by, or None when the actor sees every project."""
        self.enforce(actor, Action.READ_PROJECT_LIST)
        if actor.role in self._table[Action.READ_PROJECT_LIST].roles:
            return None
        return actor.id

    def visible_projects(self, actor: Optional[Actor], projects: Iterable[Project]) -> List[Project]:
        """Apply the ReadProjectList rule to a project collection."""
        self.enforce(actor, Action.READ_PROJECT_LIST)
        if actor.role in self._table[Action.READ_PROJECT_LIST].roles:
            return list(projects)
        return [p for p in projects if p.has_member(actor.id)]


def _missing_resource(rule: Rule, project: Optional[Project], task: Optional[Task]) -> Optional[str]:
    if rule.resource == "project" and project is None:
        return "project"
    if rule.resource == "task" and task is None:
        return "task"
    return None


def _resource_type_of(action: Action) -> str:
    return "task" if action.value.endswith(("Task", "TaskList")) else "project"


def _error_for(
    decision: Decision,
    action: Action,
    actor: Optional[Actor],
    resource_type: str,
    resource_id: Optional[str],
    member_id: Optional[str],
) -> TeamTrackError:
    context = {
        "action": action.value,
        "actor_id": actor.id if actor else None,
        "resource_type": resource_type,
        "resource_id": resource_id,
    }
    if decision.reason is DenyReason.UNAUTHENTICATED:
        return TeamTrackAuthenticationError("Not authenticated", **context)
    if decision.reason is DenyReason.NOT_FOUND:
        if resource_type == "user":
            context["resource_id"] = member_id
        return TeamTrackNotFoundError(f"{resource_type.capitalize()} not found", **context)
    if decision.reason is DenyReason.DUPLICATE_MEMBER:
        return TeamTrackConflictError(
            "Member already assigned to this project", member_id=member_id, **context,
        )
    return TeamTrackSecurityError(
        f"Access denied: {action.value}", role=actor.role.value, **context,
    )
