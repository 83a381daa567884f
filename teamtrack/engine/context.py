"""
TeamTrack request context — the authenticated actor for the current request.

The actor is derived from a verified credential at request time and is never
persisted. Services accept it explicitly and fall back to the one bound here.

Usage:
    from teamtrack.engine.context import Actor, actor_scope, get_current_actor

    with actor_scope(Actor(id="u1", role=Role.MEMBER)):
        projects.list()
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

from teamtrack.models import Role

current_actor: ContextVar[Optional["Actor"]] = ContextVar("current_actor", default=None)


@dataclass(frozen=True)
class Actor:
    """Who is performing the request."""

    id: str
    role: Role

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "role": self.role.value}


def set_current_actor(actor: Optional[Actor]) -> None:
    current_actor.set(actor)


def get_current_actor() -> Optional[Actor]:
    """Return the actor bound to the current thread/task, or None."""
    return current_actor.get()


def clear_current_actor() -> None:
    current_actor.set(None)


@contextmanager
def actor_scope(actor: Optional[Actor]) -> Iterator[Optional[Actor]]:
    """Bind *actor* for the duration of the block, restoring the previous one."""
    token = current_actor.set(actor)
    try:
        yield actor
    finally:
        current_actor.reset(token)
