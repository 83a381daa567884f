"""TeamTrack Engine — config, errors, request context, audit logging, authentication."""

from teamtrack.engine.context import Actor, actor_scope, get_current_actor  # noqa: F401
from teamtrack.engine.errors import TeamTrackError  # noqa: F401

__all__ = [
    "Actor",
    "actor_scope",
    "get_current_actor",
    "TeamTrackError",
]
