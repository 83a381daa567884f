"""
TeamTrack Error Hierarchy — Structured exceptions with stable error kinds.

Every error carries a stable ``kind`` and an HTTP-style ``status_code`` so the
surface layer can map failures without inspecting messages.

Hierarchy:
    TeamTrackError
    ├── TeamTrackAuthenticationError — No or invalid actor (401)
    ├── TeamTrackSecurityError       — Authenticated but denied (403)
    ├── TeamTrackNotFoundError       — Project/task/user absent (404)
    ├── TeamTrackConflictError       — Duplicate member / email (409)
    ├── TeamTrackValidationError     — Input validation failed (400)
    ├── TeamTrackUpstreamError       — Text-generation call failed (502)
    └── TeamTrackConfigError         — Invalid teamtrack.yaml (500)
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class TeamTrackError(Exception):
    """
    Base error for all TeamTrack failures.
    All context is serializable to JSON for the audit log.
    """

    kind: str = "Error"
    status_code: int = 500

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.error_type: str = self.__class__.__name__
        self.actor_id: Optional[str] = context.get("actor_id")
        self.resource_type: Optional[str] = context.get("resource_type")
        self.resource_id: Optional[str] = context.get("resource_id")
        self.action: Optional[str] = context.get("action")
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict for logging and responses."""
        return {
            "error_type": self.error_type,
            "kind": self.kind,
            "status_code": self.status_code,
            "message": self.message,
            "actor_id": self.actor_id,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "action": self.action,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("actor_id", "resource_type", "resource_id", "action")
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.action:
            parts.append(f"action={self.action}")
        if self.resource_id:
            parts.append(f"{self.resource_type or 'resource'}={self.resource_id}")
        return " | ".join(parts)


class TeamTrackAuthenticationError(TeamTrackError):
    """No actor, or the presented credential could not be verified."""

    kind = "Unauthenticated"
    status_code = 401


class TeamTrackSecurityError(TeamTrackError):
    """
    Access denied by the authorization gate.
    Includes the actor role that was rejected.
    """

    kind = "Forbidden"
    status_code = 403

    def __init__(self, message: str, **context: Any):
        self.role: Optional[str] = context.get("role")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["role"] = self.role
        return d


class TeamTrackNotFoundError(TeamTrackError):
    """Referenced project, task or user does not exist."""

    kind = "NotFound"
    status_code = 404


class TeamTrackConflictError(TeamTrackError):
    """The operation would duplicate existing state (member, email)."""

    kind = "Conflict"
    status_code = 409


class TeamTrackValidationError(TeamTrackError):
    """
    Input validation failed (pydantic or required fields).
    Includes field-level error details.
    """

    kind = "Validation"
    status_code = 400

    def __init__(self, message: str, **context: Any):
        self.validation_errors: Optional[List[Dict[str, Any]]] = context.get("validation_errors")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["validation_errors"] = self.validation_errors
        return d


class TeamTrackUpstreamError(TeamTrackError):
    """Text-generation collaborator failed. Always recovered by a fallback."""

    kind = "UpstreamFailure"
    status_code = 502

    def __init__(self, message: str, **context: Any):
        self.provider: Optional[str] = context.get("provider")
        self.upstream_status: Optional[int] = context.get("upstream_status")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["provider"] = self.provider
        d["upstream_status"] = self.upstream_status
        return d


class TeamTrackConfigError(TeamTrackError):
    """Configuration error — invalid or unreadable teamtrack.yaml."""

    kind = "Config"
    status_code = 500
