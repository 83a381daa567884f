"""TeamTrack Security — the access gate for project and task actions."""

from teamtrack.security.permissions import AccessGate, Action, Decision, DenyReason  # noqa: F401

__all__ = ["AccessGate", "Action", "Decision", "DenyReason"]
