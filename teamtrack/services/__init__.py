"""TeamTrack Services — project, task, assistant and report operations."""

from teamtrack.services.assistant import AssistantService  # noqa: F401
from teamtrack.services.projects import ProjectService  # noqa: F401
from teamtrack.services.reports import ReportService  # noqa: F401
from teamtrack.services.tasks import TaskService  # noqa: F401

__all__ = ["AssistantService", "ProjectService", "ReportService", "TaskService"]
