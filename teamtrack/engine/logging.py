"""
TeamTrack Logging — Structured JSON-lines audit files.

Implements:
- FileLogger: Per-object-type, per-category log files (daily rotation)
- Log entry builders for access decisions, record operations, assistant calls
- A process-wide logger set up by init_logging() at startup

Files: {log_dir}/{object_type}/{category}/{YYYY-MM-DD}.jsonl
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger("teamtrack.engine.logging")

# Valid object types and their permitted categories
OBJECT_TYPE_CATEGORIES = {
    "projects": ["execution", "security"],
    "tasks": ["execution", "security"],
    "users": ["execution", "security"],
    "assistant": ["execution"],
    "reports": ["execution", "security"],
    "system": ["execution", "security"],
}


class LogEntry:
    """A structured log entry destined for a specific file."""

    __slots__ = ("object_type", "category", "data")

    def __init__(self, object_type: str, category: str, data: Dict[str, Any]):
        self.object_type = object_type
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes structured JSON log entries to per-object-type, per-category files.

    Thread-safe — uses a lock per file path.
    """

    def __init__(self, log_dir: str = "logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        for obj_type, categories in OBJECT_TYPE_CATEGORIES.items():
            for cat in categories:
                (self._log_dir / obj_type / cat).mkdir(parents=True, exist_ok=True)

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def write(self, entry: LogEntry) -> None:
        self.write_batch([entry])

    def write_batch(self, entries: List[LogEntry]) -> None:
        """Write entries, grouping by target file."""
        grouped: Dict[str, List[LogEntry]] = defaultdict(list)
        for entry in entries:
            grouped[str(self._resolve_path(entry.object_type, entry.category))].append(entry)

        for file_path, batch in grouped.items():
            with self._file_locks[file_path]:
                with open(file_path, "a", encoding="utf-8") as f:
                    for entry in batch:
                        f.write(entry.to_json())
                        f.write("\n")

    def _resolve_path(self, object_type: str, category: str) -> Path:
        if category not in OBJECT_TYPE_CATEGORIES.get(object_type, ()):
            object_type, category = "system", "execution"
        return self._log_dir / object_type / category / f"{date.today().isoformat()}.jsonl"

    def query(
        self,
        object_type: str,
        category: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """
        Read entries back for an object_type/category, newest first.

        Args:
            start_date: Earliest day to include (defaults to 7 days before end_date).
            end_date: Latest day to include (defaults to today).
            filters: Exact-match constraints on top-level keys.
            limit: Max number of entries to return.
        """
        end_date = end_date or date.today()
        start_date = start_date or end_date - timedelta(days=7)

        base = self._log_dir / object_type / category
        if not base.exists():
            return []

        results: List[Dict[str, Any]] = []
        current = end_date
        while current >= start_date and len(results) < limit:
            path = base / f"{current.isoformat()}.jsonl"
            if path.exists():
                day = self._read_jsonl(path, filters)
                day.reverse()
                results.extend(day[: limit - len(results)])
            current -= timedelta(days=1)
        return results

    @staticmethod
    def _read_jsonl(path: Path, filters: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
        entries: List[Dict[str, Any]] = []
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError:
                        continue
                    if filters and not all(data.get(k) == v for k, v in filters.items()):
                        continue
                    entries.append(data)
        except OSError as exc:
            logger.warning("Could not read log file %s: %s", path, exc)
        return entries


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(
    event: str,
    level: str,
    actor_id: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    if actor_id is not None:
        entry["actor_id"] = actor_id
    entry.update(extra)
    return entry


def _object_type_for(resource_type: str) -> str:
    plural = f"{resource_type}s" if not resource_type.endswith("s") else resource_type
    return plural if plural in OBJECT_TYPE_CATEGORIES else "system"


def log_access_decision(
    action: str,
    allowed: bool,
    actor_id: Optional[str],
    role: Optional[str],
    resource_type: str,
    resource_id: Optional[str] = None,
    reason: Optional[str] = None,
) -> LogEntry:
    """Build an access-decision entry (written for denials)."""
    data = _base_entry(
        event="access_allowed" if allowed else "access_denied",
        level="INFO" if allowed else "WARNING",
        actor_id=actor_id,
        role=role,
        action=action,
        resource_type=resource_type,
    )
    if resource_id is not None:
        data["resource_id"] = resource_id
    if reason:
        data["reason"] = reason
    return LogEntry(_object_type_for(resource_type), "security", data)


def log_record_operation(
    operation: str,
    resource_type: str,
    resource_id: str,
    actor_id: Optional[str],
    fields_changed: Optional[List[str]] = None,
) -> LogEntry:
    """Build a create/update/delete/assign entry."""
    data = _base_entry(
        event=f"{resource_type}_{operation}",
        level="INFO",
        actor_id=actor_id,
        operation=operation,
        resource_id=resource_id,
    )
    if fields_changed:
        data["fields_changed"] = fields_changed
    return LogEntry(_object_type_for(resource_type), "execution", data)


def log_assistant_call(
    operation: str,
    duration_ms: float,
    success: bool,
    used_fallback: bool,
    error: Optional[str] = None,
) -> LogEntry:
    """Build a text-generation call entry."""
    data = _base_entry(
        event="assistant_called",
        level="INFO" if success else "WARNING",
        operation=operation,
        duration_ms=round(duration_ms, 2),
        success=success,
        used_fallback=used_fallback,
    )
    if error:
        data["error"] = error
    return LogEntry("assistant", "execution", data)


def log_system_event(
    event: str,
    level: str = "INFO",
    details: Optional[Dict[str, Any]] = None,
) -> LogEntry:
    """Build a system event entry (startup, shutdown, seeding)."""
    data = _base_entry(event=event, level=level)
    if details:
        data["details"] = details
    return LogEntry("system", "execution", data)


# ---------------------------------------------------------------------------
# Process-wide file logger
# ---------------------------------------------------------------------------

_file_logger: Optional[FileLogger] = None


def init_logging(log_dir: str = "logs", level: str = "INFO") -> FileLogger:
    """Initialize the global file logger and the stdlib logger level."""
    global _file_logger
    logging.getLogger("teamtrack").setLevel(level)
    _file_logger = FileLogger(log_dir=log_dir)
    logger.info("Audit logging to %s", _file_logger.log_dir)
    return _file_logger


def get_file_logger() -> Optional[FileLogger]:
    return _file_logger


def log(entry: LogEntry) -> bool:
    """Write an entry to the global file logger. No-op until initialized."""
    if _file_logger is None:
        return False
    try:
        _file_logger.write(entry)
    except OSError as e:
        logger.error("Audit log write failed: %s", e)
        return False
    return True


def shutdown_logging() -> None:
    global _file_logger
    _file_logger = None
