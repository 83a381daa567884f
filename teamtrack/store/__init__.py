"""Persistence backends."""

from teamtrack.store.base import Store  # noqa: F401
from teamtrack.store.memory import MemoryStore  # noqa: F401
from teamtrack.store.sql import SqlStore  # noqa: F401

__all__ = ["Store", "MemoryStore", "SqlStore"]
