"""
TeamTrack Database Base — SQLAlchemy declarative base, mixins and engine factory.

Provides:
- Base: SQLAlchemy declarative base for all TeamTrack tables
- TimestampMixin: created_at, updated_at
- create_db_engine: engine factory with SQLite-friendly defaults
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column, DateTime, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all TeamTrack models."""
    pass


class TimestampMixin:
    """Adds created_at and updated_at columns."""
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)


def create_db_engine(url: str, echo: bool = False, **kwargs: Any) -> Engine:
    """
    Create an engine for *url*.

    SQLite connections are shared with worker threads (report fetches run
    through asyncio.to_thread), so same-thread checking is disabled there.
    """
    if url.startswith("sqlite"):
        connect_args = dict(kwargs.pop("connect_args", {}))
        connect_args.setdefault("check_same_thread", False)
        kwargs["connect_args"] = connect_args
    return create_engine(url, echo=echo, **kwargs)
