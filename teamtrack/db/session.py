"""
TeamTrack Database Session Management.

``init_db`` is the single entry point for engine creation; ``session_scope``
wraps a unit of work with commit/rollback.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session, sessionmaker

from teamtrack.db.base import Base, create_db_engine

logger = logging.getLogger("teamtrack.db.session")


def init_db(db_url: str, echo: bool = False, create_tables: bool = False) -> sessionmaker:
    """
    Create the engine for *db_url* and return a session factory bound to it.

    Args:
        db_url: SQLAlchemy URL (sqlite:///teamtrack.db, postgresql://...).
        echo: Log emitted SQL.
        create_tables: Run Base.metadata.create_all(). Used by ``teamtrack init``
            and tests.
    """
    import teamtrack.db.models  # noqa: F401  registers tables on Base.metadata

    engine = create_db_engine(db_url, echo=echo)
    if create_tables:
        Base.metadata.create_all(engine)
        logger.info("Created tables on %s", engine.url.render_as_string(hide_password=True))
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Context manager for DB sessions with auto-commit/rollback.

    Usage:
        with session_scope(factory) as session:
            row = session.get(UserRow, user_id)
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def dispose(factory: sessionmaker) -> None:
    """Close the connection pool behind *factory*."""
    engine = factory.kw.get("bind")
    if engine is not None:
        engine.dispose()
