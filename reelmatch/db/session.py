"""
Database session management for reelmatch.

Provides session factory and initialization utilities.
"""

from pathlib import Path
from typing import Optional, Union
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.engine import Engine

from .models import Base

# Global session factory
_SessionFactory: Optional[sessionmaker] = None
_engine: Optional[Engine] = None


def database_url(target: Union[str, Path]) -> str:
    """
    Turn a database URL or a filesystem path into a SQLAlchemy URL.

    A directory gets a ``reelmatch.db`` file inside it.
    """
    target_str = str(target)
    if '://' in target_str:
        return target_str

    path = Path(target_str)
    if path.suffix != '.db':
        path.mkdir(parents=True, exist_ok=True)
        path = path / 'reelmatch.db'
    else:
        path.parent.mkdir(parents=True, exist_ok=True)
    return f'sqlite:///{path}'


def init_db(target: Union[str, Path], echo: bool = False) -> Engine:
    """
    Initialize database and create all tables.

    Args:
        target: Database URL, SQLite file path, or directory
        echo: If True, log all SQL statements (debug mode)

    Returns:
        SQLAlchemy engine
    """
    global _engine, _SessionFactory

    db_url = database_url(target)
    _engine = create_engine(db_url, echo=echo)

    if _engine.dialect.name == 'sqlite':
        # Enable foreign keys for SQLite
        @event.listens_for(_engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    # Create all tables
    Base.metadata.create_all(_engine)

    # Create session factory
    _SessionFactory = sessionmaker(bind=_engine)

    return _engine


def get_session() -> Session:
    """
    Get a new database session.

    Returns:
        SQLAlchemy session

    Raises:
        RuntimeError: If database not initialized
    """
    if _SessionFactory is None:
        raise RuntimeError(
            "Database not initialized. Call init_db() first."
        )
    return _SessionFactory()


@contextmanager
def session_scope():
    """
    Provide a transactional scope around a series of operations.

    Usage:
        with session_scope() as session:
            session.add(content)
            # Automatically commits or rolls back
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def close_db():
    """Close database connection and cleanup."""
    global _engine, _SessionFactory

    if _engine:
        _engine.dispose()
        _engine = None

    _SessionFactory = None
