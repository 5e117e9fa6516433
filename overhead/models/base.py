"""
Engine, session factory and declarative base.

Everything lives in one SQLite file: flat key-value rows for the cache,
settings and history, plus the static aircraft reference table. A
``sqlite://`` URL gives an in-memory database shared across threads.
"""

from contextlib import contextmanager
from typing import Any, Dict, Generator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from overhead.config import DatabaseConfig, config


class Base(DeclarativeBase):
    pass


def _enable_wal(dbapi_connection, connection_record) -> None:
    # Lets the CLI read history while the detection thread writes
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA journal_mode=WAL')
    cursor.execute('PRAGMA synchronous=NORMAL')
    cursor.close()


def build_engine(database: DatabaseConfig) -> Engine:
    """Engine for the configured URL, with SQLite threading and pragmas set up."""
    kwargs: Dict[str, Any] = {}

    if database.is_sqlite:
        # Detection runs on a background thread
        kwargs['connect_args'] = {'check_same_thread': False}
    if database.is_memory:
        # One connection, or each checkout would see its own empty database
        kwargs['poolclass'] = StaticPool

    new_engine = create_engine(database.url, **kwargs)
    if database.is_sqlite and not database.is_memory:
        event.listen(new_engine, 'connect', _enable_wal)
    return new_engine


engine = build_engine(config.database)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Session that commits on success and rolls back on any exception."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create missing tables."""
    Base.metadata.create_all(bind=engine)
