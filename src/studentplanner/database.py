"""Database configuration and session management."""

from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from studentplanner.config import get_settings
from studentplanner.errors import StorageError


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


@lru_cache
def get_engine() -> Engine:
    """Build the engine for the configured database URL."""
    settings = get_settings()
    connect_args = {}
    if settings.database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(
        settings.database_url,
        echo=False,
        connect_args=connect_args,
    )


@lru_cache
def get_session_factory() -> sessionmaker[Session]:
    """Session factory bound to the configured engine."""
    return sessionmaker(bind=get_engine(), expire_on_commit=False)


def init_db(engine: Engine | None = None) -> None:
    """Create all tables if they don't exist."""
    Base.metadata.create_all(engine or get_engine())


@contextmanager
def transaction(session_factory: sessionmaker[Session], action: str) -> Iterator[Session]:
    """
    Open a session, commit on success and roll back on error.

    Any SQLAlchemy failure surfaces as a retryable StorageError so callers
    never depend on driver-specific exceptions.
    """
    try:
        with session_factory.begin() as session:
            yield session
    except SQLAlchemyError as e:
        raise StorageError(f"Storage unavailable while trying to {action}") from e
