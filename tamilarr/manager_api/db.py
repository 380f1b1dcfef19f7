"""Database helpers for the Tamilarr catalog."""
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from ..resolver.errors import ConfigurationError
from . import models  # noqa: F401  (registers tables on SQLModel.metadata)
from .settings import ManagerSettings


def _ensure_sqlite_path(database_url: str) -> None:
    """Create parent directories when using a SQLite URL."""

    if database_url.startswith("sqlite:///"):
        path_part = database_url.removeprefix("sqlite:///").split("?")[0]
        if path_part and path_part != ":memory:":
            db_path = Path(path_part)
            db_path.parent.mkdir(parents=True, exist_ok=True)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_from_settings(settings: ManagerSettings) -> Engine:
    """Create a SQLModel engine using manager settings."""

    _ensure_sqlite_path(settings.database_url)
    is_sqlite = settings.database_url.startswith("sqlite")
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    engine = create_engine(settings.database_url, echo=settings.database_echo, connect_args=connect_args)
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init_database(engine: Engine) -> None:
    """Create catalog tables if they do not exist yet."""

    try:
        SQLModel.metadata.create_all(engine)
    except SQLAlchemyError as exc:
        raise ConfigurationError(f"Unable to initialize catalog database: {exc}") from exc


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Yield a SQLModel session that commits on success and closes automatically."""

    session = Session(engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
