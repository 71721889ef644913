"""Database session configuration."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from devlink.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


def enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy own BEGIN so SAVEPOINT/ROLLBACK TO work on pysqlite."""

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")


def build_engine(url: str, *, echo: bool = False, **kwargs) -> Engine:
    """Create an engine, enabling savepoint support for SQLite URLs."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
    engine = create_engine(url, echo=echo, **kwargs)
    if url.startswith("sqlite"):
        enable_sqlite_savepoints(engine)
    return engine


# Ensure model modules are imported so that metadata is populated when create_all runs.
import devlink.models  # noqa: E402,F401

engine = build_engine(settings.effective_database_url, echo=settings.sql_debug)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
