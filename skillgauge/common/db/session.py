"""
Database Session Management

This module provides the SQLAlchemy engine, the session factory used per
request and the ``atomic`` helper that wraps multi-statement writes in a
single commit-or-rollback transaction.
"""

from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from skillgauge.common.db.connection import get_database_settings
from skillgauge.common.logger import app_logger

# Set up logging
logger = app_logger.getChild("db.session")


def _set_sqlite_pragma(dbapi_connection, connection_record) -> None:
    # pysqlite issues its own BEGIN otherwise, which breaks SAVEPOINT
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_sqlite_transaction(conn) -> None:
    conn.exec_driver_sql("BEGIN")


def get_engine_kwargs(db_settings: Dict[str, Any]) -> Dict[str, Any]:
    """
    Get engine keyword arguments based on database type.
    Different databases support different connection options.
    """
    kwargs: Dict[str, Any] = {"echo": db_settings.get("echo", False)}
    database_url = db_settings["database_url"]

    if db_settings["db_type"] == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url.rstrip("/") in ("sqlite:", "sqlite+pysqlite:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update({
            "pool_size": db_settings["pool_size"],
            "max_overflow": db_settings["max_overflow"],
            "pool_timeout": db_settings["pool_timeout"],
            "pool_pre_ping": True,
            "pool_recycle": 300,  # Recycle connections every 5 minutes
        })

    return kwargs


def create_engine_from_settings(db_settings: Optional[Dict[str, Any]] = None) -> Engine:
    """
    Create an engine from database settings.

    SQLite connections get ``PRAGMA foreign_keys=ON`` so cascades behave as
    they do on server databases.
    """
    db_settings = db_settings or get_database_settings()
    new_engine = create_engine(db_settings["database_url"], **get_engine_kwargs(db_settings))

    if db_settings["db_type"] == "sqlite":
        event.listen(new_engine, "connect", _set_sqlite_pragma)
        event.listen(new_engine, "begin", _begin_sqlite_transaction)

    logger.info("Created %s engine", db_settings["db_type"])
    return new_engine


def create_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


engine = create_engine_from_settings()
SessionLocal = create_session_factory(engine)


def get_session() -> Generator[Session, None, None]:
    """
    Get a database session for one request.

    Yields:
        Session: The database session, closed when the request finishes
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def atomic(session: Session) -> Generator[Session, None, None]:
    """
    Run a block of writes as one transaction.

    Commits when the block completes and rolls back everything written so far
    when it raises; the exception is re-raised unchanged.

    Example:
        with atomic(session):
            session.add(attempt)
            session.add_all(answers)
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
