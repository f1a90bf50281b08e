"""SQLModel database configuration."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

logger = logging.getLogger(__name__)

_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:"}

# dialect -> (enable, restore); restore is None when rollback ends the mode
_READ_ONLY_STATEMENTS = {
    "sqlite": ("PRAGMA query_only = ON", "PRAGMA query_only = OFF"),
    "postgresql": ("SET TRANSACTION READ ONLY", None),
    "mysql": ("SET SESSION TRANSACTION READ ONLY", "SET SESSION TRANSACTION READ WRITE"),
}


def create_db_engine(url: str, echo: bool = False) -> Engine:
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in _MEMORY_URLS:
            # a single shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
    return create_engine(url, echo=echo, **kwargs)


def init_db(engine: Engine) -> None:
    """Create tables if they do not exist."""
    from . import models  # noqa: F401  # ensure SQLModel metadata is loaded

    SQLModel.metadata.create_all(engine)


def SessionLocal(engine: Engine) -> Session:
    return Session(engine)


def _read_only_statements(connection: Connection) -> Optional[Tuple[str, Optional[str]]]:
    return _READ_ONLY_STATEMENTS.get(connection.dialect.name)


def _execute_raw(connection: Connection, statement: str) -> None:
    # DBAPI cursor: still usable after a failed flush has deactivated the transaction
    cursor = connection.connection.cursor()
    try:
        cursor.execute(statement)
    finally:
        cursor.close()


@contextmanager
def read_only_session(engine: Engine) -> Iterator[Session]:
    """Session whose connection refuses writes for as long as it is open.

    Nothing is ever committed: the transaction is rolled back on exit.
    """
    with SessionLocal(engine) as session:
        connection = session.connection()
        statements = _read_only_statements(connection)
        if statements is None:
            logger.warning("No session-level read-only mode for dialect %s", connection.dialect.name)
        else:
            logger.debug("Enabling read-only mode: %s", statements[0])
            _execute_raw(connection, statements[0])
        try:
            yield session
        finally:
            if statements is not None and statements[1] is not None:
                _execute_raw(connection, statements[1])
            session.rollback()
