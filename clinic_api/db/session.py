"""Storage gateway: pooled connections, auto-committed statements and scoped transactions."""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Protocol

from fastapi import Request
from sqlalchemy import CursorResult, Executable, Row, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)


class Executor(Protocol):
    """Anything that runs a statement and hands back its rows."""

    def execute(
        self, statement: Executable, params: Mapping[str, Any] | None = None
    ) -> list[Row[Any]]: ...


class TransactionState(str, enum.Enum):
    """Lifecycle of a scoped transaction."""

    PENDING = "PENDING"
    COMMITTED = "COMMITTED"
    ABORTED = "ABORTED"


class Transaction:
    """Handle over one open unit of work; only usable while PENDING."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self.state = TransactionState.PENDING

    def _ensure_pending(self) -> None:
        if self.state is not TransactionState.PENDING:
            raise RuntimeError(f"Transaction already {self.state.value.lower()}")

    def execute(
        self, statement: Executable, params: Mapping[str, Any] | None = None
    ) -> list[Row[Any]]:
        self._ensure_pending()
        result = self._session.execute(statement, params)
        if isinstance(result, CursorResult) and not result.returns_rows:
            return []
        return list(result)

    def commit(self) -> None:
        self._ensure_pending()
        self._session.commit()
        self.state = TransactionState.COMMITTED

    def rollback(self) -> None:
        if self.state is not TransactionState.PENDING:
            return
        try:
            self._session.rollback()
        finally:
            self.state = TransactionState.ABORTED


class StorageGateway:
    """Owns the engine's connection pool and hands out scoped units of work."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
        )

    def execute(
        self, statement: Executable, params: Mapping[str, Any] | None = None
    ) -> list[Row[Any]]:
        """Run a single statement in its own auto-committed unit of work."""

        with self.begin() as tx:
            return tx.execute(statement, params)

    @contextmanager
    def begin(self) -> Iterator[Transaction]:
        """Provide a transactional scope around a series of operations.

        A still-pending transaction is committed when the block exits normally
        and rolled back when it exits through an exception. The connection
        goes back to the pool on every path.
        """

        session = self._session_factory()
        tx = Transaction(session)
        try:
            yield tx
            if tx.state is TransactionState.PENDING:
                tx.commit()
        except Exception:
            tx.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()


def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:  # noqa: ARG001
    # pysqlite's own BEGIN handling is disabled so the "begin" hook owns it.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_immediate(connection) -> None:
    # Writers serialize on the lock taken at BEGIN, never mid-transaction.
    connection.exec_driver_sql("BEGIN IMMEDIATE")


def create_gateway(
    url: str,
    *,
    pool_size: int | None = None,
    pool_timeout: int | None = None,
    **engine_kwargs: Any,
) -> StorageGateway:
    """Build a gateway for ``url``; SQLite connections enforce foreign keys."""

    if url.startswith("sqlite"):
        connect_args = dict(engine_kwargs.pop("connect_args", {}))
        connect_args.setdefault("check_same_thread", False)
        engine_kwargs["connect_args"] = connect_args
    else:
        if pool_size is not None:
            engine_kwargs["pool_size"] = pool_size
        if pool_timeout is not None:
            engine_kwargs["pool_timeout"] = pool_timeout
        engine_kwargs.setdefault("pool_pre_ping", True)

    engine = create_engine(url, **engine_kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _configure_sqlite_connection)
        event.listen(engine, "begin", _begin_immediate)

    logger.info("storage gateway ready", extra={"dialect": engine.dialect.name})
    return StorageGateway(engine)


def get_gateway(request: Request) -> StorageGateway:
    """FastAPI dependency returning the gateway owned by the application."""

    return request.app.state.gateway
