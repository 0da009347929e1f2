"""
Database engine, session management, and base model.

This module is the foundation for all database operations.
Every model inherits from Base. Every request gets a session
from get_db(), and every balance-affecting operation runs
inside unit_of_work().
"""

import logging
from contextlib import contextmanager
from typing import Callable, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session

from cash_ledger.config import get_settings
from cash_ledger.exceptions import (
    CashLedgerError,
    ConcurrencyConflict,
    PersistenceFailure,
)

logger = logging.getLogger(__name__)

settings = get_settings()

T = TypeVar("T")

# PostgreSQL serialization_failure / deadlock_detected / lock_not_available
CONFLICT_PGCODES = {"40001", "40P01", "55P03"}

# Session.info key marking a session that is inside unit_of_work()
UNIT_OF_WORK_KEY = "cash_ledger.unit_of_work"


def build_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    For SQLite, plain reads open a deferred transaction and hold no
    write lock. A unit of work asks for BEGIN IMMEDIATE through the
    "sqlite_begin" execution option, so the write lock is taken at
    the start of the unit, before any balance is read. Without it
    two writers could both read the same balance and the second
    commit would silently overwrite the first. Foreign keys are also
    switched on, since SQLite leaves them off by default.

    Other databases rely on SELECT ... FOR UPDATE row locks taken
    by the services.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True, echo=echo)

    engine = create_engine(
        url,
        echo=echo,
        connect_args={
            "check_same_thread": False,
            "timeout": settings.SQLITE_BUSY_TIMEOUT,
        },
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Hand transaction control to the "begin" hook below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get("sqlite_begin", "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")

    return engine


# --- Engine ---
engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# --- Session Factory ---
# autocommit=False: the caller decides when the unit of work ends.
# autoflush=False: SQL is only sent on explicit flush or commit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The try/finally guarantees the session is closed and its
    connection returned to the pool even if the request fails.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _is_conflict(exc: OperationalError) -> bool:
    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode in CONFLICT_PGCODES:
        return True
    message = str(exc.orig).lower()
    return "locked" in message or "deadlock" in message


@contextmanager
def unit_of_work(db: Session):
    """
    Run a block as one atomic unit of work.

    Commits when the block finishes, rolls back on any exception.
    Store errors are translated into ConcurrencyConflict (lock or
    serialization failures) or PersistenceFailure (anything else),
    always after the rollback, so no partially applied ledger state
    is ever visible.

    A fresh transaction is opened with the SQLite write lock held.
    When the session already has a read transaction open, the unit
    joins it and SQLite upgrades the lock on the first write; a
    losing writer then surfaces as ConcurrencyConflict.
    """
    outer = db.info.get(UNIT_OF_WORK_KEY, False)
    db.info[UNIT_OF_WORK_KEY] = True
    try:
        if not db.in_transaction():
            db.connection(execution_options={"sqlite_begin": "IMMEDIATE"})
        yield db
        db.commit()
    except CashLedgerError:
        db.rollback()
        raise
    except OperationalError as exc:
        db.rollback()
        if _is_conflict(exc):
            raise ConcurrencyConflict(
                f"Concurrent modification detected: {exc.orig}"
            ) from exc
        raise PersistenceFailure(f"Database error: {exc.orig}") from exc
    except DBAPIError as exc:
        db.rollback()
        raise PersistenceFailure(f"Database error: {exc.orig}") from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.info[UNIT_OF_WORK_KEY] = outer


def in_unit_of_work(db: Session) -> bool:
    """True while ``db`` is inside an open unit_of_work() block."""
    return db.info.get(UNIT_OF_WORK_KEY, False)


def run_in_unit_of_work(
    db: Session, work: Callable[[Session], T], retries: int = 1
) -> T:
    """
    Run ``work(db)`` inside a unit of work, retrying on conflict.

    Only ConcurrencyConflict is retried, and always from the top:
    the whole unit re-reads its state, never reusing a stale read.
    """
    attempt = 0
    while True:
        try:
            with unit_of_work(db):
                return work(db)
        except ConcurrencyConflict:
            if attempt >= retries:
                raise
            attempt += 1
            logger.warning(
                "Concurrency conflict, retrying unit of work (attempt %d)",
                attempt + 1,
            )
