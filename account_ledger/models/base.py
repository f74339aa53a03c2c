"""
Database engine, session management, and base model.

This module is the foundation for all database operations.
Every model inherits from Base. Every request gets a session
from get_db(). Every mutating service call runs inside
unit_of_work().
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session
from sqlalchemy.orm.exc import StaleDataError

from account_ledger.config import get_settings
from account_ledger.exceptions import LedgerError, StorageError

logger = logging.getLogger(__name__)

settings = get_settings()

# SQLite connections are bound to the thread that opened them
# unless told otherwise; FastAPI runs sync endpoints in a pool.
_connect_args = (
    {"check_same_thread": False}
    if settings.DATABASE_URL.startswith("sqlite")
    else {}
)

# --- Engine ---
# pool_pre_ping=True tests connections before using them,
# which handles a restarted database or a stale connection.
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.SQL_ECHO,
    connect_args=_connect_args,
)

# --- Session Factory ---
# autocommit=False: commits happen only at the end of a unit of
# work, so a transfer's two balance writes and its transaction
# row land together or not at all.
# autoflush=False: SQL is sent only on explicit flush or commit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


# --- Base Model Class ---
class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def init_db() -> None:
    """Create any missing tables for the registered models."""
    # Importing the package registers every model on Base.metadata
    import account_ledger.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


# Key in Session.info marking an open unit of work
_UNIT_OF_WORK_KEY = "account_ledger.unit_of_work"


@contextmanager
def unit_of_work(db: Session):
    """
    Run a block of session work as one atomic commit.

    The outermost unit commits when the block finishes and rolls
    back if anything inside raises. A nested unit joins the outer
    one: it neither commits nor rolls back on its own, so a
    service method that is atomic when called directly stays part
    of the larger operation when another service calls it.

    Database errors are re-raised as StorageError after rollback.
    Ledger errors are re-raised unchanged after rollback.
    """
    if db.info.get(_UNIT_OF_WORK_KEY):
        yield db
        return

    db.info[_UNIT_OF_WORK_KEY] = True
    try:
        yield db
        db.commit()
    except LedgerError:
        db.rollback()
        raise
    except StaleDataError as e:
        db.rollback()
        logger.warning("Concurrent modification detected: %s", e)
        raise StorageError(
            "Record was modified by another operation; retry the request"
        ) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Unit of work rolled back after storage failure: %s", e)
        raise StorageError(f"Storage failure: {e}") from e
    except Exception:
        db.rollback()
        raise
    finally:
        db.info.pop(_UNIT_OF_WORK_KEY, None)


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
