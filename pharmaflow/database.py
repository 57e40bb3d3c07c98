"""
Database engine, session factory and transaction helpers
"""
import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from pharmaflow.config import settings
from pharmaflow.exceptions import ConcurrentModification

logger = logging.getLogger(__name__)

connect_args = {}
pool_config = {}

if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}
else:
    pool_config = {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, **pool_config)


def enable_sqlite_foreign_keys(target_engine) -> None:
    """Turn on FK enforcement for every new SQLite connection"""
    @event.listens_for(target_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


if settings.DATABASE_URL.startswith("sqlite"):
    enable_sqlite_foreign_keys(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session dependency"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create all tables"""
    import pharmaflow.models  # noqa: F401  (registers models on Base.metadata)
    Base.metadata.create_all(bind=engine)


@contextmanager
def unit_of_work(db: Session):
    """
    Run a block as one transaction

    Commits on success. Any exception rolls back everything the block did,
    including ledger updates. A failed optimistic version check surfaces as
    ConcurrentModification.
    """
    try:
        yield db
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logger.info(f"Optimistic lock conflict: {e}")
        raise ConcurrentModification("Order was modified concurrently; re-read and retry") from e
    except Exception:
        db.rollback()
        raise
