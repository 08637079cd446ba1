from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from homecare.core.config import settings
import os
import logging
from contextlib import contextmanager

from .utils.errors import Conflict

logger = logging.getLogger(__name__)

if os.getenv("PYTEST_RUN") == "1":
    SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
else:
    SQLALCHEMY_DATABASE_URL = settings.SQLALCHEMY_DATABASE_URL

is_sqlite = SQLALCHEMY_DATABASE_URL.startswith("sqlite")

pool_kwargs = {
    # Avoid stale idle connections causing first-hit failures after inactivity
    "pool_pre_ping": True,
}
if is_sqlite:
    connect_args = {"check_same_thread": False, "timeout": 15}
else:
    connect_args = {}
    pool_kwargs.update({
        "pool_size": int(os.getenv("DB_POOL_SIZE") or 6),
        "max_overflow": int(os.getenv("DB_MAX_OVERFLOW") or 6),
        "pool_recycle": int(os.getenv("DB_POOL_RECYCLE") or 300),
    })

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args=connect_args,
    **pool_kwargs,
)

if is_sqlite:

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ANN001
        cursor = dbapi_connection.cursor()
        # WAL improves read concurrency; busy_timeout backs off on transient locks (ms)
        cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.execute("PRAGMA busy_timeout=60000;")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


# Dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session):
    """Run a read-validate-write unit and commit it, or roll it back.

    Rows loaded inside the block should be fetched ``with_for_update`` so
    PostgreSQL holds a row lock until commit. Versioned models additionally
    fail with ``StaleDataError`` when another writer got there first, and the
    partial unique indexes on pending requests fail with ``IntegrityError``;
    both are reported to the caller as a ``Conflict``.
    """
    try:
        yield db
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        logger.warning("Concurrent modification detected: %s", exc)
        raise Conflict("The record was modified concurrently; reload and retry") from exc
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Integrity violation: %s", exc.orig)
        raise Conflict("A conflicting record already exists") from exc
    except Exception:
        db.rollback()
        raise
