"""
Database configuration, session management and the transactional unit of work
"""
import time
from contextlib import contextmanager
from typing import Generator, Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import get_settings
from app.core.errors import ComposerError, IntegrityViolation, TransportFailure
from app.core.logging_config import LoggingConfig
from app.core.metrics import (db_queries_total, db_query_duration_seconds,
                              db_transactions_total)

logger = LoggingConfig.get_logger(__name__)

# Lazy initialization - don't create engine at module level
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None

# Base class for models (can be created immediately)
Base = declarative_base()


def _setup_db_events(engine: Engine, is_sqlite: bool):
    """Statement metrics, plus foreign-key enforcement on SQLite"""

    @event.listens_for(engine, "before_cursor_execute")
    def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault('query_start_time', []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        if not conn.info.get('query_start_time'):
            return
        duration = time.time() - conn.info['query_start_time'].pop()
        stripped = statement.strip()
        operation = stripped.split()[0].lower() if stripped else "unknown"
        db_queries_total.labels(operation=operation).inc()
        db_query_duration_seconds.labels(operation=operation).observe(duration)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def receive_connect(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()


def get_engine() -> Engine:
    """Get or create database engine (lazy initialization)"""
    global _engine
    if _engine is None:
        settings = get_settings()

        if settings.is_sqlite:
            engine_kwargs = {
                "connect_args": {
                    "timeout": settings.database_timeout_seconds,
                    "check_same_thread": False,
                },
            }
        else:
            engine_kwargs = {
                "pool_size": settings.database_pool_size,
                "max_overflow": settings.database_max_overflow,
                "pool_pre_ping": True,
                "connect_args": {
                    "connect_timeout": settings.database_timeout_seconds,
                } if settings.database_url.startswith("postgresql") else {},
            }

        _engine = create_engine(
            settings.database_url,
            echo=settings.log_sqlalchemy,
            **engine_kwargs,
        )
        _setup_db_events(_engine, settings.is_sqlite)
        logger.debug("Database engine created", extra={"dialect": _engine.dialect.name})

    return _engine


def get_session_local() -> sessionmaker:
    """Get or create session factory (lazy initialization)"""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=get_engine(),
        )
    return _SessionLocal


def reset_engine():
    """Dispose the engine so the next access picks up fresh settings"""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def init_db():
    """Create all tables known to Base.metadata"""
    import app.models  # noqa: F401 - register models with Base.metadata
    Base.metadata.create_all(bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database session
    """
    db = get_session_local()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def database_errors() -> Iterator[None]:
    """Translate driver errors into the domain error taxonomy"""
    try:
        yield
    except IntegrityError as e:
        raise IntegrityViolation(
            "Concurrent modification detected; the operation was rolled back",
            details={"error_type": type(e.orig).__name__ if e.orig else type(e).__name__},
        ) from e
    except (OperationalError, DBAPIError) as e:
        raise TransportFailure("Persistence layer unavailable") from e


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    All-or-nothing transaction boundary.

    Everything executed on ``db`` inside the block commits together when the
    block exits normally. Any exception, including cancellation, rolls the
    whole batch back before propagating.
    """
    try:
        with database_errors():
            yield db
            db.commit()
        db_transactions_total.labels(outcome="committed").inc()
    except ComposerError as e:
        db.rollback()
        db_transactions_total.labels(outcome="rolled_back").inc()
        log = logger.info if e.status_code < 500 and not e.retryable else logger.error
        log(f"Transaction rolled back: {e.message}", extra={"error_code": e.code})
        raise
    except BaseException:
        db.rollback()
        db_transactions_total.labels(outcome="rolled_back").inc()
        logger.error("Transaction rolled back after unexpected error", exc_info=True)
        raise
