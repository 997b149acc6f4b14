"""
Module: yearend_kernel.db.engine
Responsibility: Process-wide engine and session factory, plus the
    commit-or-rollback ``session_scope`` used by the CLI.
Architecture position: Kernel > DB.  Only create_tables()/drop_tables()
    reach outward, to import the model modules.

Invariants enforced:
    - SQLite runs with pysqlite's own transaction handling switched off and
      SQLAlchemy emitting BEGIN, so nested SAVEPOINTs roll back correctly.
    - SQLite connections may be used from batch worker threads; each worker
      still takes its own Session from the factory.
    - Sessions do not expire on commit, so DTOs built after a commit never
      trigger a lazy reload.

Failure modes:
    - RuntimeError from get_engine / get_session / get_session_factory before
      init_engine_from_url() has run.
"""

import atexit
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from yearend_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

SQLITE_LOCK_TIMEOUT_SECONDS = 30

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def _sqlite_explicit_begin(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _autocommit_driver(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
) -> Engine:
    """Create an Engine for *database_url* without registering it globally."""
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={
                "check_same_thread": False,
                "timeout": SQLITE_LOCK_TIMEOUT_SECONDS,
            },
        )
        _sqlite_explicit_begin(engine)
        return engine

    return create_engine(
        database_url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        isolation_level="READ COMMITTED",
    )


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
) -> Engine:
    """Register the process-wide engine.  Calling again replaces it."""
    global _engine, _session_factory

    _engine = build_engine(
        database_url, echo=echo, pool_size=pool_size, max_overflow=max_overflow,
    )
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "echo": echo},
    )
    return _engine


def _not_initialized() -> RuntimeError:
    return RuntimeError("Engine not initialized. Call init_engine_from_url() first.")


def get_engine() -> Engine:
    if _engine is None:
        raise _not_initialized()
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Factory the batch executor hands to its worker threads."""
    if _session_factory is None:
        raise _not_initialized()
    return _session_factory


def get_session() -> Session:
    return get_session_factory()()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Commit on normal exit, roll back and re-raise on error, always close.

    Usage::

        with session_scope() as session:
            YearEndOrchestrator.from_session(session).run_reconciliation("t-1", 2024)
    """
    session = get_session()
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def _load_models() -> None:
    # Registers every table on Base.metadata
    import yearend_batch.models  # noqa: F401
    import yearend_kernel.models  # noqa: F401


def create_tables() -> None:
    from yearend_kernel.db.base import Base

    _load_models()
    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    """Drop every table.  Tests and local resets only."""
    from yearend_kernel.db.base import Base

    _load_models()
    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


@atexit.register
def _dispose_on_exit() -> None:
    if _engine is not None:
        _engine.dispose()
