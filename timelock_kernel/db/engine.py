"""
Module: timelock_kernel.db.engine
Responsibility: The one place a database connection is configured.  Builds
    the engine for a URL, hands out sessions, and wraps a unit of work in
    commit-or-rollback.
Architecture position: Kernel > DB.  Imports db/base.py and db/immutability.py;
    ``create_tables``/``drop_tables`` also import the models package so that
    ``Base.metadata`` is complete.

Invariants enforced:
    - PostgreSQL: pooled, pre-pinged connections at READ COMMITTED.
    - SQLite: pysqlite's implicit transaction handling is switched off and
      SQLAlchemy emits BEGIN itself, which SAVEPOINT (``begin_nested``)
      needs.  ``sqlite://`` in-memory databases keep a single connection.
    - Initializing an engine always registers the ORM immutability listeners.

Failure modes:
    - RuntimeError from any accessor used before ``init_engine_from_url()``.
"""

from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from timelock_kernel.db.immutability import register_immutability_listeners
from timelock_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _sqlite_engine(database_url: str, echo: bool) -> Engine:
    options: dict[str, Any] = {
        "echo": echo,
        "connect_args": {"check_same_thread": False},
    }
    if make_url(database_url).database in (None, "", ":memory:"):
        options["poolclass"] = StaticPool
    engine = create_engine(database_url, **options)

    @event.listens_for(engine, "connect")
    def _autocommit_driver(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def _server_engine(database_url: str, echo: bool, **pool: Any) -> Engine:
    return create_engine(
        database_url,
        echo=echo,
        poolclass=QueuePool,
        isolation_level="READ COMMITTED",
        **pool,
    )


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 5,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Build the process-wide engine and session factory for ``database_url``.

    A second call replaces the first.  The pool arguments apply to server
    backends only.
    """
    global _engine, _SessionFactory

    dialect = make_url(database_url).get_backend_name()
    if dialect == "sqlite":
        _engine = _sqlite_engine(database_url, echo)
    else:
        _engine = _server_engine(
            database_url,
            echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
        )
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    register_immutability_listeners()
    configure_logging()
    logger.info("engine_initialized", extra={"dialect": dialect, "echo": echo})
    return _engine


def _not_initialized() -> RuntimeError:
    return RuntimeError("Engine not initialized. Call init_engine_from_url() first.")


def get_engine() -> Engine:
    if _engine is None:
        raise _not_initialized()
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Factory for callers that need one session per thread."""
    if _SessionFactory is None:
        raise _not_initialized()
    return _SessionFactory


def get_session() -> Session:
    return get_session_factory()()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    One unit of work: commit on normal exit, roll back and re-raise otherwise.

    Usage::

        with session_scope() as session:
            registry = OperationRegistry(SqlStore(session), ...)
            registry.queue(b"op1", 60)
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


def _metadata():
    from timelock_kernel.db.base import Base
    import timelock_kernel.models  # noqa: F401

    return Base.metadata


def create_tables() -> None:
    """Create every timelock table that does not exist yet."""
    _metadata().create_all(get_engine())


def drop_tables() -> None:
    """Drop every timelock table. Tests only."""
    _metadata().drop_all(get_engine())


def reset_engine() -> None:
    """Dispose of the engine and forget the session factory."""
    global _engine, _SessionFactory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None
