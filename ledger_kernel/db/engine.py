"""
Module: ledger_kernel.db.engine
Responsibility: Engine construction, the process-wide session factory and
    the transactional unit of work (``session_scope``).
Architecture position: Kernel > DB.  May import from db/base.py and the
    logging configuration.  MUST NOT import from services/, selectors/ or
    domain/.

Invariants enforced:
    - PostgreSQL is the production backend: READ COMMITTED isolation with
      explicit row-level locking (SELECT ... FOR UPDATE) on the owning row of
      every multi-step mutation.
    - SQLite URLs are accepted for tests and local tooling.  They share one
      connection (StaticPool) with foreign keys enforced; FOR UPDATE is
      silently dropped by the dialect there.
    - Services never commit.  ``session_scope()`` is the one place where a
      unit of work is committed or rolled back.

Failure modes:
    - RuntimeError from get_engine/get_session before an engine is
      initialized.
"""

import atexit
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from ledger_kernel.logging_config import LogContext, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create an engine for ``database_url`` without registering it globally.

    Pool settings only apply to server databases.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        database_url,
        echo=echo,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=pool_pre_ping,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        isolation_level="READ COMMITTED",
    )


def init_engine_from_url(database_url: str, **engine_options) -> Engine:
    """
    Build the process-wide engine and session factory.

    A second call disposes the previous engine first.  ``engine_options``
    are passed to ``build_engine``.
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()

    _engine = build_engine(database_url, **engine_options)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={
            "dialect": _engine.dialect.name,
            "pool_size": engine_options.get("pool_size"),
            "echo": engine_options.get("echo", False),
        },
    )
    return _engine


def init_engine_from_settings(database) -> Engine:
    """Initialize from a ``ledger_config.schema.DatabaseSettings``."""
    return init_engine_from_url(
        database.url,
        echo=database.echo,
        pool_size=database.pool_size,
        max_overflow=database.max_overflow,
        pool_pre_ping=database.pool_pre_ping,
        pool_timeout=database.pool_timeout,
        pool_recycle=database.pool_recycle,
    )


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session() -> Session:
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory()


@contextmanager
def session_scope(
    tenant_id: int | None = None,
    actor_id: int | None = None,
    correlation_id: str | None = None,
) -> Generator[Session, None, None]:
    """
    One unit of work: commit on normal exit, roll back and re-raise on error.

    The tenant, actor and correlation ids are bound to the log context for
    the duration of the block.

    Usage:
        with session_scope(tenant_id=42, actor_id=7) as session:
            InvoiceService(session).apply_payment(42, invoice_id, "50.00")
    """
    session = get_session()
    with LogContext.bind(tenant_id=tenant_id, actor_id=actor_id, correlation_id=correlation_id):
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


def create_tables(engine: Engine | None = None) -> None:
    """
    Create the tables of every ORM model imported so far.

    Kernel models are always registered.  For the full schema call
    ``ledger_modules._orm_registry.create_all_tables()``.
    """
    import ledger_kernel.models  # noqa: F401
    from ledger_kernel.db.base import Base

    engine = engine or get_engine()
    Base.metadata.create_all(engine)
    logger.info("tables_created", extra={"table_count": len(Base.metadata.tables)})


def reset_engine() -> None:
    """Dispose and forget the process-wide engine. Tests only."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


atexit.register(lambda: _engine.dispose() if _engine is not None else None)
