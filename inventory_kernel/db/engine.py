"""
Engine construction and the unit-of-work scope.

There is no module-level engine.  ``InventoryLedger`` (or a test fixture)
builds one with ``build_engine`` and owns its lifetime; everything below
the facade receives a ``Session``.

Backends:

PostgreSQL
    READ COMMITTED with a ``QueuePool``.  Oversell protection comes from
    ``SELECT ... FOR UPDATE`` on lot rows, not from isolation level.

SQLite
    For tests and single-user tooling.  pysqlite's implicit transaction
    handling is switched off and ``BEGIN`` is emitted explicitly so that
    ``begin_nested()`` produces real SAVEPOINTs.  ``:memory:`` databases
    share one connection through ``StaticPool``.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from inventory_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_POSTGRES_POOL_DEFAULTS = {
    "pool_size": 20,
    "max_overflow": 10,
    "pool_timeout": 30,
    "pool_recycle": 1800,
    "pool_pre_ping": True,
}


def _sqlite_engine(url, echo: bool) -> Engine:
    kwargs: dict = {"echo": echo, "connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _record):
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def build_engine(database_url: str, echo: bool = False, **pool_options) -> Engine:
    """
    Create an engine for ``database_url``.

    ``pool_options`` override the PostgreSQL pool settings and are ignored
    for SQLite.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        engine = _sqlite_engine(url, echo)
    else:
        engine = create_engine(
            url,
            echo=echo,
            poolclass=QueuePool,
            isolation_level="READ COMMITTED",
            **{**_POSTGRES_POOL_DEFAULTS, **pool_options},
        )
    logger.info("engine_built", extra={"dialect": engine.dialect.name, "echo": echo})
    return engine


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Iterator[Session]:
    """
    One unit of work: commit when the block exits normally, otherwise roll
    back and re-raise.  The session is closed either way.
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.debug("unit_of_work_rolled_back")
        raise
    finally:
        session.close()


def _metadata():
    # Importing the models package registers every table on Base.metadata.
    from inventory_kernel.db.base import Base
    import inventory_kernel.models  # noqa: F401

    return Base.metadata


def create_tables(engine: Engine) -> None:
    metadata = _metadata()
    metadata.create_all(engine)
    logger.info("tables_created", extra={"table_count": len(metadata.tables)})


def drop_tables(engine: Engine) -> None:
    """Drop every ledger table.  Test teardown only."""
    _metadata().drop_all(engine)
