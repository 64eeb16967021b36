"""
Engine and session factory (``backoffice_kernel.db.engine``).

The process holds one engine, created by ``init_engine_from_url``.  Services
never fetch a session from here on their own; callers build one (usually
via ``session_scope``) and hand it to the service constructor.  The one
exception is ``ErrorLogSink``, which needs a session of its own so that an
error record survives the caller's rollback.

Backends:
    postgresql://...   production; pooled, pre-pinged, READ COMMITTED
    sqlite://          tests and local runs; one shared connection so an
                       in-memory database keeps its schema, with SQLAlchemy
                       (not pysqlite) issuing BEGIN so SAVEPOINT works
"""

import atexit
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backoffice_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")


@dataclass
class _Database:
    engine: Engine
    sessions: sessionmaker[Session]


_current: _Database | None = None


def _require() -> _Database:
    if _current is None:
        raise RuntimeError("Database engine not initialised; call init_engine_from_url() first")
    return _current


def _install_sqlite_hooks(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _record) -> None:
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    @event.listens_for(engine, "begin")
    def _on_begin(connection) -> None:
        connection.exec_driver_sql("BEGIN")


def init_engine_from_url(database_url: str, echo: bool = False, **pool_options: Any) -> Engine:
    """
    Create the process engine, replacing any previous one.

    ``pool_options`` are passed to ``create_engine`` for server databases
    (``pool_size``, ``max_overflow``, ``pool_recycle``, ...) and override the
    defaults below.  They are ignored for SQLite.
    """
    global _current

    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        engine = create_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        _install_sqlite_hooks(engine)
    else:
        options: dict[str, Any] = {
            "pool_size": 20,
            "max_overflow": 10,
            "pool_timeout": 30,
            "pool_recycle": 1800,
            "pool_pre_ping": True,
            "isolation_level": "READ COMMITTED",
        }
        options.update(pool_options)
        engine = create_engine(url, echo=echo, **options)

    if _current is not None:
        _current.engine.dispose()
    _current = _Database(engine, sessionmaker(bind=engine, expire_on_commit=False))

    configure_logging()
    logger.info("engine_initialized", extra={"dialect": engine.dialect.name})
    return engine


def get_engine() -> Engine:
    return _require().engine


def get_session_factory() -> sessionmaker[Session]:
    return _require().sessions


def get_session() -> Session:
    return _require().sessions()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Commit on clean exit, roll back and re-raise otherwise; always close.

        with session_scope() as session:
            PayrollService(session).generate(10, 2023, actor_id)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create every table registered on ``Base.metadata``.

    Only kernel tables are guaranteed to be registered; use
    ``backoffice_modules._orm_registry.create_all_tables`` for the full schema.
    """
    import backoffice_kernel.models  # noqa: F401
    from backoffice_kernel.db.base import Base

    Base.metadata.create_all(get_engine())
    logger.info("tables_created", extra={"table_count": len(Base.metadata.tables)})


def drop_tables() -> None:
    from backoffice_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget it."""
    global _current
    if _current is not None:
        _current.engine.dispose()
        _current = None


def is_postgres() -> bool:
    return _current is not None and _current.engine.dialect.name == "postgresql"


atexit.register(reset_engine)
