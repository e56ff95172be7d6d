"""Database engine and session management."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
from urllib.parse import urlparse

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fundauth.core.config import get_settings


def _ensure_sqlite_directory(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme != "sqlite" or parsed.path in ("", ":memory:", "/:memory:"):
        return
    Path(parsed.path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy own BEGIN so SAVEPOINT/ROLLBACK TO work on pysqlite.

    pysqlite defers BEGIN until the first DML statement, which breaks nested
    transactions; the per-item atomic units depend on them.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # noqa: ANN001
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(connection):  # noqa: ANN001
        connection.exec_driver_sql("BEGIN")


def _create_engine() -> Engine:
    settings = get_settings()
    url = settings.database_url
    if not url.startswith("sqlite"):
        return create_engine(url, echo=settings.sql_echo, pool_pre_ping=True)

    _ensure_sqlite_directory(url)
    engine_kwargs: dict[str, object] = {
        "echo": settings.sql_echo,
        "connect_args": {"check_same_thread": False},
    }
    if url.endswith(":memory:") or url == "sqlite://":
        engine_kwargs["poolclass"] = StaticPool
    sqlite_engine = create_engine(url, **engine_kwargs)
    _enable_sqlite_savepoints(sqlite_engine)
    return sqlite_engine


engine: Engine = _create_engine()

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=Session,
)


def supports_row_locks(session: Session) -> bool:
    """Whether SELECT ... FOR UPDATE is meaningful on the bound dialect."""

    return session.get_bind().dialect.name != "sqlite"


def get_session() -> Iterator[Session]:
    """FastAPI dependency yielding a request-scoped session."""

    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Provide a transactional scope for scripts and background jobs."""

    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
