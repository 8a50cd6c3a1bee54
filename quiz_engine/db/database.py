from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import get_settings
from quiz_engine.db.models import Base

_engines: dict[str, Engine] = {}
_session_factories: dict[str, sessionmaker] = {}


def get_engine(database_url: str | None = None) -> Engine:
    """Get (or lazily create) the engine for a database URL."""
    settings = get_settings()
    url = database_url or settings.database_url
    if url not in _engines:
        kwargs = {"echo": settings.log_level == "DEBUG", "pool_pre_ping": True}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
        _engines[url] = create_engine(url, **kwargs)
    return _engines[url]


def get_session_factory(database_url: str | None = None) -> sessionmaker:
    """Session factory bound to the engine for a database URL."""
    engine = get_engine(database_url)
    key = str(engine.url)
    if key not in _session_factories:
        _session_factories[key] = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    return _session_factories[key]


def init_db(engine: Engine | None = None) -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine or get_engine())
    logger.info("Database tables initialized")


def check_database(engine: Engine | None = None) -> None:
    """Round-trip a trivial query; raises SQLAlchemyError when unreachable."""
    with (engine or get_engine()).connect() as conn:
        conn.execute(text("SELECT 1"))


@contextmanager
def session_scope(factory: sessionmaker | None = None) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = (factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:  # Intentionally broad - rollback on any error before re-raising
        session.rollback()
        raise
    finally:
        session.close()
