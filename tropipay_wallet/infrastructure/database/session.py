"""Database engine and session factory for the local cache"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tropipay_wallet.config import settings
from tropipay_wallet.infrastructure.database.models import Base


def create_db_engine(database_url: str | None = None) -> Engine:
    """
    Build an engine for the cache database.

    SQLite connections are shared across the threadpool workers that run
    repository calls; in-memory SQLite keeps a single connection so every
    session sees the same data.
    """
    url = database_url or settings.database_url
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)

    # Connection pool: recycle after 1 hour to avoid stale connections
    return create_engine(
        url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create cache tables if missing"""
    Base.metadata.create_all(bind=engine)
