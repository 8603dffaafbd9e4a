"""Database engine and session factory. SQLite for development, pooled for PostgreSQL."""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from app.core.config import settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url: str) -> Engine:
    """Build an engine for `url`.

    SQLite files get NullPool for thread-safety; in-memory SQLite gets a
    StaticPool so every session sees the same database (used by tests).
    """
    if url.startswith("sqlite"):
        poolclass = StaticPool if ":memory:" in url or url == "sqlite://" else NullPool
        eng = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=poolclass,
        )
        event.listen(eng, "connect", _enable_sqlite_foreign_keys)
        return eng

    # PostgreSQL/MySQL: row locks on inventory need a real pool
    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
    )


engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
