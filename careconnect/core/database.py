"""Database engine and session helpers."""

from collections.abc import AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from .config import settings

ASYNC_DRIVERS = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "mysql": "mysql+asyncmy",
    "sqlite": "sqlite+aiosqlite",
}


def resolve_async_database_url(raw_url: str) -> str:
    """Rewrite DATABASE_URL onto the async driver for its dialect.

    Plain ``postgresql://`` or ``mysql://`` URLs copied from a hosting panel
    work unchanged; an already async URL passes through as given.
    """
    url = make_url(raw_url)
    backend = url.drivername.lower().split("+", 1)[0]
    target = ASYNC_DRIVERS.get(backend)
    if target is None:
        raise ValueError(
            f"Unsupported database dialect '{url.drivername}'. "
            "Use PostgreSQL (asyncpg), MySQL (asyncmy) or SQLite (aiosqlite)."
        )
    if url.drivername.lower() == target:
        return raw_url
    return url.set(drivername=target).render_as_string(hide_password=False)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(raw_url: str, echo: bool = False) -> AsyncEngine:
    url = resolve_async_database_url(raw_url)
    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=echo)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


class Base(DeclarativeBase):
    """Declarative base for every table."""


engine = build_engine(settings.database_url, echo=settings.debug)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session
