import os
from pathlib import Path
import sys

import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["DEFAULT_TIMEZONE"] = "UTC"
os.environ["REDIS_URL"] = ""

from careconnect.core.database import Base, build_engine  # noqa: E402
from careconnect.modules.users.models import User  # noqa: E402,F401


@pytest_asyncio.fixture
async def db_session():
    engine = build_engine("sqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)
    async with SessionLocal() as session:
        yield session
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Sessions on a shared file database, for interleaving independent callers."""
    engine = build_engine(f"sqlite:///{tmp_path / 'careconnect.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()
