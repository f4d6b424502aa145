"""Pre-flight check for a CareConnect deployment.

Confirms that DATABASE_URL reaches a database holding every CareConnect table
and, when REDIS_URL is set, that the read cache answers. Exits non-zero on
failure so it can gate container start-up.
"""

import asyncio
import sys

from dotenv import load_dotenv

load_dotenv()

from sqlalchemy import inspect  # noqa: E402
from sqlalchemy.engine import make_url  # noqa: E402

from careconnect.core.cache import Cache  # noqa: E402
from careconnect.core.config import settings  # noqa: E402
from careconnect.core.database import Base, build_engine, resolve_async_database_url  # noqa: E402
from careconnect.modules.users.models import User  # noqa: E402,F401


async def missing_tables() -> list[str]:
    engine = build_engine(settings.database_url)
    try:
        async with engine.connect() as conn:
            existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
    finally:
        await engine.dispose()
    return sorted(set(Base.metadata.tables) - existing)


async def check_database() -> bool:
    url = make_url(resolve_async_database_url(settings.database_url))
    print(f"database: {url.render_as_string(hide_password=True)}")
    try:
        missing = await missing_tables()
    except Exception as exc:  # noqa: BLE001 - report any driver or network failure
        print(f"  unreachable: {exc}")
        return False
    if missing:
        print(f"  reachable, missing tables: {', '.join(missing)} (run `alembic upgrade head`)")
        return False
    print(f"  ok, {len(Base.metadata.tables)} tables present")
    return True


async def check_cache() -> bool:
    cache = Cache(url=settings.redis_url)
    if not cache.enabled:
        print("cache: REDIS_URL not set, reads go straight to the database")
        return True
    print(f"cache: {settings.redis_url.rsplit('@', 1)[-1]}")
    try:
        reachable = await cache.ping()
    finally:
        await cache.close()
    print("  ok" if reachable else "  unreachable")
    return reachable


async def main() -> int:
    database_ok = await check_database()
    cache_ok = await check_cache()
    return 0 if database_ok and cache_ok else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
