"""Database engine, session factory, and declarative base.

One request maps to one unit of work: ``get_db()`` commits when the
endpoint returns and rolls back on any exception, so a failed harvest
report or gate pass never leaves a half-updated batch behind.  Cache
invalidations queued on the session run once the commit has landed.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings
from app.utils.cache import run_pending_invalidations

_engine_kwargs = {"echo": settings.debug}
if settings.database_url.startswith("postgresql"):
    _engine_kwargs.update(pool_size=20, max_overflow=10)

engine = create_async_engine(settings.database_url, **_engine_kwargs)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# ── Base class ──────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


# ── Session dependency ──────────────────────────────────────

async def get_db() -> AsyncSession:
    """Yield a request-scoped session; commit on success, roll back on error."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
            await run_pending_invalidations(session)
        except Exception:
            await session.rollback()
            raise
