"""Database engine and session management."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from trendstudio.config.settings import get_settings
from trendstudio.db.models import Base


def _ensure_sqlite_directory(url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""

    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return
    database = parsed.database or ""
    if not database or database == ":memory:":
        return
    Path(database).parent.mkdir(parents=True, exist_ok=True)


def create_engine_from_url(url: str) -> AsyncEngine:
    """Build the async engine used for brand kit storage."""

    _ensure_sqlite_directory(url)
    return create_async_engine(url, echo=False)


engine = create_engine_from_url(get_settings().database_url)
AsyncSessionFactory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield a managed asynchronous SQLAlchemy session."""

    async with AsyncSessionFactory() as session:
        yield session


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create the brand kit tables if they do not exist."""

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
