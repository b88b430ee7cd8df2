"""Shared fixtures for the test-suite."""

from __future__ import annotations

import os
from io import BytesIO
from pathlib import Path
from typing import AsyncIterator, Callable

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from trendstudio.config.settings import get_settings
from trendstudio.db.session import init_db

RED = bytes((255, 0, 0, 255))
BLUE = bytes((0, 0, 255, 255))


@pytest.fixture(autouse=True)
def _reset_settings() -> None:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def red_blue_pixels() -> bytes:
    """100x100 bitmap: 70% red rows followed by 30% blue rows."""

    return RED * 7000 + BLUE * 3000


@pytest.fixture()
def make_png() -> Callable[[bytes, tuple[int, int]], bytes]:
    def _make(pixels: bytes, size: tuple[int, int]) -> bytes:
        image = Image.frombytes("RGBA", size, pixels)
        buffer = BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()

    return _make


@pytest.fixture()
def red_blue_png(make_png, red_blue_pixels: bytes) -> bytes:
    return make_png(red_blue_pixels, (100, 100))


@pytest_asyncio.fixture()
async def session_factory(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest_asyncio.fixture()
async def session(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as db_session:
        yield db_session
