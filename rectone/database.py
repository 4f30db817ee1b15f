"""Database engine and session management for the remote store."""

import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from .store.orm import Base


def get_database_url(url_or_path: Optional[str] = None) -> str:
    """Get an async database URL from a URL, a SQLite file path or the environment."""
    if url_or_path is None:
        url_or_path = os.getenv("RECTONE_DATABASE_URL") or "data/rectone.db"

    if "://" in url_or_path:
        return url_or_path

    # Ensure directory exists
    Path(url_or_path).parent.mkdir(parents=True, exist_ok=True)

    return f"sqlite+aiosqlite:///{url_or_path}"


def get_engine(url_or_path: Optional[str] = None) -> AsyncEngine:
    """Create async database engine."""
    url = get_database_url(url_or_path)
    return create_async_engine(url, echo=False)


def describe_engine(engine: AsyncEngine) -> str:
    """Engine URL with the password masked, for logs."""
    return engine.url.render_as_string(hide_password=True)


async def init_db(engine: AsyncEngine) -> None:
    """Initialize database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def get_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Get async database session."""
    async_session = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
