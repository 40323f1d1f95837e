"""
Database setup and session management.
"""

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from family_assistant.config.settings import get_settings
from family_assistant.domain.base import Base

# Imported for table registration on Base.metadata
from family_assistant.domain.buying_list import BuyingItem, BuyingList  # noqa: F401
from family_assistant.domain.calendar_event import CalendarEvent  # noqa: F401
from family_assistant.domain.family import Family, FamilyMember  # noqa: F401
from family_assistant.domain.processed_message import ProcessedMessage  # noqa: F401
from family_assistant.domain.reminder import Reminder  # noqa: F401
from family_assistant.domain.todo import Todo  # noqa: F401
from family_assistant.domain.user import User  # noqa: F401
from family_assistant.domain.wish_list import WishItem, WishList  # noqa: F401

settings = get_settings()


def _engine_kwargs(url: str) -> dict:
    """
    Engine options per backend.

    An in-memory SQLite database only exists on its connection, so it is
    shared through StaticPool. A SQLite file gets one connection per session,
    each with its own transaction; `timeout` waits out another writer's lock.
    """
    if url.startswith("sqlite") and ":memory:" in url:
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False, "timeout": 30}}
    return {"pool_pre_ping": True}


# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_kwargs(settings.database_url),
)

# Session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_database() -> None:
    """Initialize database and create tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_database() -> None:
    """Close pooled connections on shutdown."""
    await engine.dispose()


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding a new database session."""
    async with async_session_factory() as session:
        yield session


class DatabaseSession:
    """Context manager for database sessions."""

    async def __aenter__(self) -> AsyncSession:
        self.session = async_session_factory()
        return self.session

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            await self.session.rollback()
        await self.session.close()
