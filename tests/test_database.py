"""
Tests for engine configuration against a SQLite file.
"""

import asyncio
from datetime import timedelta

import pytest
import pytest_asyncio
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from family_assistant.domain.base import Base
from family_assistant.domain.reminder import Reminder
from family_assistant.domain.user import User
from family_assistant.infrastructure.database import _engine_kwargs
from family_assistant.infrastructure.scheduler import ReminderScheduler
from family_assistant.repositories.reminder import ReminderRepository
from family_assistant.utils.time import get_current_time

CHAT_ID = "whatsapp:+15550001111"


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """Session factory over an on-disk database with the production engine options."""
    url = f"sqlite+aiosqlite:///{tmp_path}/family_assistant.db"
    engine = create_async_engine(url, **_engine_kwargs(url))

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


async def add_user_and_reminder(session_factory):
    async with session_factory() as session:
        user = User(external_id=CHAT_ID, username="alice", first_name="Alice")
        session.add(user)
        await session.commit()
        return await ReminderRepository(session).create_reminder(
            user.id, CHAT_ID, None, "Water the plants", get_current_time() - timedelta(minutes=1)
        )


async def load_reminder(session_factory, reminder_id):
    async with session_factory() as session:
        return await ReminderRepository(session).get_reminder_by_id(reminder_id)


def test_memory_database_shares_one_connection():
    assert _engine_kwargs("sqlite+aiosqlite:///:memory:")["poolclass"] is StaticPool


def test_file_database_uses_a_connection_per_session():
    kwargs = _engine_kwargs("sqlite+aiosqlite:///./family_assistant.db")

    assert "poolclass" not in kwargs
    assert kwargs["connect_args"]["timeout"] > 0


class TestSessionIsolation:

    @pytest.mark.asyncio
    async def test_closing_another_session_keeps_pending_update(self, file_session_factory):
        reminder = await add_user_and_reminder(file_session_factory)

        async with file_session_factory() as writer:
            result = await writer.execute(
                update(Reminder).where(Reminder.id == reminder.id).values(active=False)
            )
            assert result.rowcount == 1

            async with file_session_factory() as reader:
                await reader.execute(select(User))

            await writer.commit()

        stored = await load_reminder(file_session_factory, reminder.id)
        assert stored.active is False

    @pytest.mark.asyncio
    async def test_tick_state_survives_concurrent_request(self, file_session_factory):
        reminder = await add_user_and_reminder(file_session_factory)
        delivering = asyncio.Event()
        request_done = asyncio.Event()

        async def slow_deliver(chat_id, text):
            delivering.set()
            await request_done.wait()

        async def request():
            await delivering.wait()
            async with file_session_factory() as session:
                await session.execute(select(User))
            request_done.set()

        scheduler = ReminderScheduler(file_session_factory, slow_deliver)
        result, _ = await asyncio.wait_for(asyncio.gather(scheduler.tick(), request()), timeout=10)

        assert result.fired == 1
        stored = await load_reminder(file_session_factory, reminder.id)
        assert stored.active is False
        assert stored.last_sent_at is not None

        # Nothing is due on the next pass
        second = await scheduler.tick()
        assert second.due == 0
