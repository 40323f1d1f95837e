"""
Pytest configuration and fixtures for Family Assistant tests.
"""

import os

# Settings are read at import time; provide test values before any app import
os.environ.setdefault("TWILIO_ACCOUNT_SID", "ACtest123")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "test_token")
os.environ.setdefault("TWILIO_WHATSAPP_NUMBER", "whatsapp:+14155238886")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("VALIDATE_TWILIO_SIGNATURE", "false")
os.environ.setdefault("TIMEZONE", "UTC")

from datetime import datetime
from typing import AsyncGenerator
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from family_assistant.domain.base import Base
from family_assistant.domain.family import Family
from family_assistant.domain.reminder import Reminder, ReminderRepeat
from family_assistant.domain.user import User
from family_assistant.usecases.family_service import SenderProfile

# Importing the database module registers every table on Base.metadata
import family_assistant.infrastructure.database  # noqa: F401,E402


# Use a separate in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

CHAT_ID = "whatsapp:+15550001111"


@pytest_asyncio.fixture
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def test_session_factory(test_engine) -> async_sessionmaker:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def test_session(test_session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with test_session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def alice(test_session) -> User:
    user = User(external_id="whatsapp:+15550001111", username="alice", first_name="Alice")
    test_session.add(user)
    await test_session.commit()
    return user


@pytest_asyncio.fixture
async def bob(test_session) -> User:
    user = User(external_id="whatsapp:+15550002222", username="bob", first_name="Bob")
    test_session.add(user)
    await test_session.commit()
    return user


@pytest_asyncio.fixture
async def family(test_session) -> Family:
    family = Family(chat_id=CHAT_ID, name="The Smiths")
    test_session.add(family)
    await test_session.commit()
    return family


@pytest.fixture
def alice_profile() -> SenderProfile:
    return SenderProfile(external_id="whatsapp:+15550001111", username="alice", first_name="Alice")


@pytest.fixture
def bob_profile() -> SenderProfile:
    return SenderProfile(external_id="whatsapp:+15550002222", username="bob", first_name="Bob")


@pytest.fixture
def make_reminder():
    """Build a detached reminder row for store fakes."""
    def _make(reminder_id: int, remind_at: datetime, repeat=ReminderRepeat.NONE, text="Take out the trash") -> Reminder:
        return Reminder(
            id=reminder_id,
            user_id=1,
            chat_id=CHAT_ID,
            family_id=None,
            text=text,
            remind_at=remind_at,
            repeat=repeat,
            active=True,
        )
    return _make


@pytest.fixture
def mock_twilio_client():
    """Mock Twilio client for testing."""
    mock_client = MagicMock()
    mock_message = MagicMock()
    mock_message.sid = "SM123456789"
    mock_client.messages.create.return_value = mock_message
    return mock_client
