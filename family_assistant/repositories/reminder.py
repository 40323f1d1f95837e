"""
Reminder repository: the SQLAlchemy implementation of ReminderStore.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from family_assistant.domain.reminder import Reminder, ReminderRepeat
from family_assistant.utils.time import get_current_time, to_local

logger = logging.getLogger(__name__)


class ReminderRepository:
    """Reminder persistence over an AsyncSession. Every write commits."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_reminder(
        self,
        user_id: int,
        chat_id: str,
        family_id: Optional[int],
        text: str,
        remind_at: datetime,
        repeat: ReminderRepeat = ReminderRepeat.NONE,
    ) -> Reminder:
        now = get_current_time()
        reminder = Reminder(
            user_id=user_id,
            chat_id=chat_id,
            family_id=family_id,
            text=text,
            remind_at=to_local(remind_at),
            repeat=ReminderRepeat(repeat or ReminderRepeat.NONE),
            active=True,
            created_at=now,
            updated_at=now,
        )
        self.session.add(reminder)
        await self.session.commit()
        logger.info(f"Created reminder {reminder.id} for chat {chat_id} at {reminder.remind_at}")
        return reminder

    async def get_reminder_by_id(self, reminder_id: int) -> Optional[Reminder]:
        result = await self.session.execute(
            select(Reminder)
            .where(Reminder.id == reminder_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def current_time(self) -> datetime:
        """
        The database server's clock as a naive datetime in the reference timezone.

        SQLite's CURRENT_TIMESTAMP is naive UTC; server backends return an
        aware value.
        """
        result = await self.session.execute(select(func.current_timestamp()))
        now = result.scalar_one()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return to_local(now)

    async def get_due_reminders(self, now: datetime) -> List[Reminder]:
        """
        Return active reminders with remind_at <= now, earliest first.

        The rows are detached from the session: the scheduler mutates them
        in memory and persists each one through update_reminder(), so a row
        deleted in the meantime can never be flushed back by the ORM.
        """
        result = await self.session.execute(
            select(Reminder)
            .where(Reminder.active.is_(True), Reminder.remind_at <= to_local(now))
            .order_by(Reminder.remind_at.asc(), Reminder.id.asc())
            .execution_options(populate_existing=True)
        )
        reminders = list(result.scalars().all())
        for reminder in reminders:
            self.session.expunge(reminder)
        return reminders

    async def update_reminder(self, reminder: Reminder) -> Optional[Reminder]:
        """
        Replace the mutable columns of a reminder in one UPDATE keyed by id.

        Returns:
            The reminder, or None when the row no longer exists
        """
        reminder.updated_at = get_current_time()
        try:
            result = await self.session.execute(
                update(Reminder)
                .where(Reminder.id == reminder.id)
                .values({
                    Reminder.text: reminder.text,
                    Reminder.remind_at: reminder.remind_at,
                    Reminder.repeat: reminder.repeat,
                    Reminder.active: reminder.active,
                    Reminder.last_sent_at: reminder.last_sent_at,
                    Reminder.updated_at: reminder.updated_at,
                })
                .execution_options(synchronize_session=False)
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        if result.rowcount == 0:
            return None
        return reminder

    async def delete_reminder(self, reminder_id: int) -> bool:
        try:
            result = await self.session.execute(
                delete(Reminder)
                .where(Reminder.id == reminder_id)
                .execution_options(synchronize_session=False)
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return result.rowcount > 0

    async def get_reminders_by_user(self, user_id: int) -> List[Reminder]:
        result = await self.session.execute(
            select(Reminder)
            .where(Reminder.user_id == user_id)
            .order_by(Reminder.remind_at.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_reminders_by_chat(self, chat_id: str) -> List[Reminder]:
        result = await self.session.execute(
            select(Reminder)
            .where(Reminder.chat_id == chat_id)
            .order_by(Reminder.remind_at.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())
