"""
Reminder service for handling all reminder-related operations.

Creation and deletion only touch the store; firing is the job of the
background scheduler, which picks up new rows on its next poll.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from family_assistant.domain.errors import NotFoundError, ValidationError, require_owner
from family_assistant.domain.reminder import Reminder, ReminderRepeat
from family_assistant.repositories.reminder import ReminderRepository

logger = logging.getLogger(__name__)


class ReminderService:
    """Service class for reminder operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repository = ReminderRepository(session)

    async def create_reminder(
        self,
        user_id: int,
        chat_id: str,
        text: str,
        remind_at: datetime,
        repeat: ReminderRepeat = ReminderRepeat.NONE,
        family_id: Optional[int] = None,
    ) -> Reminder:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Reminder text is required.")

        try:
            repeat = ReminderRepeat(repeat or ReminderRepeat.NONE)
        except ValueError:
            raise ValidationError(f"Unknown repeat interval: {repeat}")

        return await self.repository.create_reminder(
            user_id=user_id,
            chat_id=chat_id,
            family_id=family_id,
            text=text,
            remind_at=remind_at,
            repeat=repeat,
        )

    async def get_reminder(self, reminder_id: int) -> Reminder:
        reminder = await self.repository.get_reminder_by_id(reminder_id)
        if reminder is None:
            raise NotFoundError("Reminder", reminder_id)
        return reminder

    async def list_for_user(self, user_id: int) -> List[Reminder]:
        """Active reminders owned by the user, soonest first."""
        reminders = await self.repository.get_reminders_by_user(user_id)
        return [r for r in reminders if r.active]

    async def list_for_chat(self, chat_id: str, active_only: bool = True) -> List[Reminder]:
        reminders = await self.repository.get_reminders_by_chat(chat_id)
        if active_only:
            return [r for r in reminders if r.active]
        return reminders

    async def delete_reminder(self, reminder_id: int, actor_id: int) -> Reminder:
        """
        Delete a reminder on behalf of its owner.

        Raises:
            NotFoundError: If the reminder does not exist
            PermissionDeniedError: If actor_id is not the owner
        """
        reminder = await self.get_reminder(reminder_id)
        require_owner(actor_id, reminder.user_id, message="You can only delete your own reminders.")

        if not await self.repository.delete_reminder(reminder_id):
            # Fired-and-deleted between the read and the delete
            raise NotFoundError("Reminder", reminder_id)

        logger.info(f"Deleted reminder {reminder_id} by user {actor_id}")
        return reminder
