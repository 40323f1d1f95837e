"""
Ports the reminder scheduler depends on.

The scheduler only knows these protocols; the SQLAlchemy repository and the
Twilio sender are plugged in at startup, and tests substitute in-memory fakes.
"""

from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Protocol

from family_assistant.domain.reminder import Reminder, ReminderRepeat

# deliver(chat_id, text): raises on transport failure
DeliverFn = Callable[[str, str], Awaitable[None]]


class ReminderStore(Protocol):
    """Persistence contract for reminders."""

    async def create_reminder(
        self,
        user_id: int,
        chat_id: str,
        family_id: Optional[int],
        text: str,
        remind_at: datetime,
        repeat: ReminderRepeat = ReminderRepeat.NONE,
    ) -> Reminder: ...

    async def get_reminder_by_id(self, reminder_id: int) -> Optional[Reminder]: ...

    async def current_time(self) -> datetime: ...

    async def get_due_reminders(self, now: datetime) -> List[Reminder]: ...

    async def update_reminder(self, reminder: Reminder) -> Optional[Reminder]: ...

    async def delete_reminder(self, reminder_id: int) -> bool: ...

    async def get_reminders_by_user(self, user_id: int) -> List[Reminder]: ...
