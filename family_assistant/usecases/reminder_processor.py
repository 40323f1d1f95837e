"""
Due-reminder processing: one pass of the reminder loop.

A pass loads every active reminder whose remind_at has elapsed, delivers a
notification for each, then either deactivates it (one-shot) or moves it to
its next occurrence (repeating). Failures are isolated per reminder.
"""

import logging
from datetime import datetime
from typing import Optional, Set

from pydantic import BaseModel

from family_assistant.domain.ports import DeliverFn, ReminderStore
from family_assistant.domain.reminder import Reminder
from family_assistant.utils.time import to_local

logger = logging.getLogger(__name__)


def render_reminder(reminder: Reminder) -> str:
    """Notification text sent to the chat when a reminder fires."""
    return f"⏰ *Reminder*\n{reminder.text}"


class ProcessResult(BaseModel):
    """Outcome counters of one pass."""
    due: int = 0
    fired: int = 0
    delivery_failures: int = 0
    missing: int = 0
    update_failures: int = 0


class DueReminderProcessor:
    """Fires due reminders against a ReminderStore."""

    def __init__(self, store: ReminderStore, deliver: DeliverFn):
        self.store = store
        self.deliver = deliver

    async def process_due(self, now: Optional[datetime] = None) -> ProcessResult:
        """
        Fire every reminder due at `now`.

        Args:
            now: Pass reference time (defaults to the store's clock)

        Returns:
            Counters for the pass
        """
        result = ProcessResult()

        try:
            now = to_local(now) if now is not None else await self.store.current_time()
            reminders = await self.store.get_due_reminders(now)
        except Exception as e:
            logger.exception(f"Failed to load due reminders: {e}")
            return result

        result.due = len(reminders)
        seen: Set[int] = set()

        for reminder in reminders:
            if reminder.id in seen:
                continue
            seen.add(reminder.id)
            await self._fire(reminder, now, result)

        if result.due:
            logger.info(
                f"Reminder pass at {now}: {result.fired} fired, "
                f"{result.delivery_failures} delivery failures, "
                f"{result.missing} deleted, {result.update_failures} update failures"
            )
        return result

    async def _fire(self, reminder: Reminder, now: datetime, result: ProcessResult) -> None:
        try:
            await self.deliver(reminder.chat_id, render_reminder(reminder))
        except Exception as e:
            # The reminder advances even when delivery failed
            result.delivery_failures += 1
            logger.error(f"Failed to deliver reminder {reminder.id} to {reminder.chat_id}: {e}")

        reminder.last_sent_at = now
        if reminder.is_repeating:
            reminder.remind_at = reminder.next_remind_at()
        else:
            reminder.active = False

        try:
            updated = await self.store.update_reminder(reminder)
        except Exception as e:
            result.update_failures += 1
            logger.exception(f"Failed to update reminder {reminder.id}: {e}")
            return

        if updated is None:
            result.missing += 1
            logger.warning(f"Reminder {reminder.id} was deleted while firing")
            return

        result.fired += 1
        if reminder.is_repeating:
            logger.info(f"Reminder {reminder.id} fired, next at {reminder.remind_at}")
        else:
            logger.info(f"Reminder {reminder.id} fired and deactivated")
