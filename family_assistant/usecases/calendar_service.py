"""
Calendar service: shared family events.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from family_assistant.domain.calendar_event import CalendarEvent, EventRecurrence
from family_assistant.domain.errors import NotFoundError, ValidationError, require_owner
from family_assistant.repositories.calendar import CalendarRepository
from family_assistant.utils.time import get_current_time, to_local

logger = logging.getLogger(__name__)


class CalendarService:
    """Service class for calendar events."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repository = CalendarRepository(session)

    async def create_event(
        self,
        chat_id: str,
        created_by_id: int,
        title: str,
        start_time: datetime,
        end_time: Optional[datetime] = None,
        all_day: bool = False,
        description: str = "",
        location: str = "",
        recurring: EventRecurrence = EventRecurrence.NONE,
        family_id: Optional[int] = None,
    ) -> CalendarEvent:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Event title is required.")

        start_time = to_local(start_time)
        if end_time is not None:
            end_time = to_local(end_time)
            if end_time < start_time:
                raise ValidationError("Event cannot end before it starts.")

        event = await self.repository.create(
            CalendarEvent(
                chat_id=chat_id,
                family_id=family_id,
                title=title,
                description=description or "",
                start_time=start_time,
                end_time=end_time,
                all_day=all_day,
                location=location or "",
                recurring=EventRecurrence(recurring),
                created_by_id=created_by_id,
            )
        )
        logger.info(f"Created event {event.id} in chat {chat_id} at {event.start_time}")
        return event

    async def get_event(self, event_id: int) -> CalendarEvent:
        event = await self.repository.get_by_id(event_id)
        if event is None:
            raise NotFoundError("Event", event_id)
        return event

    async def list_events(
        self,
        chat_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[CalendarEvent]:
        """Events of a chat in [start, end]. Without a start, upcoming events from today on."""
        if start is None:
            start = get_current_time().replace(hour=0, minute=0, second=0, microsecond=0)
        else:
            start = to_local(start)
        if end is not None:
            end = to_local(end)
        return await self.repository.get_by_chat_id(chat_id, start=start, end=end)

    async def delete_event(self, event_id: int, actor_id: int) -> CalendarEvent:
        event = await self.get_event(event_id)
        require_owner(actor_id, event.created_by_id, message="You can only delete events you created.")
        await self.repository.delete(event_id)
        logger.info(f"Deleted event {event_id} by user {actor_id}")
        return event
