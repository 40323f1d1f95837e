"""
Calendar event repository.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from family_assistant.domain.calendar_event import CalendarEvent


class CalendarRepository:
    """Calendar event persistence over an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, event: CalendarEvent) -> CalendarEvent:
        self.session.add(event)
        await self.session.commit()
        return event

    async def get_by_id(self, event_id: int) -> Optional[CalendarEvent]:
        return await self.session.get(CalendarEvent, event_id)

    async def get_by_chat_id(
        self,
        chat_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[CalendarEvent]:
        query = select(CalendarEvent).where(CalendarEvent.chat_id == chat_id)
        if start is not None:
            query = query.where(CalendarEvent.start_time >= start)
        if end is not None:
            query = query.where(CalendarEvent.start_time <= end)
        query = query.order_by(CalendarEvent.start_time, CalendarEvent.id)
        if limit:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def delete(self, event_id: int) -> bool:
        result = await self.session.execute(delete(CalendarEvent).where(CalendarEvent.id == event_id))
        await self.session.commit()
        return result.rowcount > 0
