"""
Calendar event domain model and schemas.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text

from family_assistant.domain.base import Base
from family_assistant.utils.time import get_current_time


class EventRecurrence(str, Enum):
    """Recurrence of a calendar event (informational only)."""
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class CalendarEvent(Base):
    """SQLAlchemy model for family calendar events."""

    __tablename__ = "calendar_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    family_id = Column(Integer, ForeignKey("families.id", ondelete="CASCADE"), nullable=True)
    chat_id = Column(String(128), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False, default="")
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=True)
    all_day = Column(Boolean, nullable=False, default=False)
    recurring = Column(SQLEnum(EventRecurrence), nullable=False, default=EventRecurrence.NONE)
    location = Column(String(500), nullable=False, default="")
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=get_current_time)
    updated_at = Column(DateTime, default=get_current_time, onupdate=get_current_time)

    def __repr__(self) -> str:
        return f"<CalendarEvent(id={self.id}, title={self.title}, start_time={self.start_time})>"


# Pydantic Schemas

class CalendarEventCreate(BaseModel):
    """Schema for creating a calendar event."""
    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    start_time: datetime
    end_time: Optional[datetime] = None
    all_day: bool = False
    recurring: EventRecurrence = EventRecurrence.NONE
    location: str = ""
    created_by_id: int
    chat_id: str = Field(..., min_length=1)
    family_id: Optional[int] = None


class CalendarEventResponse(BaseModel):
    """Schema for calendar event response."""
    id: int
    family_id: Optional[int]
    chat_id: str
    title: str
    description: str
    start_time: datetime
    end_time: Optional[datetime]
    all_day: bool
    recurring: EventRecurrence
    location: str
    created_by_id: int
    created_at: datetime

    class Config:
        from_attributes = True
