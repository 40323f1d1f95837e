"""
Reminder domain model and schemas.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, Field
from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, ForeignKey, Index, Integer, String, Text

from family_assistant.domain.base import Base
from family_assistant.utils.time import get_current_time


class ReminderRepeat(str, Enum):
    """How often a reminder fires."""
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


_REPEAT_STEP = {
    ReminderRepeat.DAILY: relativedelta(days=1),
    ReminderRepeat.WEEKLY: relativedelta(days=7),
    # relativedelta clamps to the last day of a shorter month: Jan 31 -> Feb 28/29
    ReminderRepeat.MONTHLY: relativedelta(months=1),
}


def compute_next(remind_at: datetime, repeat: ReminderRepeat) -> datetime:
    """
    Compute the next fire time of a repeating reminder.

    The step is added to the previous remind_at, not to "now", so the
    time of day is preserved. A reminder that missed several occurrences
    catches up one occurrence per poll.

    Args:
        remind_at: The fire time that was just delivered
        repeat: Repeat interval of the reminder

    Returns:
        The next fire time (strictly later than remind_at)

    Raises:
        ValueError: If the reminder does not repeat
    """
    step = _REPEAT_STEP.get(ReminderRepeat(repeat))
    if step is None:
        raise ValueError("non-repeating reminders have no next occurrence")
    return remind_at + step


class Reminder(Base):
    """SQLAlchemy model for reminders."""

    __tablename__ = "reminders"
    __table_args__ = (
        Index("ix_reminders_due", "active", "remind_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    family_id = Column(Integer, ForeignKey("families.id", ondelete="CASCADE"), nullable=True)
    chat_id = Column(String(128), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    remind_at = Column(DateTime, nullable=False)
    repeat = Column("repeat_interval", SQLEnum(ReminderRepeat), nullable=False, default=ReminderRepeat.NONE)
    active = Column(Boolean, nullable=False, default=True)
    last_sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=get_current_time)
    updated_at = Column(DateTime, default=get_current_time, onupdate=get_current_time)

    @property
    def is_repeating(self) -> bool:
        return self.repeat not in (None, ReminderRepeat.NONE)

    def next_remind_at(self) -> datetime:
        return compute_next(self.remind_at, self.repeat)

    def __repr__(self) -> str:
        return f"<Reminder(id={self.id}, remind_at={self.remind_at}, repeat={self.repeat}, active={self.active})>"


# Pydantic Schemas

class ReminderCreate(BaseModel):
    """Schema for creating a reminder through the REST API."""
    text: str = Field(..., min_length=1, max_length=1000)
    remind_at: datetime
    repeat: ReminderRepeat = ReminderRepeat.NONE
    user_id: int
    chat_id: str = Field(..., min_length=1)
    family_id: Optional[int] = None


class ReminderResponse(BaseModel):
    """Schema for reminder response."""
    id: int
    family_id: Optional[int]
    chat_id: str
    user_id: int
    text: str
    remind_at: datetime
    repeat: ReminderRepeat
    active: bool
    last_sent_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
