"""
Processed message model for idempotency tracking.
Tracks Twilio message SIDs so a retried webhook never runs a command twice.
"""

from sqlalchemy import Column, DateTime, String

from family_assistant.domain.base import Base
from family_assistant.utils.time import get_current_time


class ProcessedMessage(Base):
    """SQLAlchemy model for tracking processed WhatsApp messages."""

    __tablename__ = "processed_messages"

    message_sid = Column(String(64), primary_key=True)
    processed_at = Column(DateTime, default=get_current_time, index=True)

    def __repr__(self) -> str:
        return f"<ProcessedMessage(sid={self.message_sid}, at={self.processed_at})>"
