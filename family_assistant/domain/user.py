"""
User domain model and schemas.
"""

from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Boolean, Column, DateTime, Integer, String

from family_assistant.domain.base import Base
from family_assistant.utils.time import get_current_time


class User(Base):
    """A chat participant, keyed by their messaging-platform id."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    external_id = Column(String(128), nullable=False, unique=True, index=True)
    username = Column(String(255), nullable=False, default="")
    first_name = Column(String(255), nullable=False, default="")
    last_name = Column(String(255), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=get_current_time)
    updated_at = Column(DateTime, default=get_current_time, onupdate=get_current_time)

    @property
    def full_name(self) -> str:
        if self.last_name:
            return f"{self.first_name} {self.last_name}".strip()
        return self.first_name or ""

    @property
    def display_name(self) -> str:
        """Best name to show in chat: @username, else the full name."""
        if self.username:
            return f"@{self.username}"
        return self.full_name or self.external_id

    def __repr__(self) -> str:
        return f"<User(id={self.id}, external_id={self.external_id})>"


class UserResponse(BaseModel):
    """Schema for user response."""
    id: int
    external_id: str
    username: str
    first_name: str
    last_name: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
