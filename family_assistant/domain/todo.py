"""
Todo domain model and schemas.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from sqlalchemy import Column, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text

from family_assistant.domain.base import Base
from family_assistant.utils.time import get_current_time


class TodoStatus(str, Enum):
    """Todo status enumeration."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TodoPriority(str, Enum):
    """Todo priority enumeration."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Todo(Base):
    """SQLAlchemy model for shared todos."""

    __tablename__ = "todos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    chat_id = Column(String(128), nullable=False, index=True)
    family_id = Column(Integer, ForeignKey("families.id", ondelete="CASCADE"), nullable=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(SQLEnum(TodoStatus), nullable=False, default=TodoStatus.PENDING)
    priority = Column(SQLEnum(TodoPriority), nullable=False, default=TodoPriority.MEDIUM)
    deadline = Column(DateTime, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    assigned_to_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=get_current_time)
    updated_at = Column(DateTime, default=get_current_time, onupdate=get_current_time)

    @property
    def is_completed(self) -> bool:
        return self.status == TodoStatus.COMPLETED

    def is_overdue(self, now: datetime) -> bool:
        if self.deadline is None or self.is_completed:
            return False
        return now > self.deadline

    def __repr__(self) -> str:
        return f"<Todo(id={self.id}, title={self.title}, status={self.status})>"


# Pydantic Schemas

class TodoCreate(BaseModel):
    """Schema for creating a todo."""
    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    priority: TodoPriority = TodoPriority.MEDIUM
    deadline: Optional[datetime] = None
    created_by_id: int
    assigned_to_id: Optional[int] = None
    chat_id: str = Field(..., min_length=1)
    family_id: Optional[int] = None


class TodoResponse(BaseModel):
    """Schema for todo response."""
    id: int
    chat_id: str
    family_id: Optional[int]
    title: str
    description: str
    status: TodoStatus
    priority: TodoPriority
    deadline: Optional[datetime]
    created_by_id: int
    assigned_to_id: Optional[int]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
