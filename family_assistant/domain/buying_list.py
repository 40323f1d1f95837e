"""
Shared shopping list, one per chat.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from family_assistant.domain.base import Base
from family_assistant.utils.time import get_current_time


class BuyingList(Base):
    """SQLAlchemy model for a chat's shopping list."""

    __tablename__ = "buying_lists"

    id = Column(Integer, primary_key=True, autoincrement=True)
    family_id = Column(Integer, ForeignKey("families.id", ondelete="CASCADE"), nullable=True)
    chat_id = Column(String(128), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False, default="Shopping List")
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=get_current_time)
    updated_at = Column(DateTime, default=get_current_time, onupdate=get_current_time)


class BuyingItem(Base):
    """SQLAlchemy model for a shopping list item."""

    __tablename__ = "buying_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    buying_list_id = Column(Integer, ForeignKey("buying_lists.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(500), nullable=False)
    quantity = Column(String(32), nullable=False, default="1")
    bought = Column(Boolean, nullable=False, default=False)
    bought_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    added_by_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=get_current_time)

    def __repr__(self) -> str:
        return f"<BuyingItem(id={self.id}, name={self.name}, bought={self.bought})>"


# Pydantic Schemas

class BuyingItemCreate(BaseModel):
    """Schema for adding an item to a chat's shopping list."""
    name: str = Field(..., min_length=1, max_length=500)
    quantity: str = Field("1", max_length=32)
    added_by_id: int
    chat_id: str = Field(..., min_length=1)
    family_id: Optional[int] = None


class BuyingItemResponse(BaseModel):
    """Schema for shopping list item response."""
    id: int
    buying_list_id: int
    name: str
    quantity: str
    bought: bool
    bought_by_id: Optional[int]
    added_by_id: int
    created_at: datetime

    class Config:
        from_attributes = True
