"""
Personal wish lists, one per user per family.

Reservations are hidden from the list owner so gifts stay a surprise.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from family_assistant.domain.base import Base
from family_assistant.utils.time import get_current_time


class WishList(Base):
    """SQLAlchemy model for a user's wish list inside a family."""

    __tablename__ = "wish_lists"
    __table_args__ = (
        UniqueConstraint("user_id", "family_id", name="uq_wish_list_owner"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    family_id = Column(Integer, ForeignKey("families.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=get_current_time)
    updated_at = Column(DateTime, default=get_current_time, onupdate=get_current_time)


class WishItem(Base):
    """SQLAlchemy model for a wish list item."""

    __tablename__ = "wish_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    wish_list_id = Column(Integer, ForeignKey("wish_lists.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(500), nullable=False)
    url = Column(String(2000), nullable=False, default="")
    price = Column(String(64), nullable=False, default="")
    notes = Column(Text, nullable=False, default="")
    reserved = Column(Boolean, nullable=False, default=False)
    reserved_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=get_current_time)

    def __repr__(self) -> str:
        return f"<WishItem(id={self.id}, name={self.name}, reserved={self.reserved})>"


# Pydantic Schemas

class WishItemCreate(BaseModel):
    """Schema for adding a wish."""
    name: str = Field(..., min_length=1, max_length=500)
    url: str = ""
    price: str = ""
    notes: str = ""
    user_id: int
    family_id: int


class WishItemResponse(BaseModel):
    """Schema for wish item response as seen by other family members."""
    id: int
    wish_list_id: int
    name: str
    url: str
    price: str
    notes: str
    reserved: bool
    reserved_by_id: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True
