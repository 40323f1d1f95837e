"""
Family (one per chat) and its membership roster.
"""

from enum import Enum

from sqlalchemy import Column, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, UniqueConstraint

from family_assistant.domain.base import Base
from family_assistant.utils.time import get_current_time


class FamilyRole(str, Enum):
    """Role of a user inside a family."""
    ADMIN = "admin"
    MEMBER = "member"


class Family(Base):
    """A household, mapped one-to-one to a chat."""

    __tablename__ = "families"

    id = Column(Integer, primary_key=True, autoincrement=True)
    chat_id = Column(String(128), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False, default="")
    created_at = Column(DateTime, default=get_current_time)
    updated_at = Column(DateTime, default=get_current_time, onupdate=get_current_time)

    def __repr__(self) -> str:
        return f"<Family(id={self.id}, chat_id={self.chat_id}, name={self.name})>"


class FamilyMember(Base):
    """Join row between families and users."""

    __tablename__ = "family_members"
    __table_args__ = (
        UniqueConstraint("family_id", "user_id", name="uq_family_member"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    family_id = Column(Integer, ForeignKey("families.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(SQLEnum(FamilyRole), nullable=False, default=FamilyRole.MEMBER)
    joined_at = Column(DateTime, default=get_current_time)

    def __repr__(self) -> str:
        return f"<FamilyMember(family_id={self.family_id}, user_id={self.user_id}, role={self.role})>"
