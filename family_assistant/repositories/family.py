"""
Family and membership repository.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from family_assistant.domain.family import Family, FamilyMember, FamilyRole
from family_assistant.domain.user import User


class FamilyRepository:
    """Family persistence over an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, family: Family) -> Family:
        self.session.add(family)
        await self.session.commit()
        return family

    async def get_by_chat_id(self, chat_id: str) -> Optional[Family]:
        result = await self.session.execute(
            select(Family).where(Family.chat_id == chat_id)
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, family_id: int) -> Optional[Family]:
        return await self.session.get(Family, family_id)

    async def update(self, family: Family) -> Family:
        await self.session.commit()
        return family

    async def add_member(self, family_id: int, user_id: int, role: FamilyRole = FamilyRole.MEMBER) -> FamilyMember:
        member = FamilyMember(family_id=family_id, user_id=user_id, role=role)
        self.session.add(member)
        await self.session.commit()
        return member

    async def get_members(self, family_id: int) -> List[User]:
        result = await self.session.execute(
            select(User)
            .join(FamilyMember, FamilyMember.user_id == User.id)
            .where(FamilyMember.family_id == family_id)
            .order_by(FamilyMember.joined_at, User.id)
        )
        return list(result.scalars().all())

    async def get_membership(self, family_id: int, user_id: int) -> Optional[FamilyMember]:
        result = await self.session.execute(
            select(FamilyMember).where(
                FamilyMember.family_id == family_id,
                FamilyMember.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()
