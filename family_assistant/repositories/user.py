"""
User repository.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from family_assistant.domain.user import User


class UserRepository:
    """User persistence over an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, user: User) -> User:
        self.session.add(user)
        await self.session.commit()
        return user

    async def get_by_external_id(self, external_id: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.external_id == external_id)
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_by_username(self, username: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.username == username.lstrip("@"))
        )
        return result.scalars().first()

    async def update(self, user: User) -> User:
        """Commit pending changes on an attached user."""
        await self.session.commit()
        return user
