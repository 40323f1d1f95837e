"""
Family service: idempotent provisioning of users, chats and memberships.

Every command that creates something runs through ensure_context() first,
so a chat becomes a family and its participants become members the first
time they talk to the assistant.
"""

import logging
from typing import List, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from family_assistant.domain.family import Family, FamilyMember, FamilyRole
from family_assistant.domain.user import User
from family_assistant.repositories.family import FamilyRepository
from family_assistant.repositories.user import UserRepository

logger = logging.getLogger(__name__)


class SenderProfile(BaseModel):
    """Identity of the person who sent a command."""
    external_id: str
    username: str = ""
    first_name: str = ""
    last_name: str = ""


class FamilyService:
    """Service class for users, families and memberships."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepository(session)
        self.families = FamilyRepository(session)

    async def ensure_user(
        self,
        external_id: str,
        username: str = "",
        first_name: str = "",
        last_name: str = "",
    ) -> User:
        """
        Get or create a user, refreshing the profile when it drifted.

        Exactly one write happens on create or drift, none otherwise.
        """
        external_id = external_id.strip()
        username = (username or "").strip().lstrip("@")
        first_name = (first_name or "").strip()
        last_name = (last_name or "").strip()

        user = await self.users.get_by_external_id(external_id)
        if user is None:
            user = await self.users.create(
                User(
                    external_id=external_id,
                    username=username,
                    first_name=first_name,
                    last_name=last_name,
                )
            )
            logger.info(f"Created user {user.id} for {external_id}")
            return user

        if (user.username, user.first_name, user.last_name) != (username, first_name, last_name):
            user.username = username
            user.first_name = first_name
            user.last_name = last_name
            await self.users.update(user)
            logger.info(f"Updated profile of user {user.id}")

        return user

    async def ensure_family(self, chat_id: str, chat_title: str = "") -> Family:
        """Get or create the family bound to a chat, renaming it when the title changed."""
        chat_title = (chat_title or "").strip()

        family = await self.families.get_by_chat_id(chat_id)
        if family is None:
            family = await self.families.create(Family(chat_id=chat_id, name=chat_title))
            logger.info(f"Created family {family.id} for chat {chat_id}")
            return family

        if chat_title and family.name != chat_title:
            family.name = chat_title
            await self.families.update(family)

        return family

    async def ensure_family_member(
        self,
        family_id: int,
        user_id: int,
        role: FamilyRole = FamilyRole.MEMBER,
    ) -> FamilyMember:
        membership = await self.families.get_membership(family_id, user_id)
        if membership is not None:
            return membership
        return await self.families.add_member(family_id, user_id, role)

    async def ensure_context(
        self,
        sender: SenderProfile,
        chat_id: str,
        chat_title: str = "",
    ) -> Tuple[User, Family]:
        """
        Provision the sender, the chat's family and the membership between them.

        The first member of a family becomes its admin.
        """
        user = await self.ensure_user(
            sender.external_id,
            sender.username,
            sender.first_name,
            sender.last_name,
        )
        family = await self.ensure_family(chat_id, chat_title)

        members = await self.families.get_members(family.id)
        role = FamilyRole.ADMIN if not members else FamilyRole.MEMBER
        await self.ensure_family_member(family.id, user.id, role)

        return user, family

    async def get_members(self, family_id: int) -> List[User]:
        return await self.families.get_members(family_id)

    async def find_member(self, family_id: int, handle: str) -> Optional[User]:
        """Resolve "@username" (or a bare username) to a member of the family."""
        user = await self.users.get_by_username(handle)
        if user is None:
            return None
        if await self.families.get_membership(family_id, user.id) is None:
            return None
        return user
