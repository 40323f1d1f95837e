"""
Buying service: the shared shopping list of a chat.
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from family_assistant.domain.buying_list import BuyingItem, BuyingList
from family_assistant.domain.errors import NotFoundError, ValidationError, require_owner
from family_assistant.repositories.buying import BuyingListRepository

logger = logging.getLogger(__name__)


class BuyingService:
    """Service class for the shopping list."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repository = BuyingListRepository(session)

    async def get_or_create_list(
        self,
        chat_id: str,
        created_by_id: Optional[int] = None,
        family_id: Optional[int] = None,
    ) -> BuyingList:
        buying_list = await self.repository.get_list_by_chat_id(chat_id)
        if buying_list is None:
            buying_list = await self.repository.create_list(
                BuyingList(chat_id=chat_id, family_id=family_id, created_by_id=created_by_id)
            )
            logger.info(f"Created shopping list {buying_list.id} for chat {chat_id}")
        return buying_list

    async def add_item(
        self,
        chat_id: str,
        added_by_id: int,
        name: str,
        quantity: str = "1",
        family_id: Optional[int] = None,
    ) -> BuyingItem:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Item name is required.")

        buying_list = await self.get_or_create_list(chat_id, added_by_id, family_id)
        return await self.repository.add_item(
            BuyingItem(
                buying_list_id=buying_list.id,
                name=name,
                quantity=(quantity or "1").strip() or "1",
                added_by_id=added_by_id,
            )
        )

    async def list_items(self, chat_id: str, only_unbought: bool = False) -> List[BuyingItem]:
        buying_list = await self.repository.get_list_by_chat_id(chat_id)
        if buying_list is None:
            return []
        return await self.repository.get_items(buying_list.id, only_unbought=only_unbought)

    async def get_item(self, item_id: int) -> BuyingItem:
        item = await self.repository.get_item(item_id)
        if item is None:
            raise NotFoundError("Item", item_id)
        return item

    async def mark_bought(self, item_id: int, actor_id: int) -> BuyingItem:
        item = await self.get_item(item_id)
        if item.bought:
            raise ValidationError(f"Item #{item_id} is already bought.")

        if not await self.repository.mark_bought(item_id, actor_id):
            raise ValidationError(f"Item #{item_id} is already bought.")
        return await self.get_item(item_id)

    async def delete_item(self, item_id: int, actor_id: int) -> BuyingItem:
        item = await self.get_item(item_id)
        require_owner(actor_id, item.added_by_id, message="You can only delete items you added.")
        await self.repository.delete_item(item_id)
        return item

    async def clear_bought(self, chat_id: str) -> int:
        buying_list = await self.repository.get_list_by_chat_id(chat_id)
        if buying_list is None:
            return 0
        removed = await self.repository.clear_bought(buying_list.id)
        logger.info(f"Cleared {removed} bought items from chat {chat_id}")
        return removed
