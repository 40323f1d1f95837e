"""
Wish list service: one personal list per user per family.

Family members can reserve a wish so two people don't buy the same gift.
The owner never sees who reserved what.
"""

import logging
from typing import List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from family_assistant.domain.errors import NotFoundError, PermissionDeniedError, ValidationError, require_owner
from family_assistant.domain.wish_list import WishItem, WishList
from family_assistant.repositories.wishlist import WishListRepository

logger = logging.getLogger(__name__)


class WishListService:
    """Service class for wish lists."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repository = WishListRepository(session)

    async def get_or_create_list(self, user_id: int, family_id: int, name: str = "") -> WishList:
        wish_list = await self.repository.get_list_by_user(user_id, family_id)
        if wish_list is None:
            wish_list = await self.repository.create_list(
                WishList(user_id=user_id, family_id=family_id, name=name or "Wish List")
            )
        return wish_list

    async def add_wish(
        self,
        user_id: int,
        family_id: int,
        name: str,
        url: str = "",
        price: str = "",
        notes: str = "",
        list_name: str = "",
    ) -> WishItem:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Wish name is required.")

        wish_list = await self.get_or_create_list(user_id, family_id, list_name)
        item = await self.repository.add_item(
            WishItem(
                wish_list_id=wish_list.id,
                name=name,
                url=(url or "").strip(),
                price=(price or "").strip(),
                notes=(notes or "").strip(),
            )
        )
        logger.info(f"Added wish {item.id} for user {user_id}")
        return item

    async def list_for_user(self, user_id: int, family_id: int) -> List[WishItem]:
        wish_list = await self.repository.get_list_by_user(user_id, family_id)
        if wish_list is None:
            return []
        return await self.repository.get_items(wish_list.id)

    async def list_for_family(self, family_id: int) -> List[Tuple[WishList, List[WishItem]]]:
        """Every wish list in the family with its items, skipping empty lists."""
        lists = []
        for wish_list in await self.repository.get_lists_by_family(family_id):
            items = await self.repository.get_items(wish_list.id)
            if items:
                lists.append((wish_list, items))
        return lists

    async def get_item_with_list(self, item_id: int) -> Tuple[WishItem, WishList]:
        item = await self.repository.get_item(item_id)
        if item is None:
            raise NotFoundError("Wish", item_id)
        wish_list = await self.repository.get_list_by_id(item.wish_list_id)
        if wish_list is None:
            raise NotFoundError("Wish", item_id)
        return item, wish_list

    async def reserve_item(self, item_id: int, actor_id: int) -> WishItem:
        item, wish_list = await self.get_item_with_list(item_id)
        if wish_list.user_id == actor_id:
            raise PermissionDeniedError("You can't reserve your own wish.")
        if item.reserved:
            raise ValidationError(f"Wish #{item_id} is already reserved.")

        if not await self.repository.reserve_item(item_id, actor_id):
            raise ValidationError(f"Wish #{item_id} is already reserved.")
        logger.info(f"Wish {item_id} reserved by user {actor_id}")
        return await self.repository.get_item(item_id)

    async def unreserve_item(self, item_id: int, actor_id: int) -> WishItem:
        item, _ = await self.get_item_with_list(item_id)
        if not item.reserved:
            raise ValidationError(f"Wish #{item_id} is not reserved.")
        require_owner(actor_id, item.reserved_by_id, message="You can only cancel your own reservations.")

        await self.repository.unreserve_item(item_id)
        return await self.repository.get_item(item_id)

    async def delete_item(self, item_id: int, actor_id: int) -> WishItem:
        item, wish_list = await self.get_item_with_list(item_id)
        require_owner(actor_id, wish_list.user_id, message="You can only delete your own wishes.")
        await self.repository.delete_item(item_id)
        return item
