"""
Wish list repository.
"""

from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from family_assistant.domain.wish_list import WishItem, WishList


class WishListRepository:
    """Wish list persistence over an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_list(self, wish_list: WishList) -> WishList:
        self.session.add(wish_list)
        await self.session.commit()
        return wish_list

    async def get_list_by_user(self, user_id: int, family_id: int) -> Optional[WishList]:
        result = await self.session.execute(
            select(WishList).where(WishList.user_id == user_id, WishList.family_id == family_id)
        )
        return result.scalar_one_or_none()

    async def get_list_by_id(self, list_id: int) -> Optional[WishList]:
        return await self.session.get(WishList, list_id)

    async def get_lists_by_family(self, family_id: int) -> List[WishList]:
        result = await self.session.execute(
            select(WishList).where(WishList.family_id == family_id).order_by(WishList.id)
        )
        return list(result.scalars().all())

    async def add_item(self, item: WishItem) -> WishItem:
        self.session.add(item)
        await self.session.commit()
        return item

    async def get_item(self, item_id: int) -> Optional[WishItem]:
        return await self.session.get(WishItem, item_id)

    async def get_items(self, list_id: int) -> List[WishItem]:
        result = await self.session.execute(
            select(WishItem).where(WishItem.wish_list_id == list_id).order_by(WishItem.id)
        )
        return list(result.scalars().all())

    async def reserve_item(self, item_id: int, reserved_by_id: int) -> bool:
        """Reserve an unreserved item in one conditional UPDATE."""
        result = await self.session.execute(
            update(WishItem)
            .where(WishItem.id == item_id, WishItem.reserved.is_(False))
            .values(reserved=True, reserved_by_id=reserved_by_id)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.commit()
        return result.rowcount > 0

    async def unreserve_item(self, item_id: int) -> bool:
        result = await self.session.execute(
            update(WishItem)
            .where(WishItem.id == item_id)
            .values(reserved=False, reserved_by_id=None)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.commit()
        return result.rowcount > 0

    async def delete_item(self, item_id: int) -> bool:
        result = await self.session.execute(delete(WishItem).where(WishItem.id == item_id))
        await self.session.commit()
        return result.rowcount > 0
