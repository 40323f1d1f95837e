"""
Shopping list repository.
"""

from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from family_assistant.domain.buying_list import BuyingItem, BuyingList


class BuyingListRepository:
    """Shopping list persistence over an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_list(self, buying_list: BuyingList) -> BuyingList:
        self.session.add(buying_list)
        await self.session.commit()
        return buying_list

    async def get_list_by_chat_id(self, chat_id: str) -> Optional[BuyingList]:
        result = await self.session.execute(
            select(BuyingList).where(BuyingList.chat_id == chat_id)
        )
        return result.scalar_one_or_none()

    async def add_item(self, item: BuyingItem) -> BuyingItem:
        self.session.add(item)
        await self.session.commit()
        return item

    async def get_item(self, item_id: int) -> Optional[BuyingItem]:
        return await self.session.get(BuyingItem, item_id)

    async def get_items(self, list_id: int, only_unbought: bool = False) -> List[BuyingItem]:
        query = select(BuyingItem).where(BuyingItem.buying_list_id == list_id)
        if only_unbought:
            query = query.where(BuyingItem.bought.is_(False))

        result = await self.session.execute(query.order_by(BuyingItem.bought, BuyingItem.id))
        return list(result.scalars().all())

    async def mark_bought(self, item_id: int, bought_by_id: int) -> bool:
        """Mark an unbought item as bought. False if missing or already bought."""
        result = await self.session.execute(
            update(BuyingItem)
            .where(BuyingItem.id == item_id, BuyingItem.bought.is_(False))
            .values(bought=True, bought_by_id=bought_by_id)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.commit()
        return result.rowcount > 0

    async def delete_item(self, item_id: int) -> bool:
        result = await self.session.execute(delete(BuyingItem).where(BuyingItem.id == item_id))
        await self.session.commit()
        return result.rowcount > 0

    async def clear_bought(self, list_id: int) -> int:
        result = await self.session.execute(
            delete(BuyingItem).where(
                BuyingItem.buying_list_id == list_id,
                BuyingItem.bought.is_(True),
            )
        )
        await self.session.commit()
        return result.rowcount
