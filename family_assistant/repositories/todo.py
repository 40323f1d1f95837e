"""
Todo repository.
"""

from typing import List, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from family_assistant.domain.todo import Todo, TodoPriority, TodoStatus


class TodoRepository:
    """Todo persistence over an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, todo: Todo) -> Todo:
        self.session.add(todo)
        await self.session.commit()
        return todo

    async def get_by_id(self, todo_id: int) -> Optional[Todo]:
        return await self.session.get(Todo, todo_id)

    async def get_by_chat_id(
        self,
        chat_id: str,
        status: Optional[TodoStatus] = None,
        priority: Optional[TodoPriority] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Todo]:
        query = select(Todo).where(Todo.chat_id == chat_id)
        if status is not None:
            query = query.where(Todo.status == status)
        if priority is not None:
            query = query.where(Todo.priority == priority)
        query = query.order_by(Todo.created_at, Todo.id).offset(offset)
        if limit:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_for_user(self, chat_id: str, user_id: int, status: Optional[TodoStatus] = None) -> List[Todo]:
        """Todos in a chat created by or assigned to the user."""
        query = select(Todo).where(
            Todo.chat_id == chat_id,
            or_(Todo.created_by_id == user_id, Todo.assigned_to_id == user_id),
        )
        if status is not None:
            query = query.where(Todo.status == status)

        result = await self.session.execute(query.order_by(Todo.created_at, Todo.id))
        return list(result.scalars().all())

    async def update(self, todo: Todo) -> Todo:
        await self.session.commit()
        return todo

    async def delete(self, todo_id: int) -> bool:
        result = await self.session.execute(delete(Todo).where(Todo.id == todo_id))
        await self.session.commit()
        return result.rowcount > 0
