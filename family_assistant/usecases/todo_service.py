"""
Todo service: the shared todo list of a chat.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from family_assistant.domain.errors import NotFoundError, ValidationError, require_owner
from family_assistant.domain.todo import Todo, TodoPriority, TodoStatus
from family_assistant.repositories.todo import TodoRepository
from family_assistant.utils.time import to_local

logger = logging.getLogger(__name__)


class TodoService:
    """Service class for todo operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repository = TodoRepository(session)

    async def create_todo(
        self,
        chat_id: str,
        created_by_id: int,
        title: str,
        description: str = "",
        priority: TodoPriority = TodoPriority.MEDIUM,
        deadline: Optional[datetime] = None,
        assigned_to_id: Optional[int] = None,
        family_id: Optional[int] = None,
    ) -> Todo:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Todo title is required.")

        todo = await self.repository.create(
            Todo(
                chat_id=chat_id,
                family_id=family_id,
                title=title,
                description=description or "",
                priority=TodoPriority(priority),
                deadline=to_local(deadline) if deadline else None,
                created_by_id=created_by_id,
                assigned_to_id=assigned_to_id,
                status=TodoStatus.PENDING,
            )
        )
        logger.info(f"Created todo {todo.id} in chat {chat_id}")
        return todo

    async def get_todo(self, todo_id: int) -> Todo:
        todo = await self.repository.get_by_id(todo_id)
        if todo is None:
            raise NotFoundError("Todo", todo_id)
        return todo

    async def list_todos(self, chat_id: str, status: Optional[TodoStatus] = None) -> List[Todo]:
        return await self.repository.get_by_chat_id(chat_id, status=status)

    async def list_for_user(self, chat_id: str, user_id: int) -> List[Todo]:
        """Pending todos the user created or was assigned."""
        return await self.repository.get_for_user(chat_id, user_id, status=TodoStatus.PENDING)

    async def complete_todo(self, todo_id: int, actor_id: int) -> Todo:
        todo = await self.get_todo(todo_id)
        require_owner(
            actor_id,
            todo.created_by_id,
            todo.assigned_to_id,
            message="Only the creator or the assignee can complete this todo.",
        )
        if todo.is_completed:
            raise ValidationError(f"Todo #{todo_id} is already completed.")

        todo.status = TodoStatus.COMPLETED
        return await self.repository.update(todo)

    async def delete_todo(self, todo_id: int, actor_id: int) -> Todo:
        todo = await self.get_todo(todo_id)
        require_owner(actor_id, todo.created_by_id, message="You can only delete todos you created.")
        await self.repository.delete(todo_id)
        logger.info(f"Deleted todo {todo_id} by user {actor_id}")
        return todo

    async def assign_todo(self, todo_id: int, assignee_id: int) -> Todo:
        todo = await self.get_todo(todo_id)
        todo.assigned_to_id = assignee_id
        return await self.repository.update(todo)

    async def set_priority(self, todo_id: int, priority: str) -> Todo:
        try:
            value = TodoPriority((priority or "").strip().lower())
        except ValueError:
            raise ValidationError("Priority must be one of: low, medium, high.")

        todo = await self.get_todo(todo_id)
        todo.priority = value
        return await self.repository.update(todo)

    async def set_deadline(self, todo_id: int, deadline: Optional[datetime]) -> Todo:
        todo = await self.get_todo(todo_id)
        todo.deadline = to_local(deadline) if deadline else None
        return await self.repository.update(todo)
