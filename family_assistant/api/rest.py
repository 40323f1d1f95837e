"""
REST API over the family entities.

Mutations take the acting user's internal id as the `user_id` query
parameter; ownership is enforced by the services. Domain errors are mapped
to status codes by the handlers registered in main.py.
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from family_assistant.domain.buying_list import BuyingItemCreate, BuyingItemResponse
from family_assistant.domain.calendar_event import CalendarEventCreate, CalendarEventResponse
from family_assistant.domain.errors import ValidationError
from family_assistant.domain.reminder import ReminderCreate, ReminderResponse
from family_assistant.domain.todo import TodoCreate, TodoResponse, TodoStatus
from family_assistant.domain.wish_list import WishItemCreate, WishItemResponse
from family_assistant.infrastructure.database import get_session
from family_assistant.usecases.buying_service import BuyingService
from family_assistant.usecases.calendar_service import CalendarService
from family_assistant.usecases.reminder_service import ReminderService
from family_assistant.usecases.todo_service import TodoService
from family_assistant.usecases.wishlist_service import WishListService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api")


# Todos

@router.get("/todos", response_model=List[TodoResponse])
async def list_todos(
    chat_id: str,
    status_filter: Optional[TodoStatus] = Query(default=None, alias="status"),
    session: AsyncSession = Depends(get_session),
):
    return await TodoService(session).list_todos(chat_id, status=status_filter)


@router.post("/todos", response_model=TodoResponse, status_code=status.HTTP_201_CREATED)
async def create_todo(payload: TodoCreate, session: AsyncSession = Depends(get_session)):
    return await TodoService(session).create_todo(**payload.model_dump())


@router.put("/todos/{todo_id}/done", response_model=TodoResponse)
async def complete_todo(todo_id: int, user_id: int, session: AsyncSession = Depends(get_session)):
    return await TodoService(session).complete_todo(todo_id, user_id)


@router.delete("/todos/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_todo(todo_id: int, user_id: int, session: AsyncSession = Depends(get_session)):
    await TodoService(session).delete_todo(todo_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Calendar

@router.get("/events", response_model=List[CalendarEventResponse])
async def list_events(
    chat_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    session: AsyncSession = Depends(get_session),
):
    return await CalendarService(session).list_events(chat_id, start=start, end=end)


@router.post("/events", response_model=CalendarEventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(payload: CalendarEventCreate, session: AsyncSession = Depends(get_session)):
    return await CalendarService(session).create_event(**payload.model_dump())


@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(event_id: int, user_id: int, session: AsyncSession = Depends(get_session)):
    await CalendarService(session).delete_event(event_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Shopping list

@router.get("/buying", response_model=List[BuyingItemResponse])
async def list_buying_items(
    chat_id: str,
    only_unbought: bool = False,
    session: AsyncSession = Depends(get_session),
):
    return await BuyingService(session).list_items(chat_id, only_unbought=only_unbought)


@router.post("/buying", response_model=BuyingItemResponse, status_code=status.HTTP_201_CREATED)
async def add_buying_item(payload: BuyingItemCreate, session: AsyncSession = Depends(get_session)):
    return await BuyingService(session).add_item(**payload.model_dump())


@router.put("/buying/{item_id}/bought", response_model=BuyingItemResponse)
async def mark_item_bought(item_id: int, user_id: int, session: AsyncSession = Depends(get_session)):
    return await BuyingService(session).mark_bought(item_id, user_id)


@router.delete("/buying/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_buying_item(item_id: int, user_id: int, session: AsyncSession = Depends(get_session)):
    await BuyingService(session).delete_item(item_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Wish lists

@router.get("/wishes", response_model=List[WishItemResponse])
async def list_wishes(
    family_id: int,
    user_id: Optional[int] = None,
    viewer_id: Optional[int] = None,
    session: AsyncSession = Depends(get_session),
):
    """
    Wishes of one family member (user_id) or of the whole family.

    Items on the viewer's own list come back without reservation details.
    """
    service = WishListService(session)
    if user_id is not None:
        owned = [(user_id, item) for item in await service.list_for_user(user_id, family_id)]
    else:
        owned = [
            (wish_list.user_id, item)
            for wish_list, items in await service.list_for_family(family_id)
            for item in items
        ]

    response = []
    for owner_id, item in owned:
        data = WishItemResponse.model_validate(item)
        if viewer_id is not None and owner_id == viewer_id:
            data = data.model_copy(update={"reserved": False, "reserved_by_id": None})
        response.append(data)
    return response


@router.post("/wishes", response_model=WishItemResponse, status_code=status.HTTP_201_CREATED)
async def add_wish(payload: WishItemCreate, session: AsyncSession = Depends(get_session)):
    return await WishListService(session).add_wish(**payload.model_dump())


@router.put("/wishes/{item_id}/reserve", response_model=WishItemResponse)
async def reserve_wish(item_id: int, user_id: int, session: AsyncSession = Depends(get_session)):
    return await WishListService(session).reserve_item(item_id, user_id)


@router.delete("/wishes/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_wish(item_id: int, user_id: int, session: AsyncSession = Depends(get_session)):
    await WishListService(session).delete_item(item_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Reminders

@router.get("/reminders", response_model=List[ReminderResponse])
async def list_reminders(
    chat_id: Optional[str] = None,
    user_id: Optional[int] = None,
    session: AsyncSession = Depends(get_session),
):
    service = ReminderService(session)
    if user_id is not None:
        return await service.list_for_user(user_id)
    if chat_id is not None:
        return await service.list_for_chat(chat_id)
    raise ValidationError("Provide chat_id or user_id.")


@router.post("/reminders", response_model=ReminderResponse, status_code=status.HTTP_201_CREATED)
async def create_reminder(payload: ReminderCreate, session: AsyncSession = Depends(get_session)):
    return await ReminderService(session).create_reminder(**payload.model_dump())


@router.delete("/reminders/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reminder(reminder_id: int, user_id: int, session: AsyncSession = Depends(get_session)):
    await ReminderService(session).delete_reminder(reminder_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
