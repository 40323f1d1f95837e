"""
Tests for the todo, calendar, shopping and wish list services.
"""

from datetime import datetime, timedelta

import pytest
import pytest_asyncio

from family_assistant.domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from family_assistant.domain.todo import TodoPriority, TodoStatus
from family_assistant.domain.user import User
from family_assistant.usecases.buying_service import BuyingService
from family_assistant.usecases.calendar_service import CalendarService
from family_assistant.usecases.todo_service import TodoService
from family_assistant.usecases.wishlist_service import WishListService


CHAT_ID = "whatsapp:+15550001111"


class TestTodoService:

    @pytest_asyncio.fixture
    async def service(self, test_session):
        return TodoService(test_session)

    @pytest.mark.asyncio
    async def test_create_and_list_pending(self, service, alice):
        first = await service.create_todo(CHAT_ID, alice.id, "Buy stamps")
        second = await service.create_todo(CHAT_ID, alice.id, "Fix the gate", priority=TodoPriority.HIGH)
        await service.complete_todo(first.id, alice.id)

        pending = await service.list_todos(CHAT_ID, status=TodoStatus.PENDING)

        assert [t.id for t in pending] == [second.id]

    @pytest.mark.asyncio
    async def test_empty_title_rejected(self, service, alice):
        with pytest.raises(ValidationError):
            await service.create_todo(CHAT_ID, alice.id, "  ")

    @pytest.mark.asyncio
    async def test_assignee_can_complete(self, service, alice, bob):
        todo = await service.create_todo(CHAT_ID, alice.id, "Mow the lawn", assigned_to_id=bob.id)

        completed = await service.complete_todo(todo.id, bob.id)

        assert completed.status == TodoStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_stranger_cannot_complete(self, service, alice, bob):
        todo = await service.create_todo(CHAT_ID, alice.id, "Mow the lawn")

        with pytest.raises(PermissionDeniedError):
            await service.complete_todo(todo.id, bob.id)

        assert (await service.get_todo(todo.id)).status == TodoStatus.PENDING

    @pytest.mark.asyncio
    async def test_completing_twice_is_rejected(self, service, alice):
        todo = await service.create_todo(CHAT_ID, alice.id, "Mow the lawn")
        await service.complete_todo(todo.id, alice.id)

        with pytest.raises(ValidationError):
            await service.complete_todo(todo.id, alice.id)

    @pytest.mark.asyncio
    async def test_only_creator_can_delete(self, service, alice, bob):
        todo = await service.create_todo(CHAT_ID, alice.id, "Call plumber", assigned_to_id=bob.id)

        with pytest.raises(PermissionDeniedError):
            await service.delete_todo(todo.id, bob.id)

        await service.delete_todo(todo.id, alice.id)
        with pytest.raises(NotFoundError):
            await service.get_todo(todo.id)

    @pytest.mark.asyncio
    async def test_list_for_user_covers_created_and_assigned(self, service, alice, bob):
        mine = await service.create_todo(CHAT_ID, alice.id, "mine")
        assigned = await service.create_todo(CHAT_ID, bob.id, "assigned", assigned_to_id=alice.id)
        await service.create_todo(CHAT_ID, bob.id, "not mine")

        todos = await service.list_for_user(CHAT_ID, alice.id)

        assert {t.id for t in todos} == {mine.id, assigned.id}

    @pytest.mark.asyncio
    async def test_priority_and_deadline(self, service, alice):
        todo = await service.create_todo(CHAT_ID, alice.id, "Taxes")

        await service.set_priority(todo.id, "HIGH")
        updated = await service.set_deadline(todo.id, datetime(2026, 4, 15, 23, 59))

        assert updated.priority == TodoPriority.HIGH
        assert updated.is_overdue(datetime(2026, 4, 16)) is True
        assert updated.is_overdue(datetime(2026, 4, 1)) is False

    @pytest.mark.asyncio
    async def test_invalid_priority(self, service, alice):
        todo = await service.create_todo(CHAT_ID, alice.id, "Taxes")

        with pytest.raises(ValidationError):
            await service.set_priority(todo.id, "urgent")


class TestCalendarService:

    @pytest_asyncio.fixture
    async def service(self, test_session):
        return CalendarService(test_session)

    @pytest.mark.asyncio
    async def test_list_events_in_range_sorted(self, service, alice):
        start = datetime(2030, 1, 10, 12, 0)
        late = await service.create_event(CHAT_ID, alice.id, "Concert", start + timedelta(days=3))
        early = await service.create_event(CHAT_ID, alice.id, "Dentist", start)
        await service.create_event(CHAT_ID, alice.id, "Far away", start + timedelta(days=60))

        events = await service.list_events(CHAT_ID, start=start, end=start + timedelta(days=7))

        assert [e.id for e in events] == [early.id, late.id]

    @pytest.mark.asyncio
    async def test_upcoming_by_default(self, service, alice):
        await service.create_event(CHAT_ID, alice.id, "Last year", datetime(2000, 1, 1), all_day=True)
        future = await service.create_event(CHAT_ID, alice.id, "Next decade", datetime(2099, 1, 1), all_day=True)

        events = await service.list_events(CHAT_ID)

        assert [e.id for e in events] == [future.id]

    @pytest.mark.asyncio
    async def test_end_before_start_rejected(self, service, alice):
        with pytest.raises(ValidationError):
            await service.create_event(
                CHAT_ID, alice.id, "Backwards", datetime(2030, 1, 2), end_time=datetime(2030, 1, 1)
            )

    @pytest.mark.asyncio
    async def test_only_creator_can_delete(self, service, alice, bob):
        event = await service.create_event(CHAT_ID, alice.id, "Picnic", datetime(2030, 6, 1))

        with pytest.raises(PermissionDeniedError):
            await service.delete_event(event.id, bob.id)

        deleted = await service.delete_event(event.id, alice.id)
        assert deleted.title == "Picnic"


class TestBuyingService:

    @pytest_asyncio.fixture
    async def service(self, test_session):
        return BuyingService(test_session)

    @pytest.mark.asyncio
    async def test_first_item_creates_list(self, service, alice):
        item = await service.add_item(CHAT_ID, alice.id, "Milk", "2")

        buying_list = await service.repository.get_list_by_chat_id(CHAT_ID)
        assert buying_list is not None
        assert item.buying_list_id == buying_list.id
        assert item.quantity == "2"

    @pytest.mark.asyncio
    async def test_list_is_shared_per_chat(self, service, alice, bob):
        await service.add_item(CHAT_ID, alice.id, "Milk")
        await service.add_item(CHAT_ID, bob.id, "Bread")

        items = await service.list_items(CHAT_ID)

        assert [i.name for i in items] == ["Milk", "Bread"]

    @pytest.mark.asyncio
    async def test_anyone_can_mark_bought(self, service, alice, bob):
        item = await service.add_item(CHAT_ID, alice.id, "Eggs")

        bought = await service.mark_bought(item.id, bob.id)

        assert bought.bought is True
        assert bought.bought_by_id == bob.id

    @pytest.mark.asyncio
    async def test_mark_bought_twice_rejected(self, service, alice):
        item = await service.add_item(CHAT_ID, alice.id, "Eggs")
        await service.mark_bought(item.id, alice.id)

        with pytest.raises(ValidationError):
            await service.mark_bought(item.id, alice.id)

    @pytest.mark.asyncio
    async def test_only_adder_can_delete(self, service, alice, bob):
        item = await service.add_item(CHAT_ID, alice.id, "Cheese")

        with pytest.raises(PermissionDeniedError):
            await service.delete_item(item.id, bob.id)

        await service.delete_item(item.id, alice.id)
        assert await service.list_items(CHAT_ID) == []

    @pytest.mark.asyncio
    async def test_clear_bought_keeps_open_items(self, service, alice):
        bought = await service.add_item(CHAT_ID, alice.id, "Apples")
        await service.add_item(CHAT_ID, alice.id, "Pears")
        await service.mark_bought(bought.id, alice.id)

        removed = await service.clear_bought(CHAT_ID)

        assert removed == 1
        assert [i.name for i in await service.list_items(CHAT_ID)] == ["Pears"]

    @pytest.mark.asyncio
    async def test_clear_without_list(self, service):
        assert await service.clear_bought("whatsapp:+10000000000") == 0


class TestWishListService:

    @pytest_asyncio.fixture
    async def service(self, test_session):
        return WishListService(test_session)

    @pytest.mark.asyncio
    async def test_add_wish_creates_personal_list(self, service, alice, family):
        item = await service.add_wish(alice.id, family.id, "Bicycle", price="$300")

        items = await service.list_for_user(alice.id, family.id)

        assert [i.id for i in items] == [item.id]
        assert items[0].price == "$300"

    @pytest.mark.asyncio
    async def test_owner_cannot_reserve_own_wish(self, service, alice, family):
        item = await service.add_wish(alice.id, family.id, "Bicycle")

        with pytest.raises(PermissionDeniedError):
            await service.reserve_item(item.id, alice.id)

    @pytest.mark.asyncio
    async def test_reserve_once(self, service, alice, bob, family, test_session):
        item = await service.add_wish(alice.id, family.id, "Bicycle")

        reserved = await service.reserve_item(item.id, bob.id)
        assert reserved.reserved is True
        assert reserved.reserved_by_id == bob.id

        carol = User(external_id="whatsapp:+15550003333", first_name="Carol")
        test_session.add(carol)
        await test_session.commit()

        with pytest.raises(ValidationError):
            await service.reserve_item(item.id, carol.id)

    @pytest.mark.asyncio
    async def test_only_reserver_can_unreserve(self, service, alice, bob, family):
        item = await service.add_wish(alice.id, family.id, "Bicycle")
        await service.reserve_item(item.id, bob.id)

        with pytest.raises(PermissionDeniedError):
            await service.unreserve_item(item.id, alice.id)

        released = await service.unreserve_item(item.id, bob.id)
        assert released.reserved is False
        assert released.reserved_by_id is None

    @pytest.mark.asyncio
    async def test_only_owner_can_delete(self, service, alice, bob, family):
        item = await service.add_wish(alice.id, family.id, "Bicycle")

        with pytest.raises(PermissionDeniedError):
            await service.delete_item(item.id, bob.id)

        await service.delete_item(item.id, alice.id)
        assert await service.list_for_user(alice.id, family.id) == []

    @pytest.mark.asyncio
    async def test_list_for_family_skips_empty_lists(self, service, alice, bob, family):
        await service.add_wish(alice.id, family.id, "Bicycle")
        item = await service.add_wish(bob.id, family.id, "Book")
        await service.delete_item(item.id, bob.id)

        lists = await service.list_for_family(family.id)

        assert [wish_list.user_id for wish_list, _ in lists] == [alice.id]

    @pytest.mark.asyncio
    async def test_missing_wish(self, service, alice):
        with pytest.raises(NotFoundError):
            await service.reserve_item(42, alice.id)
