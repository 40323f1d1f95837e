"""
Command service: turns slash commands into service calls and chat replies.
"""

import logging
from typing import List

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from family_assistant.commands.parser import (
    ParsedCommand,
    parse_deadline,
    parse_id,
    split_event_args,
    split_quantity,
    split_repeat,
)
from family_assistant.domain.buying_list import BuyingItem
from family_assistant.domain.errors import DomainError, NotFoundError, ValidationError
from family_assistant.domain.todo import Todo, TodoPriority, TodoStatus
from family_assistant.domain.wish_list import WishItem
from family_assistant.usecases.buying_service import BuyingService
from family_assistant.usecases.calendar_service import CalendarService
from family_assistant.usecases.family_service import FamilyService, SenderProfile
from family_assistant.usecases.reminder_service import ReminderService
from family_assistant.usecases.todo_service import TodoService
from family_assistant.usecases.wishlist_service import WishListService
from family_assistant.utils.time import (
    format_time,
    get_current_time,
    get_relative_time_description,
    parse_remind_time,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR = "❌ Sorry, something went wrong. Please try again."

PRIORITY_EMOJI = {
    TodoPriority.HIGH: "🔴",
    TodoPriority.MEDIUM: "🟡",
    TodoPriority.LOW: "🟢",
}

WELCOME_TEXT = """🎯 *Welcome to your Family Assistant!*

I help this chat keep track of todos, events, shopping, wishes and reminders.

*Get started:*
• /add <todo> - Add a todo
• /event <title> <date> [time] - Add an event
• /buy <item> [xN] - Add to the shopping list
• /wish <item> - Add to your wish list
• /remind <time> <text> - Set a reminder

Send /help to see every command."""

HELP_TEXT = """📚 *Family Assistant Help*

*Todos:*
• `/add <todo>` - Add a new todo
• `/list` - Show pending todos
• `/done <id>` - Mark a todo as completed
• `/delete <id>` - Delete a todo you created
• `/my` - Show todos you created or were assigned
• `/assign <id> @username` - Assign a todo
• `/priority <id> <high/medium/low>` - Set priority
• `/deadline <id> <YYYY-MM-DD> [HH:MM]` - Set a deadline

*Calendar:*
• `/event <title> <YYYY-MM-DD> [HH:MM]` - Add an event
• `/events` - Show upcoming events
• `/delevent <id>` - Delete an event you created

*Shopping:*
• `/buy <item> [x2]` - Add an item
• `/buylist` - Show the shopping list
• `/bought <id>` - Mark an item as bought
• `/delbuy <id>` - Delete an item you added
• `/buyclear` - Remove bought items

*Wish lists:*
• `/wish <item>` - Add to your wish list
• `/wishlist [@username]` - Show wish lists
• `/reserve <id>` - Reserve someone's wish
• `/unreserve <id>` - Cancel your reservation
• `/delwish <id>` - Delete one of your wishes

*Reminders:*
• `/remind [daily|weekly|monthly] <time> <text>` - Set a reminder
• `/reminders` - Show your active reminders
• `/delremind <id>` - Delete a reminder

*Time formats:* `30m`, `2h`, `1d`, `15:30`, `2026-12-31 18:00`

_WhatsApp chats are one-to-one, so the family of this chat is just you: `/assign` and `/wishlist @username` can only find you, and `/reserve` only applies to wishes others added to your family through the REST API._"""

REMIND_USAGE = (
    "*Usage:*\n"
    "`/remind 30m Call mom`\n"
    "`/remind 15:30 Pick up the kids`\n"
    "`/remind 2026-12-31 18:00 New Year party`\n"
    "`/remind daily 08:00 Take vitamins`"
)


class CommandContext(BaseModel):
    """Where a command came from."""
    sender: SenderProfile
    chat_id: str
    chat_title: str = ""


def _require_id(command: ParsedCommand, usage: str) -> int:
    if not command.args:
        raise ValidationError(f"Please provide an ID.\nUsage: `{usage}`")
    try:
        return parse_id(command.args[0])
    except ValueError:
        raise ValidationError("Invalid ID. Please provide a numeric ID.")


class CommandService:
    """Service class dispatching chat commands."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.family = FamilyService(session)
        self.todos = TodoService(session)
        self.calendar = CalendarService(session)
        self.buying = BuyingService(session)
        self.wishes = WishListService(session)
        self.reminders = ReminderService(session)

    async def handle(self, command: ParsedCommand, context: CommandContext) -> str:
        """
        Handle a parsed command and return the reply text.

        Args:
            command: Parsed slash command
            context: Sender and chat of the message

        Returns:
            Response message to send to the chat
        """
        command_handlers = {
            "start": self._handle_start,
            "help": self._handle_help,
            "add": self._handle_add,
            "list": self._handle_list,
            "done": self._handle_done,
            "delete": self._handle_delete,
            "my": self._handle_my,
            "assign": self._handle_assign,
            "priority": self._handle_priority,
            "deadline": self._handle_deadline,
            "event": self._handle_event,
            "events": self._handle_events,
            "delevent": self._handle_delevent,
            "buy": self._handle_buy,
            "buylist": self._handle_buylist,
            "bought": self._handle_bought,
            "delbuy": self._handle_delbuy,
            "buyclear": self._handle_buyclear,
            "wish": self._handle_wish,
            "wishlist": self._handle_wishlist,
            "reserve": self._handle_reserve,
            "unreserve": self._handle_unreserve,
            "delwish": self._handle_delwish,
            "remind": self._handle_remind,
            "reminders": self._handle_reminders,
            "delremind": self._handle_delremind,
        }

        handler = command_handlers.get(command.name)
        if handler is None:
            return f"🤔 Unknown command /{command.name}. Send /help to see what I can do."

        try:
            return await handler(command, context)
        except DomainError as e:
            logger.info(f"Command /{command.name} rejected in {context.chat_id}: {e.message}")
            return f"❌ {e.message}"
        except Exception as e:
            logger.exception(f"Error handling command /{command.name}: {e}")
            await self.session.rollback()
            return GENERIC_ERROR

    async def _ensure(self, context: CommandContext):
        return await self.family.ensure_context(context.sender, context.chat_id, context.chat_title)

    # Basic

    async def _handle_start(self, command: ParsedCommand, context: CommandContext) -> str:
        await self._ensure(context)
        return WELCOME_TEXT

    async def _handle_help(self, command: ParsedCommand, context: CommandContext) -> str:
        return HELP_TEXT

    # Todos

    def _format_todo_line(self, index: int, todo: Todo) -> str:
        line = f"{index}. {PRIORITY_EMOJI.get(todo.priority, '⬜')} *#{todo.id}* {todo.title}"
        if todo.deadline is not None:
            line += f"  📅 _{todo.deadline.strftime('%Y-%m-%d')}_"
            if todo.is_overdue(get_current_time()):
                line += " ⚠️"
        return line

    async def _todo_in_chat(self, todo_id: int, context: CommandContext) -> Todo:
        todo = await self.todos.get_todo(todo_id)
        if todo.chat_id != context.chat_id:
            raise NotFoundError("Todo", todo_id)
        return todo

    async def _handle_add(self, command: ParsedCommand, context: CommandContext) -> str:
        if not command.args:
            raise ValidationError("Please provide a todo text.\nUsage: `/add Buy groceries`")

        user, family = await self._ensure(context)
        todo = await self.todos.create_todo(
            chat_id=context.chat_id,
            created_by_id=user.id,
            title=command.raw_args,
            family_id=family.id,
        )
        return f"✅ *Todo added!*\n\n{PRIORITY_EMOJI[todo.priority]} *#{todo.id}* — {todo.title}"

    async def _handle_list(self, command: ParsedCommand, context: CommandContext) -> str:
        todos = await self.todos.list_todos(context.chat_id, status=TodoStatus.PENDING)
        if not todos:
            return "📋 *No pending todos!*\n\nAdd one with `/add <text>`"

        lines = [self._format_todo_line(i, t) for i, t in enumerate(todos, 1)]
        return "📋 *Pending Todos*\n\n" + "\n".join(lines) + f"\n\n_{len(todos)} pending items_"

    async def _handle_done(self, command: ParsedCommand, context: CommandContext) -> str:
        todo_id = _require_id(command, "/done 5")
        user, _ = await self._ensure(context)
        await self._todo_in_chat(todo_id, context)

        todo = await self.todos.complete_todo(todo_id, user.id)
        return f"🎉 Todo *#{todo.id}* completed!\n\n~{todo.title}~"

    async def _handle_delete(self, command: ParsedCommand, context: CommandContext) -> str:
        todo_id = _require_id(command, "/delete 5")
        user, _ = await self._ensure(context)
        await self._todo_in_chat(todo_id, context)

        todo = await self.todos.delete_todo(todo_id, user.id)
        return f"🗑 Todo *#{todo.id}* deleted: {todo.title}"

    async def _handle_my(self, command: ParsedCommand, context: CommandContext) -> str:
        user, _ = await self._ensure(context)
        todos = await self.todos.list_for_user(context.chat_id, user.id)
        if not todos:
            return "📋 *You have no pending todos!*"

        lines = [self._format_todo_line(i, t) for i, t in enumerate(todos, 1)]
        return "📋 *Your Todos*\n\n" + "\n".join(lines) + f"\n\n_{len(todos)} pending items_"

    async def _handle_assign(self, command: ParsedCommand, context: CommandContext) -> str:
        if len(command.args) < 2:
            raise ValidationError("Please provide a todo ID and a username.\nUsage: `/assign 5 @john`")
        todo_id = _require_id(command, "/assign 5 @john")

        _, family = await self._ensure(context)
        await self._todo_in_chat(todo_id, context)

        assignee = await self.family.find_member(family.id, command.args[1])
        if assignee is None:
            raise ValidationError(f"User {command.args[1]} is not a member of this chat.")

        todo = await self.todos.assign_todo(todo_id, assignee.id)
        return f"👤 Todo *#{todo.id}* assigned to {assignee.display_name}"

    async def _handle_priority(self, command: ParsedCommand, context: CommandContext) -> str:
        if len(command.args) < 2:
            raise ValidationError("Please provide a todo ID and a priority.\nUsage: `/priority 5 high`")
        todo_id = _require_id(command, "/priority 5 high")

        await self._ensure(context)
        await self._todo_in_chat(todo_id, context)

        todo = await self.todos.set_priority(todo_id, command.args[1])
        return f"{PRIORITY_EMOJI[todo.priority]} Todo *#{todo.id}* priority set to *{todo.priority.value}*"

    async def _handle_deadline(self, command: ParsedCommand, context: CommandContext) -> str:
        todo_id = _require_id(command, "/deadline 5 2026-12-31")
        try:
            deadline = parse_deadline(command.args[1:])
        except ValueError:
            raise ValidationError("Invalid deadline. Use `YYYY-MM-DD` with an optional `HH:MM`.")

        await self._ensure(context)
        await self._todo_in_chat(todo_id, context)

        todo = await self.todos.set_deadline(todo_id, deadline)
        return f"📅 Deadline for todo *#{todo.id}* set to {format_time(todo.deadline)}"

    # Calendar

    async def _handle_event(self, command: ParsedCommand, context: CommandContext) -> str:
        usage = "*Usage:*\n`/event Meeting 2026-01-15 14:00`\n`/event Birthday party 2026-03-20`"
        if len(command.args) < 2:
            raise ValidationError(f"Please provide a title and date.\n\n{usage}")
        try:
            title, start_time, all_day = split_event_args(command.args)
        except ValueError:
            raise ValidationError(f"Could not find a valid date in your command.\n\n{usage}")

        user, family = await self._ensure(context)
        event = await self.calendar.create_event(
            chat_id=context.chat_id,
            created_by_id=user.id,
            title=title,
            start_time=start_time,
            all_day=all_day,
            family_id=family.id,
        )
        return f"📅 *Event created!*\n\n*#{event.id}* — {event.title}\n📆 {self._event_when(event)}"

    @staticmethod
    def _event_when(event) -> str:
        if event.all_day:
            return event.start_time.strftime("%a, %d %b %Y") + " (all day)"
        return format_time(event.start_time)

    async def _handle_events(self, command: ParsedCommand, context: CommandContext) -> str:
        events = await self.calendar.list_events(context.chat_id)
        if not events:
            return "📅 *No upcoming events!*\n\nAdd one with `/event <title> <date> [time]`"

        response = "📅 *Upcoming Events*\n\n"
        for i, event in enumerate(events, 1):
            icon = "📌" if event.all_day else "🕐"
            response += f"{i}. {icon} *#{event.id}* {event.title}\n   📆 {self._event_when(event)}"
            if event.location:
                response += f"\n   📍 {event.location}"
            response += "\n\n"
        return response + f"_{len(events)} upcoming events_"

    async def _handle_delevent(self, command: ParsedCommand, context: CommandContext) -> str:
        event_id = _require_id(command, "/delevent 3")
        user, _ = await self._ensure(context)

        event = await self.calendar.get_event(event_id)
        if event.chat_id != context.chat_id:
            raise NotFoundError("Event", event_id)

        event = await self.calendar.delete_event(event_id, user.id)
        return f"🗑 Event *#{event.id}* deleted: {event.title}"

    # Shopping

    @staticmethod
    def _quantity(item: BuyingItem) -> str:
        return f" (x{item.quantity})" if item.quantity and item.quantity != "1" else ""

    async def _buying_item_in_chat(self, item_id: int, context: CommandContext) -> BuyingItem:
        item = await self.buying.get_item(item_id)
        buying_list = await self.buying.repository.get_list_by_chat_id(context.chat_id)
        if buying_list is None or item.buying_list_id != buying_list.id:
            raise NotFoundError("Item", item_id)
        return item

    async def _handle_buy(self, command: ParsedCommand, context: CommandContext) -> str:
        if not command.args:
            raise ValidationError(
                "Please provide an item name.\n\n*Usage:*\n`/buy Milk x2`\n`/buy Whole wheat bread`"
            )
        name, quantity = split_quantity(command.args)

        user, family = await self._ensure(context)
        item = await self.buying.add_item(
            chat_id=context.chat_id,
            added_by_id=user.id,
            name=name,
            quantity=quantity,
            family_id=family.id,
        )
        return f"🛒 *Added to shopping list!*\n\n⬜ *#{item.id}* — {item.name}{self._quantity(item)}"

    async def _handle_buylist(self, command: ParsedCommand, context: CommandContext) -> str:
        items = await self.buying.list_items(context.chat_id)
        if not items:
            return "🛒 *Shopping list is empty!*\n\nAdd items with `/buy <item>`"

        response = "🛒 *Shopping List*\n\n"
        bought_count = 0
        for item in items:
            if item.bought:
                bought_count += 1
                bought_by = ""
                if item.bought_by_id is not None:
                    buyer = await self.family.users.get_by_id(item.bought_by_id)
                    if buyer is not None:
                        bought_by = f" — _by {buyer.display_name}_"
                response += f"✅ ~{item.name}{self._quantity(item)}~{bought_by}\n"
            else:
                response += f"⬜ *#{item.id}* {item.name}{self._quantity(item)}\n"

        return response + f"\n_{len(items) - bought_count} remaining, {bought_count} bought_"

    async def _handle_bought(self, command: ParsedCommand, context: CommandContext) -> str:
        item_id = _require_id(command, "/bought 3")
        user, _ = await self._ensure(context)
        await self._buying_item_in_chat(item_id, context)

        item = await self.buying.mark_bought(item_id, user.id)
        return f"✅ Item *#{item.id}* marked as bought!"

    async def _handle_delbuy(self, command: ParsedCommand, context: CommandContext) -> str:
        item_id = _require_id(command, "/delbuy 3")
        user, _ = await self._ensure(context)
        await self._buying_item_in_chat(item_id, context)

        item = await self.buying.delete_item(item_id, user.id)
        return f"🗑 Item *#{item.id}* removed: {item.name}"

    async def _handle_buyclear(self, command: ParsedCommand, context: CommandContext) -> str:
        removed = await self.buying.clear_bought(context.chat_id)
        if not removed:
            return "🛒 There are no bought items to clear."
        return f"🧹 Cleared {removed} bought items from the shopping list!"

    # Wish lists

    async def _handle_wish(self, command: ParsedCommand, context: CommandContext) -> str:
        if not command.args:
            raise ValidationError("Please provide a wish item.\nUsage: `/wish PlayStation 5`")

        user, family = await self._ensure(context)
        item = await self.wishes.add_wish(
            user_id=user.id,
            family_id=family.id,
            name=command.raw_args,
            list_name=f"{user.display_name}'s Wishes",
        )
        return f"🎁 *Added to your wish list!*\n\n*#{item.id}* — {item.name}"

    @staticmethod
    def _format_wish(item: WishItem, show_reservation: bool) -> str:
        line = f"*#{item.id}* {item.name}"
        if item.url:
            line += f" ({item.url})"
        if item.price:
            line += f" — _{item.price}_"
        if show_reservation and item.reserved:
            line += " 🔒"
        return line

    async def _handle_wishlist(self, command: ParsedCommand, context: CommandContext) -> str:
        viewer, family = await self._ensure(context)

        if command.args:
            owner = await self.family.find_member(family.id, command.args[0])
            if owner is None:
                raise ValidationError(f"User {command.args[0]} not found.")
            return await self._show_user_wishes(owner, viewer, family.id)

        lists = await self.wishes.list_for_family(family.id)
        if not lists:
            return "🎁 *No wish lists yet!*\n\nAdd wishes with `/wish <item>`"

        response = "🎁 *Family Wish Lists*\n\n"
        for wish_list, items in lists:
            owner = await self.family.users.get_by_id(wish_list.user_id)
            owner_name = owner.display_name if owner else wish_list.name
            response += f"*{owner_name}* ({len(items)} items)\n"
            for item in items:
                # Reservations stay hidden from the list owner
                show = wish_list.user_id != viewer.id
                response += f"  {self._format_wish(item, show)}\n"
            response += "\n"
        return response.strip()

    async def _show_user_wishes(self, owner, viewer, family_id: int) -> str:
        items = await self.wishes.list_for_user(owner.id, family_id)
        if not items:
            return f"🎁 *{owner.display_name}'s wish list is empty.*"

        show = owner.id != viewer.id
        lines: List[str] = [
            f"{i}. {self._format_wish(item, show)}" for i, item in enumerate(items, 1)
        ]
        return f"🎁 *{owner.display_name}'s Wish List*\n\n" + "\n".join(lines) + f"\n\n_{len(items)} items_"

    async def _wish_in_family(self, item_id: int, family_id: int) -> None:
        _, wish_list = await self.wishes.get_item_with_list(item_id)
        if wish_list.family_id != family_id:
            raise NotFoundError("Wish", item_id)

    async def _handle_reserve(self, command: ParsedCommand, context: CommandContext) -> str:
        item_id = _require_id(command, "/reserve 3")
        user, family = await self._ensure(context)
        await self._wish_in_family(item_id, family.id)

        await self.wishes.reserve_item(item_id, user.id)
        return f"🔒 Item *#{item_id}* reserved!\n\n_The owner won't see who reserved it._"

    async def _handle_unreserve(self, command: ParsedCommand, context: CommandContext) -> str:
        item_id = _require_id(command, "/unreserve 3")
        user, family = await self._ensure(context)
        await self._wish_in_family(item_id, family.id)

        await self.wishes.unreserve_item(item_id, user.id)
        return f"🔓 Reservation for item *#{item_id}* cancelled."

    async def _handle_delwish(self, command: ParsedCommand, context: CommandContext) -> str:
        item_id = _require_id(command, "/delwish 3")
        user, family = await self._ensure(context)
        await self._wish_in_family(item_id, family.id)

        item = await self.wishes.delete_item(item_id, user.id)
        return f"🗑 Wish *#{item.id}* deleted: {item.name}"

    # Reminders

    async def _handle_remind(self, command: ParsedCommand, context: CommandContext) -> str:
        repeat, args = split_repeat(command.args)
        if not args:
            raise ValidationError(f"Please provide a time and reminder text.\n\n{REMIND_USAGE}")

        try:
            remind_at, consumed = parse_remind_time(args)
        except ValueError:
            raise ValidationError(f"Could not parse time.\n\n{REMIND_USAGE}")

        text = " ".join(args[consumed:]).strip()
        if not text:
            raise ValidationError("Please provide a reminder text after the time.")

        user, family = await self._ensure(context)
        reminder = await self.reminders.create_reminder(
            user_id=user.id,
            chat_id=context.chat_id,
            text=text,
            remind_at=remind_at,
            repeat=repeat,
            family_id=family.id,
        )

        response = (
            f"⏰ *Reminder set!*\n\n*#{reminder.id}* — {reminder.text}\n"
            f"📅 {get_relative_time_description(reminder.remind_at)}"
        )
        if reminder.is_repeating:
            response += f"\n🔁 Repeats {reminder.repeat.value}"
        return response

    async def _handle_reminders(self, command: ParsedCommand, context: CommandContext) -> str:
        user, _ = await self._ensure(context)
        reminders = await self.reminders.list_for_user(user.id)
        if not reminders:
            return "⏰ *No active reminders!*\n\nCreate one with `/remind <time> <text>`"

        response = "⏰ *Your Reminders*\n\n"
        for i, r in enumerate(reminders, 1):
            response += f"{i}. *#{r.id}* {r.text}\n   📅 {get_relative_time_description(r.remind_at)}"
            if r.is_repeating:
                response += f" (🔁 {r.repeat.value})"
            response += "\n\n"
        return response + f"_{len(reminders)} active reminders_\n\n_Delete with_ `/delremind <id>`"

    async def _handle_delremind(self, command: ParsedCommand, context: CommandContext) -> str:
        reminder_id = _require_id(command, "/delremind 3")
        user, _ = await self._ensure(context)

        reminder = await self.reminders.delete_reminder(reminder_id, user.id)
        return f"🗑 Reminder *#{reminder.id}* deleted: {reminder.text}"
