"""
Slash-command parsing for incoming chat messages.
"""

import re
from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel

from family_assistant.domain.reminder import ReminderRepeat
from family_assistant.utils.time import CLOCK_TIME_RE, DATE_ONLY_RE

# "/add@FamilyBot buy milk" -> name "add"
COMMAND_RE = re.compile(r"^/([A-Za-z_]+)(?:@\S+)?(?:\s+(.*))?$", re.DOTALL)
QUANTITY_RE = re.compile(r"^x(\d+)$", re.IGNORECASE)


class ParsedCommand(BaseModel):
    """A slash command split into its name and arguments."""
    name: str
    args: List[str] = []
    raw_args: str = ""


def parse_command(message: str) -> Optional[ParsedCommand]:
    """
    Parse a chat message into a command.

    Returns:
        ParsedCommand, or None if the message is not a slash command
    """
    if not message:
        return None

    match = COMMAND_RE.match(message.strip())
    if not match:
        return None

    raw_args = (match.group(2) or "").strip()
    return ParsedCommand(
        name=match.group(1).lower(),
        args=raw_args.split(),
        raw_args=raw_args,
    )


def parse_id(value: str) -> int:
    """Parse a "#3" or "3" style entity id. Raises ValueError on anything else."""
    value = value.strip().lstrip("#")
    if not value.isdigit():
        raise ValueError(f"invalid id: {value}")
    return int(value)


def split_repeat(args: List[str]) -> Tuple[ReminderRepeat, List[str]]:
    """Strip a leading daily/weekly/monthly keyword from /remind arguments."""
    if args:
        keyword = args[0].lower()
        if keyword in (ReminderRepeat.DAILY.value, ReminderRepeat.WEEKLY.value, ReminderRepeat.MONTHLY.value):
            return ReminderRepeat(keyword), args[1:]
    return ReminderRepeat.NONE, args


def split_quantity(args: List[str]) -> Tuple[str, str]:
    """Split "/buy Milk x2" arguments into ("Milk", "2")."""
    if len(args) > 1:
        match = QUANTITY_RE.match(args[-1])
        if match:
            return " ".join(args[:-1]), match.group(1)
    return " ".join(args), "1"


def split_event_args(args: List[str]) -> Tuple[str, datetime, bool]:
    """
    Split "/event <title> YYYY-MM-DD [HH:MM]" arguments.

    The date (and optional time) are read from the end; everything before
    them is the title. Without a time the event is all-day.

    Returns:
        Tuple of (title, start_time, all_day)

    Raises:
        ValueError: If the date is missing or malformed, or the title is empty
    """
    last = len(args) - 1
    time_str = ""
    if last >= 0 and CLOCK_TIME_RE.match(args[last]):
        time_str = args[last]
        last -= 1

    if last < 0 or not DATE_ONLY_RE.match(args[last]):
        raise ValueError("missing date")
    date_str = args[last]

    title = " ".join(args[:last]).strip()
    if not title:
        raise ValueError("missing title")

    if time_str:
        return title, datetime.strptime(f"{date_str} {time_str}", "%Y-%m-%d %H:%M"), False
    return title, datetime.strptime(date_str, "%Y-%m-%d"), True


def parse_deadline(args: List[str]) -> datetime:
    """Parse "YYYY-MM-DD [HH:MM]". A bare date means the end of that day."""
    if not args or not DATE_ONLY_RE.match(args[0]):
        raise ValueError("missing date")
    if len(args) > 1 and CLOCK_TIME_RE.match(args[1]):
        return datetime.strptime(f"{args[0]} {args[1]}", "%Y-%m-%d %H:%M")
    return datetime.strptime(args[0], "%Y-%m-%d").replace(hour=23, minute=59)
