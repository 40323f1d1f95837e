"""
Time utilities for the configured reference timezone.

Every timestamp the assistant stores is a naive wall-clock datetime in the
zone named by the TIMEZONE setting. Chat commands are parsed in that zone too,
so a reminder set for "15:30" fires at 15:30 local time.
"""

import re
from datetime import datetime, timedelta
from functools import lru_cache
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

from family_assistant.config.settings import get_settings

RELATIVE_TIME_RE = re.compile(r"^(\d+)([mhd])$")
CLOCK_TIME_RE = re.compile(r"^\d{1,2}:\d{2}$")
DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@lru_cache()
def get_local_tz() -> ZoneInfo:
    """Return the reference timezone."""
    return ZoneInfo(get_settings().timezone)


def get_current_time() -> datetime:
    """Get the current time as a naive datetime in the reference timezone."""
    return datetime.now(get_local_tz()).replace(tzinfo=None)


def to_local(dt: datetime) -> datetime:
    """
    Convert a datetime to a naive wall-clock datetime in the reference timezone.

    Args:
        dt: Datetime to convert (can be naive or aware)

    Returns:
        Naive datetime; naive input is assumed to already be local
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(get_local_tz()).replace(tzinfo=None)


def parse_remind_time(args: List[str], reference_time: Optional[datetime] = None) -> Tuple[datetime, int]:
    """
    Parse a reminder time from the leading command arguments.

    Supported formats:
        "10m", "2h", "1d"     -> relative to now
        "15:30"               -> today at that time, tomorrow if it has passed
        "2025-12-31 15:30"    -> absolute datetime (consumes two arguments)

    Args:
        args: Command arguments following the command name
        reference_time: "Now" for relative expressions (defaults to current local time)

    Returns:
        Tuple of (remind_at, number of arguments consumed)

    Raises:
        ValueError: If no supported time format is found
    """
    if not args:
        raise ValueError("no time specified")

    if reference_time is None:
        reference_time = get_current_time()
    now = to_local(reference_time)

    first = args[0].strip().lower()

    relative = RELATIVE_TIME_RE.match(first)
    if relative:
        amount = int(relative.group(1))
        unit = relative.group(2)
        if unit == "m":
            return now + timedelta(minutes=amount), 1
        if unit == "h":
            return now + timedelta(hours=amount), 1
        return now + timedelta(days=amount), 1

    if len(args) >= 2 and DATE_ONLY_RE.match(first) and CLOCK_TIME_RE.match(args[1]):
        try:
            return datetime.strptime(f"{first} {args[1]}", "%Y-%m-%d %H:%M"), 2
        except ValueError:
            raise ValueError(f"invalid datetime: {first} {args[1]}")

    if CLOCK_TIME_RE.match(first):
        try:
            clock = datetime.strptime(first, "%H:%M")
        except ValueError:
            raise ValueError(f"invalid time: {first}")
        remind_at = now.replace(hour=clock.hour, minute=clock.minute, second=0, microsecond=0)
        # If the time has already passed today, schedule for tomorrow
        if remind_at < now:
            remind_at += timedelta(days=1)
        return remind_at, 1

    raise ValueError(f"unrecognized time format: {args[0]}")


def format_time(dt: datetime, include_date: bool = True) -> str:
    """
    Format a stored datetime for display.

    Args:
        dt: Datetime to format
        include_date: Whether to include the date

    Returns:
        Formatted string
    """
    local = to_local(dt)

    if include_date:
        return local.strftime("%a, %d %b %Y at %H:%M")
    return local.strftime("%H:%M")


def get_relative_time_description(dt: datetime, reference_time: Optional[datetime] = None) -> str:
    """
    Get a human-readable description of when a reminder fires.

    Args:
        dt: Target datetime
        reference_time: Defaults to the current local time

    Returns:
        Description like "in 2h 5m (15:30)" or "Mon, 02 Jan 2026 at 15:04"
    """
    now = to_local(reference_time) if reference_time else get_current_time()
    target = to_local(dt)

    diff = target - now

    if diff.total_seconds() < 0:
        return f"{target.strftime('%Y-%m-%d %H:%M')} (overdue)"

    if diff < timedelta(hours=24):
        hours = int(diff.total_seconds() // 3600)
        minutes = int(diff.total_seconds() // 60) % 60
        if hours > 0:
            return f"in {hours}h {minutes}m ({target.strftime('%H:%M')})"
        if minutes > 0:
            return f"in {minutes}m ({target.strftime('%H:%M')})"
        return f"in less than a minute ({target.strftime('%H:%M')})"

    return format_time(target)
