"""
Tests for slash-command parsing.
"""

from datetime import datetime

import pytest

from family_assistant.commands.parser import (
    parse_command,
    parse_deadline,
    parse_id,
    split_event_args,
    split_quantity,
    split_repeat,
)
from family_assistant.domain.reminder import ReminderRepeat


class TestParseCommand:

    def test_command_with_arguments(self):
        command = parse_command("/add  Buy   groceries ")

        assert command.name == "add"
        assert command.args == ["Buy", "groceries"]
        assert command.raw_args == "Buy   groceries"

    def test_command_name_is_case_insensitive(self):
        assert parse_command("/HELP").name == "help"

    def test_bot_mention_is_stripped(self):
        command = parse_command("/list@FamilyBot")

        assert command.name == "list"
        assert command.args == []

    @pytest.mark.parametrize("message", ["", "hello there", "remind me /later", "/"])
    def test_plain_text_is_not_a_command(self, message):
        assert parse_command(message) is None


class TestArgumentHelpers:

    def test_parse_id(self):
        assert parse_id("7") == 7
        assert parse_id("#12") == 12

    @pytest.mark.parametrize("value", ["abc", "-1", "1.5", ""])
    def test_parse_id_rejects_non_numeric(self, value):
        with pytest.raises(ValueError):
            parse_id(value)

    def test_split_repeat(self):
        assert split_repeat(["Weekly", "08:00", "Gym"]) == (ReminderRepeat.WEEKLY, ["08:00", "Gym"])
        assert split_repeat(["08:00", "Gym"]) == (ReminderRepeat.NONE, ["08:00", "Gym"])
        assert split_repeat([]) == (ReminderRepeat.NONE, [])

    def test_split_quantity(self):
        assert split_quantity(["Milk", "x2"]) == ("Milk", "2")
        assert split_quantity(["Whole", "wheat", "bread"]) == ("Whole wheat bread", "1")
        # A lone "x3" is an item name, not a quantity
        assert split_quantity(["x3"]) == ("x3", "1")


class TestEventArgs:

    def test_timed_event(self):
        title, start, all_day = split_event_args(["Team", "dinner", "2026-01-15", "19:30"])

        assert title == "Team dinner"
        assert start == datetime(2026, 1, 15, 19, 30)
        assert all_day is False

    def test_all_day_event(self):
        title, start, all_day = split_event_args(["Birthday", "party", "2026-03-20"])

        assert title == "Birthday party"
        assert start == datetime(2026, 3, 20)
        assert all_day is True

    @pytest.mark.parametrize(
        "args",
        [["Meeting"], ["2026-01-15", "10:00"], ["Meeting", "tomorrow"], ["Meeting", "2026-02-30"]],
    )
    def test_invalid_event_args(self, args):
        with pytest.raises(ValueError):
            split_event_args(args)

    def test_deadline_defaults_to_end_of_day(self):
        assert parse_deadline(["2026-04-15"]) == datetime(2026, 4, 15, 23, 59)
        assert parse_deadline(["2026-04-15", "12:00"]) == datetime(2026, 4, 15, 12, 0)

    def test_deadline_requires_date(self):
        with pytest.raises(ValueError):
            parse_deadline(["soon"])
