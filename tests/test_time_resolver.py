# tests/test_time_resolver.py

from __future__ import annotations

from datetime import datetime, time, timezone

import pytest

from termtodo.tasks.time_resolver import next_weekday, parse_clock, resolve_time_reference

from .fakes import MONDAY_10AM


def at(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 10, day, hour, minute, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("phrase", "expected"),
    [
        ("today", at(12, 23, 59)),
        ("tomorrow", at(13, 23, 59)),
        ("Tomorrow", at(13, 23, 59)),
        ("monday", at(19, 23, 59)),
        ("next monday", at(19, 23, 59)),
        ("tuesday", at(13, 23, 59)),
        ("friday at 2pm", at(16, 14)),
        ("friday 2:30 pm", at(16, 14, 30)),
        ("tomorrow at 3", at(13, 15)),
        ("3pm tomorrow", at(13, 15)),
        ("at 5pm on friday", at(16, 17)),
        ("by friday", at(16, 23, 59)),
        ("due tomorrow at 5pm", at(13, 17)),
        ("tonight", at(12, 20)),
        ("tonight at 9", at(12, 21)),
        ("2026-10-20", at(20, 23, 59)),
        ("2026-10-20 14:00", at(20, 14)),
    ],
)
def test_resolves_dates_against_monday_morning(phrase: str, expected: datetime) -> None:
    assert resolve_time_reference(phrase, MONDAY_10AM) == expected


@pytest.mark.parametrize(
    ("phrase", "expected"),
    [
        ("at 3pm", at(12, 15)),  # still ahead today
        ("3pm", at(12, 15)),
        ("15:30", at(12, 15, 30)),
        ("at 9am", at(13, 9)),  # already passed -> tomorrow
        ("at 10am", at(13, 10)),  # exactly now counts as passed
        ("12pm", at(12, 12)),
        ("12am", at(13, 0)),
    ],
)
def test_time_only_rolls_to_tomorrow_when_passed(phrase: str, expected: datetime) -> None:
    assert resolve_time_reference(phrase, MONDAY_10AM) == expected


@pytest.mark.parametrize(
    ("phrase", "expected"),
    [
        ("at 1", at(12, 13)),
        ("at 3", at(12, 15)),
        ("at 7", at(12, 19)),
        ("at 8", at(13, 8)),  # 8 AM already passed
        ("at 11", at(12, 11)),
        ("at 12", at(12, 12)),
        ("at 18", at(12, 18)),
    ],
)
def test_bare_hour_policy(phrase: str, expected: datetime) -> None:
    assert resolve_time_reference(phrase, MONDAY_10AM) == expected


@pytest.mark.parametrize(
    "phrase",
    [
        "",
        "   ",
        "someday",
        "yesterday",
        "at",
        "25:00",
        "at 24",
        "13pm",
        "5:60pm",
        "2026-02-30",
        "monday-ish",
        "today's",
        "tonight's",
    ],
)
def test_unrecognized_phrases_return_none(phrase: str) -> None:
    assert resolve_time_reference(phrase, MONDAY_10AM) is None


def test_default_time_is_configurable() -> None:
    got = resolve_time_reference("tomorrow", MONDAY_10AM, default_time=time(9, 0))
    assert got == at(13, 9)


def test_result_keeps_reference_zone() -> None:
    got = resolve_time_reference("friday", MONDAY_10AM)
    assert got is not None
    assert got.tzinfo == MONDAY_10AM.tzinfo


def test_naive_now_is_taken_as_local_time() -> None:
    got = resolve_time_reference("tomorrow", datetime(2026, 10, 12, 10, 0))
    assert got is not None
    assert got.tzinfo is not None
    assert (got.year, got.month, got.day, got.hour, got.minute) == (2026, 10, 13, 23, 59)


def test_parse_clock_variants() -> None:
    assert parse_clock("2:30pm") == time(14, 30)
    assert parse_clock("12:15am") == time(0, 15)
    assert parse_clock("at 0") == time(0, 0)
    assert parse_clock("at 23") == time(23, 0)
    assert parse_clock("at 24") is None
    assert parse_clock("at 9", evening=True) == time(21, 0)


def test_next_weekday_is_strictly_after() -> None:
    monday = MONDAY_10AM.date()
    assert next_weekday(monday, 0) == monday.replace(day=19)
    assert next_weekday(monday, 2) == monday.replace(day=14)
