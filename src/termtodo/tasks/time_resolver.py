# src/termtodo/tasks/time_resolver.py

"""
Resolve relative date/time phrases ("tomorrow", "friday at 2pm", "at 3") to an
absolute, timezone-aware datetime.

Rules:
- today / tomorrow: that date at the default time (23:59) unless a clock time is given
- tonight: today at 20:00, bare hours read as evening
- weekday names (with or without "next"): next occurrence strictly after now
- clock time alone: today, or tomorrow when that instant is not after now
- bare hour without am/pm: 1-7 -> PM, 8-11 -> AM, 12 -> noon, 0/13-23 -> 24h clock
- YYYY-MM-DD, optionally followed by a time

Anything else resolves to None. The resolver never raises on bad input.

The pattern fragments below are shared with the extraction engine, so the
phrases it cuts out of a title are exactly the phrases this module accepts.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta

DEFAULT_DUE_TIME = time(23, 59)
TONIGHT_TIME = time(20, 0)

WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

PREPOSITION_PATTERN = r"(?:(?:due\s+)?(?:on|by)\s+|due\s+)?"

DATE_PATTERN = (
    r"(?:(?:today|tonight|tomorrow)(?!')"
    r"|(?:next\s+)?(?:" + "|".join(WEEKDAYS) + r")(?!')"
    r"|\d{4}-\d{2}-\d{2})"
)

TIME_PATTERN = (
    r"(?:(?:at\s+)?\d{1,2}(?::\d{2})?\s*(?:am|pm)"
    r"|(?:at\s+)?\d{1,2}:\d{2}"
    r"|at\s+\d{1,2})"
    r"(?![\w:])"
)

_PHRASE_RE = re.compile(
    r"^\s*" + PREPOSITION_PATTERN
    + r"(?:(?P<date1>" + DATE_PATTERN + r")(?:\s+(?P<time1>" + TIME_PATTERN + r"))?"
    + r"|(?P<time2>" + TIME_PATTERN + r")(?:\s+(?:on\s+)?(?P<date2>" + DATE_PATTERN + r"))?)"
    + r"\s*$",
    re.IGNORECASE,
)

_CLOCK_RE = re.compile(
    r"^(?:at\s+)?(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<meridiem>am|pm)?$",
    re.IGNORECASE,
)


def resolve_time_reference(
    phrase: str,
    now: datetime,
    *,
    default_time: time = DEFAULT_DUE_TIME,
) -> datetime | None:
    """
    Resolve `phrase` against `now`.

    `now` may be naive; it is then taken as local system time. The result
    carries now's tzinfo (the local offset at resolution time).
    """
    if not phrase or not phrase.strip():
        return None

    if now.tzinfo is None:
        now = now.astimezone()

    m = _PHRASE_RE.match(phrase)
    if not m:
        return None

    date_tok = m.group("date1") or m.group("date2")
    time_tok = m.group("time1") or m.group("time2")

    evening = bool(date_tok) and date_tok.lower() == "tonight"

    clock: time | None = None
    if time_tok:
        clock = parse_clock(time_tok, evening=evening)
        if clock is None:
            return None

    if date_tok:
        day = _resolve_day(date_tok, now)
        if day is None:
            return None
        if clock is None:
            clock = TONIGHT_TIME if evening else default_time
        return datetime.combine(day, clock, tzinfo=now.tzinfo)

    if clock is None:
        return None

    # clock time only: today, unless that moment is already behind us
    candidate = datetime.combine(now.date(), clock, tzinfo=now.tzinfo)
    if candidate <= now:
        candidate = datetime.combine(now.date() + timedelta(days=1), clock, tzinfo=now.tzinfo)
    return candidate


def parse_clock(token: str, *, evening: bool = False) -> time | None:
    """Parse "3pm", "at 2:30 pm", "15:30", "at 3" into a time of day."""
    m = _CLOCK_RE.match(token.strip())
    if not m:
        return None

    hour = int(m.group("hour"))
    minute = int(m.group("minute") or 0)
    meridiem = (m.group("meridiem") or "").lower()

    if minute > 59:
        return None

    if meridiem:
        if not 1 <= hour <= 12:
            return None
        if meridiem == "pm" and hour != 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0
    else:
        hour = _bare_hour(hour, evening=evening)
        if hour is None:
            return None

    return time(hour, minute)


def _bare_hour(hour: int, *, evening: bool) -> int | None:
    if hour > 23:
        return None
    if 1 <= hour <= 11 and evening:
        return hour + 12
    if 1 <= hour <= 7:
        return hour + 12
    return hour


def _resolve_day(token: str, now: datetime) -> date | None:
    word = " ".join(token.lower().split())
    today = now.date()

    if word in ("today", "tonight"):
        return today
    if word == "tomorrow":
        return today + timedelta(days=1)

    if word.startswith("next "):
        word = word[len("next "):]
    if word in WEEKDAYS:
        return next_weekday(today, WEEKDAYS[word])

    try:
        return date.fromisoformat(word)
    except ValueError:
        return None


def next_weekday(d: date, target_weekday: int) -> date:
    """Next date with the given weekday, strictly after `d`."""
    days_ahead = (target_weekday - d.weekday()) % 7
    if days_ahead == 0:
        days_ahead = 7
    return d + timedelta(days=days_ahead)
