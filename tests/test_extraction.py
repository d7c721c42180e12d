# tests/test_extraction.py

from __future__ import annotations

from datetime import datetime, time, timezone

import pytest

from termtodo.tasks.extraction import DEFAULT_RULES, RuleKind, TextExtractor, extract
from termtodo.tasks.task_models import ExtractionResult, Priority

from .fakes import MONDAY_10AM, WEDNESDAY_10AM


def test_tags_and_date_are_cut_from_title() -> None:
    r = extract("Review PR #work #urgent tomorrow", WEDNESDAY_10AM)

    assert r.title == "Review PR"
    assert r.tags == {"work", "urgent"}
    assert r.due_at == datetime(2026, 10, 15, 23, 59, tzinfo=timezone.utc)
    # "#urgent" is a tag, not a priority signal
    assert r.priority is None


def test_tags_are_lowercased() -> None:
    r = extract("Call mom #Family", MONDAY_10AM)
    assert r.title == "Call mom"
    assert r.tags == {"family"}


def test_tag_in_the_middle_of_the_text() -> None:
    r = extract("Email #boss about tomorrow", MONDAY_10AM)
    assert r.title == "Email about"
    assert r.tags == {"boss"}
    assert r.due_at == datetime(2026, 10, 13, 23, 59, tzinfo=timezone.utc)


def test_hash_after_a_word_is_not_a_tag() -> None:
    r = extract("C# tutorial", MONDAY_10AM)
    assert r.title == "C# tutorial"
    assert r.tags == frozenset()


@pytest.mark.parametrize(
    ("raw", "title", "priority"),
    [
        ("URGENT: fix prod", "fix prod", Priority.HIGH),
        ("asap - renew passport", "renew passport", Priority.HIGH),
        ("[low] clean garage", "clean garage", Priority.LOW),
        ("Buy milk !high", "Buy milk", Priority.HIGH),
        ("(someday) learn piano", "learn piano", Priority.LOW),
    ],
)
def test_decorative_priority_markers_are_removed(raw: str, title: str, priority: Priority) -> None:
    r = extract(raw, MONDAY_10AM)
    assert r.title == title
    assert r.priority is priority


@pytest.mark.parametrize(
    ("raw", "priority"),
    [
        ("Fix the urgent bug", Priority.HIGH),
        ("maybe learn piano someday", Priority.LOW),
        ("high-level design review", Priority.HIGH),
        ("asap maybe", Priority.HIGH),  # earliest signal wins
    ],
)
def test_bare_priority_words_stay_in_title(raw: str, priority: Priority) -> None:
    r = extract(raw, MONDAY_10AM)
    assert r.title == raw
    assert r.priority is priority


def test_no_priority_signal_means_none() -> None:
    assert extract("Water plants", MONDAY_10AM).priority is None


@pytest.mark.parametrize(
    ("raw", "title", "due"),
    [
        ("Meet Bob friday at 2pm", "Meet Bob", datetime(2026, 10, 16, 14, 0, tzinfo=timezone.utc)),
        ("Dentist tomorrow at 3pm", "Dentist", datetime(2026, 10, 13, 15, 0, tzinfo=timezone.utc)),
        ("Pay rent by friday", "Pay rent", datetime(2026, 10, 16, 23, 59, tzinfo=timezone.utc)),
        ("Call Ann at 3", "Call Ann", datetime(2026, 10, 12, 15, 0, tzinfo=timezone.utc)),
        ("Ship release 2026-11-02", "Ship release", datetime(2026, 11, 2, 23, 59, tzinfo=timezone.utc)),
    ],
)
def test_date_phrases(raw: str, title: str, due: datetime) -> None:
    r = extract(raw, MONDAY_10AM)
    assert r.title == title
    assert r.due_at == due


def test_unresolvable_phrase_stays_in_title() -> None:
    r = extract("Call at 25:00", MONDAY_10AM)
    assert r.title == "Call at 25:00"
    assert r.due_at is None


@pytest.mark.parametrize(
    "raw",
    ["Plan tomorrow's agenda", "Plan today's agenda", "Watch tonight's game", "Read friday's notes"],
)
def test_possessive_day_word_is_not_a_date(raw: str) -> None:
    r = extract(raw, MONDAY_10AM)
    assert r.title == raw
    assert r.due_at is None


def test_whitespace_is_normalized() -> None:
    assert extract("  Water   plants  ", MONDAY_10AM).title == "Water plants"


def test_only_markers_leaves_empty_title() -> None:
    r = extract("#work tomorrow", MONDAY_10AM)
    assert r.title == ""
    assert r.tags == {"work"}


def test_extracting_a_title_again_changes_nothing() -> None:
    first = extract("Submit report #work tomorrow at 5pm", MONDAY_10AM)
    second = extract(first.title, MONDAY_10AM)

    assert first.title == "Submit report"
    assert second == ExtractionResult(title="Submit report")


def test_extractor_default_time() -> None:
    extractor = TextExtractor(default_time=time(9, 0))
    r = extractor.extract("Standup tomorrow", MONDAY_10AM)
    assert r.due_at == datetime(2026, 10, 13, 9, 0, tzinfo=timezone.utc)


def test_rule_table_can_be_narrowed() -> None:
    extractor = TextExtractor(rule for rule in DEFAULT_RULES if rule.kind is not RuleKind.PRIORITY)
    r = extractor.extract("urgent fix #ops", MONDAY_10AM)
    assert r.priority is None
    assert r.title == "urgent fix"
    assert r.tags == {"ops"}
