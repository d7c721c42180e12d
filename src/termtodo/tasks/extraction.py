# src/termtodo/tasks/extraction.py

"""
Text extraction engine: raw task input -> ExtractionResult.

The engine is a small table of PatternRule entries. Each rule has a kind
(tag / priority / datetime) and a compiled pattern; matches carry the span to
cut out of the working text. Passes run in a fixed order:

1. tags       "#work" -> {"work"}, always removed
2. priority   first signal word wins; removed only when decorative
              ("URGENT:", "[low]", "!high"), bare words stay in the title
3. datetime   longest phrase wins, date+time beats date or time alone;
              removed only if the resolver accepts it
4. whitespace collapsed and trimmed

Tags go first so "#urgent" is a tag and never a priority signal, and so a
marker character can never split a date phrase.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime, time
from enum import StrEnum

from .task_models import ExtractionResult, Priority
from .time_resolver import (
    DATE_PATTERN,
    DEFAULT_DUE_TIME,
    PREPOSITION_PATTERN,
    TIME_PATTERN,
    resolve_time_reference,
)

logger = logging.getLogger(__name__)

TAG_MARKER = "#"

HIGH_WORDS = ("urgent", "asap", "high", "important", "critical")
LOW_WORDS = ("maybe", "low", "someday", "eventually", "whenever")


class RuleKind(StrEnum):
    TAG = "tag"
    PRIORITY = "priority"
    DATETIME = "datetime"


@dataclass(frozen=True, slots=True)
class PatternRule:
    name: str
    kind: RuleKind
    pattern: re.Pattern[str]

    # priority rules
    priority: Priority | None = None
    decorative: bool = False

    # datetime rules
    has_date: bool = False
    has_time: bool = False


@dataclass(frozen=True, slots=True)
class RuleMatch:
    rule: PatternRule
    start: int
    end: int
    text: str
    value: str

    @property
    def length(self) -> int:
        return self.end - self.start


def _words(words: Iterable[str]) -> str:
    return "(?P<value>" + "|".join(re.escape(w) for w in words) + ")"


def _priority_rules(level: Priority, words: tuple[str, ...]) -> list[PatternRule]:
    vocab = _words(words)
    flags = re.IGNORECASE
    return [
        # "URGENT: call bank", "asap - renew passport", "high! fix prod"
        PatternRule(
            name=f"{level}_label",
            kind=RuleKind.PRIORITY,
            pattern=re.compile(r"^\s*" + vocab + r"\s*(?::|!+|-+)(?=\s|$)\s*", flags),
            priority=level,
            decorative=True,
        ),
        # "[urgent]", "(low)"
        PatternRule(
            name=f"{level}_bracket",
            kind=RuleKind.PRIORITY,
            pattern=re.compile(r"[\[(]\s*" + vocab + r"\s*[\])]", flags),
            priority=level,
            decorative=True,
        ),
        # "!high", "!someday"
        PatternRule(
            name=f"{level}_bang",
            kind=RuleKind.PRIORITY,
            pattern=re.compile(r"(?<!\S)!" + vocab + r"(?!\w)", flags),
            priority=level,
            decorative=True,
        ),
        # plain word in the sentence: sets priority, stays in the title
        PatternRule(
            name=f"{level}_word",
            kind=RuleKind.PRIORITY,
            pattern=re.compile(r"\b" + vocab + r"\b", flags),
            priority=level,
        ),
    ]


def _datetime_rule(name: str, body: str, *, has_date: bool, has_time: bool) -> PatternRule:
    return PatternRule(
        name=name,
        kind=RuleKind.DATETIME,
        pattern=re.compile(
            r"(?<![\w:])(?P<value>" + PREPOSITION_PATTERN + body + r")(?!\w)",
            re.IGNORECASE,
        ),
        has_date=has_date,
        has_time=has_time,
    )


DEFAULT_RULES: tuple[PatternRule, ...] = (
    PatternRule(
        name="tag",
        kind=RuleKind.TAG,
        pattern=re.compile(r"(?<![\w#])" + re.escape(TAG_MARKER) + r"(?P<value>\w+)"),
    ),
    *_priority_rules(Priority.HIGH, HIGH_WORDS),
    *_priority_rules(Priority.LOW, LOW_WORDS),
    _datetime_rule(
        "date_time",
        DATE_PATTERN + r"\s+" + TIME_PATTERN,
        has_date=True,
        has_time=True,
    ),
    _datetime_rule(
        "time_date",
        TIME_PATTERN + r"\s+(?:on\s+)?" + DATE_PATTERN,
        has_date=True,
        has_time=True,
    ),
    _datetime_rule("date", DATE_PATTERN, has_date=True, has_time=False),
    _datetime_rule("time", TIME_PATTERN, has_date=False, has_time=True),
)


def _cut(text: str, start: int, end: int) -> str:
    return f"{text[:start]} {text[end:]}"


def normalize_whitespace(text: str) -> str:
    return " ".join(text.split())


class TextExtractor:
    """Table-driven extractor. Stateless apart from its rules and default due time."""

    def __init__(
        self,
        rules: Iterable[PatternRule] = DEFAULT_RULES,
        *,
        default_time: time = DEFAULT_DUE_TIME,
    ) -> None:
        self.rules = tuple(rules)
        self.default_time = default_time

    def _matches(self, kind: RuleKind, text: str) -> Iterator[RuleMatch]:
        for rule in self.rules:
            if rule.kind is not kind:
                continue
            for m in rule.pattern.finditer(text):
                yield RuleMatch(
                    rule=rule,
                    start=m.start(),
                    end=m.end(),
                    text=m.group(0),
                    value=m.group("value"),
                )

    def extract(self, raw: str, now: datetime | None = None) -> ExtractionResult:
        if now is None:
            now = datetime.now().astimezone()

        text = raw or ""

        # 1. tags, right to left so earlier spans keep their offsets
        tags: set[str] = set()
        tag_matches = sorted(self._matches(RuleKind.TAG, text), key=lambda m: m.start)
        for m in reversed(tag_matches):
            tags.add(m.value.lower())
            text = _cut(text, m.start, m.end)

        # 2. priority: earliest signal wins, decorative beats bare on a tie
        priority: Priority | None = None
        best = min(
            self._matches(RuleKind.PRIORITY, text),
            key=lambda m: (m.start, not m.rule.decorative, -m.length),
            default=None,
        )
        if best is not None:
            priority = best.rule.priority
            if best.rule.decorative:
                text = _cut(text, best.start, best.end)

        # 3. date/time: prefer date+time, then the longest phrase, then the earliest
        due_at: datetime | None = None
        phrase = max(
            self._matches(RuleKind.DATETIME, text),
            key=lambda m: (m.rule.has_date and m.rule.has_time, m.length, -m.start),
            default=None,
        )
        if phrase is not None:
            due_at = resolve_time_reference(phrase.value, now, default_time=self.default_time)
            if due_at is not None:
                text = _cut(text, phrase.start, phrase.end)
            else:
                logger.debug("Date phrase %r not resolved; leaving it in the title.", phrase.value)

        # 4. whitespace
        title = normalize_whitespace(text)

        return ExtractionResult(
            title=title,
            due_at=due_at,
            priority=priority,
            tags=frozenset(tags),
        )


_default_extractor = TextExtractor()


def extract(raw: str, now: datetime | None = None) -> ExtractionResult:
    """Module-level shortcut using the default rule table."""
    return _default_extractor.extract(raw, now)
