"""
Split the text of a plan cell into classified fragments.

A cell holds one or more text nodes, e.g.::

    "Mo 8:00 DuA(1d)-Bö"            weekday, time, subject(group)-lecturer
    "Do/Fr/Sa WP-BI2(b/c)-Sam"      the same entry on three days
    "Studienpräsenz [24]"           full-week entry with room
    "KL-Mathe:\\nRaum 204\\nBSc/BA"  comment, consumed by later cells
    "siehe Kommentar"               replay the next comment line
    "FS151+BSc (FST) d"             class declaration (group column only)

Every fragment is classified into exactly one of the variants below. Multi-day
entries and comment references are resolved here by pushing new fragments on a
per-cell work queue; the remaining classifications are handed to the builder.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

# German weekday abbreviations, Monday first (index = offset from Monday)
WEEKDAYS = ("Mo", "Di", "Mi", "Do", "Fr", "Sa", "So")
DAYS_RE_TEXT = "(" + "|".join(WEEKDAYS) + ")"

DAY_RE = re.compile(DAYS_RE_TEXT)

COMMENT_DECLARATION_RE = re.compile(r"^(.*?):\n(.*)$", re.S)
COMMENT_REFERENCE_MARKERS = ("siehe Kommentar", "see comment")

#                              name         course   cert      group
CLASS_DECLARATION_RE = re.compile(r"(\w{2}\d{3})\+(\w+) \((\w+)\) (\w)")

# <weekday> [ab] [HH:MM|HH.MM] [[room]] <descriptor>
PRIMARY_RE = re.compile(
    DAYS_RE_TEXT
    + r"(?![a-zäöüß])"
    + r" ?(?:ab ?)?"
    + r"(?:(\d{1,2})[.:](\d{2}))? ?"
    + r"(?:\[(.*?)\])? ?"
    + r"(.+)?"
)

BRACKETED_RE = re.compile(r"(.*?) ?\[(.*)\]")

# Lecturer abbreviation at the end ("-Sam") could contain a weekday ("Sa")
TRAILING_LECTURER_RE = re.compile(r"-\w{2,3}$")

ROOM_RE = re.compile(r" ?Raum (.*)")

_PROGRAM = r"(?<![a-z])b\.?(?:sc|a)\.?(?![a-z])"
PROGRAM_RE = re.compile(_PROGRAM, re.I)
PROGRAM_LIST_RE = re.compile(_PROGRAM + r"(?:\s?[^\w\s]\s?" + _PROGRAM + r")*", re.I)


# ── Classifications ────────────────────────────────────────────


@dataclass(frozen=True)
class CommentDeclaration:
    body: str


@dataclass(frozen=True)
class CommentReference:
    pass


@dataclass(frozen=True)
class ClassDeclaration:
    name: str
    course: str
    cert: str
    group: str


@dataclass(frozen=True)
class MultiDay:
    fragments: Tuple[str, ...]


@dataclass(frozen=True)
class PrimaryMatch:
    weekday: str
    hour: Optional[int]
    minute: Optional[int]
    room: Optional[str]
    descriptor: str

    @property
    def day_offset(self) -> int:
        return WEEKDAYS.index(self.weekday)


@dataclass(frozen=True)
class FallbackBracketed:
    title: str
    room: str


@dataclass(frozen=True)
class FallbackWarn:
    text: str


Classification = Union[
    CommentDeclaration,
    CommentReference,
    ClassDeclaration,
    MultiDay,
    PrimaryMatch,
    FallbackBracketed,
    FallbackWarn,
]


# ── Pending comment ───────────────────────────────────────────


_UNPARSED = object()


class CommentBuffer:
    """The comment most recently declared in a row part.

    ``text`` is what is left of the comment body after room and program codes
    were taken out of it; replayable lines are kept separately and consumed
    one by one by comment references. Room and programs are parsed once per
    declared comment, so every exam of the row part gets the same values.
    """

    def __init__(self):
        self.text: Optional[str] = None
        self.declared = False
        self._lines: List[str] = []
        self._room = _UNPARSED
        self._programs = _UNPARSED

    def declare(self, body: str) -> None:
        self.text = body.strip() or None
        self.declared = self.text is not None
        self._lines = [line.strip() for line in body.split("\n") if line.strip()]
        self._room = _UNPARSED
        self._programs = _UNPARSED

    def next_line(self) -> Optional[str]:
        if not self._lines:
            return None
        return self._lines.pop(0)

    @property
    def pending_lines(self) -> int:
        return len(self._lines)

    def take_room(self) -> Optional[str]:
        """Remove "Raum <value>" from the comment and return the value."""
        if self._room is not _UNPARSED:
            return self._room
        self._room = None
        if not self.text:
            return None
        m = ROOM_RE.search(self.text)
        if not m:
            return None
        self._set_text(self.text[: m.start()] + self.text[m.end():])
        self._strip_lines(ROOM_RE, first_only=True)
        self._room = m.group(1).strip() or None
        return self._room

    def take_programs(self) -> List[str]:
        """Remove program codes ("BSc/BA", "B.Sc.") from the comment and return them."""
        if self._programs is not _UNPARSED:
            return list(self._programs)
        self._programs = []
        if not self.text:
            return []
        for m in PROGRAM_LIST_RE.finditer(self.text):
            self._programs.extend(code.replace(".", "") for code in PROGRAM_RE.findall(m.group(0)))
        if self._programs:
            self._set_text(PROGRAM_LIST_RE.sub("", self.text))
            self._strip_lines(PROGRAM_LIST_RE)
        return list(self._programs)

    def _set_text(self, text: str) -> None:
        text = text.strip()
        self.text = text or None

    def _strip_lines(self, pattern: re.Pattern, first_only: bool = False) -> None:
        # Replayable lines must not hand out what an exam already took
        lines = []
        done = False
        for line in self._lines:
            if not done:
                line, n = pattern.subn("", line, count=1 if first_only else 0)
                done = first_only and n > 0
            line = line.strip()
            if line:
                lines.append(line)
        self._lines = lines


# ── Multi-day entries ─────────────────────────────────────────


def _leading_day_count(text: str) -> int:
    return len(DAY_RE.findall(text.split(" ")[0]))


def is_multi_day(text: str) -> bool:
    """True for entries like "Do/Fr/Sa WP-BI2(b/c)-Sam".

    The general grammar matches such a text once, while its first word holds
    several weekday tokens.
    """
    leading = _leading_day_count(text)
    return leading > 1 and len(PRIMARY_RE.findall(text)) != leading


def expand_multi_day(text: str) -> List[str]:
    """Split a multi-day entry into one fragment per weekday.

    "Do/Fr/Sa WP-BI2(b/c)-Sam" -> ["Do WP-BI2(b/c)-Sam", "Fr WP-BI2(b/c)-Sam", "Sa WP-BI2(b/c)-Sam"]

    Splitting "Do/Fr/Sa WP-BI2(b/c)" by weekdays gives
    ["", "Do", "/", "Fr", "/", "Sa", " WP-BI2(b/c)"]. The first part after a
    weekday is the separator; the list ends at the first part that is neither
    a weekday nor the separator.
    """
    days: List[str] = []
    sep: Optional[str] = None
    last_was_day = False

    for part in DAY_RE.split(TRAILING_LECTURER_RE.sub("", text)):
        if part in WEEKDAYS:
            days.append(part)
            last_was_day = True
        elif not days:
            if part:
                break
        elif last_was_day and (sep is None or part == sep):
            sep = part
            last_was_day = False
        else:
            break

    if len(days) < 2:
        return [text]

    remainder = text.replace((sep or "").join(days), "", 1)
    logger.debug("Multi-day %r: days %r, separator %r", text, days, sep)
    return [day + remainder for day in days]


# ── Parser ────────────────────────────────────────────────────


class CellTextParser:
    def classify(self, text: str, schedule_column: bool = True) -> Optional[Classification]:
        """Classify one fragment.

        In the group column (``schedule_column=False``) only class declarations
        are meaningful; anything else yields ``None``.
        """
        text = text.strip()
        if not text:
            return None

        if schedule_column:
            m = COMMENT_DECLARATION_RE.match(text)
            if m:
                return CommentDeclaration(m.group(2))
            if any(marker in text for marker in COMMENT_REFERENCE_MARKERS):
                return CommentReference()

        m = CLASS_DECLARATION_RE.search(text)
        if m:
            return ClassDeclaration(*m.groups())
        if not schedule_column:
            return None

        if is_multi_day(text):
            fragments = expand_multi_day(text)
            if len(fragments) > 1:
                return MultiDay(tuple(fragments))

        m = PRIMARY_RE.match(text)
        if m and m.group(5) and m.group(5).strip():
            day, hour, minute, room, descriptor = m.groups()
            return PrimaryMatch(
                weekday=day,
                hour=int(hour) if hour is not None else None,
                minute=int(minute) if minute is not None else None,
                room=room,
                descriptor=descriptor.strip(),
            )

        m = BRACKETED_RE.search(text)
        if m:
            return FallbackBracketed(title=m.group(1).strip(), room=m.group(2))

        return FallbackWarn(text)

    def iter_fragments(
        self,
        fragments: Iterable[str],
        comments: CommentBuffer,
        schedule_column: bool = True,
    ) -> Iterator[Tuple[str, Classification]]:
        """Drain the work queue of one cell.

        The queue is a stack: fragments pushed by a multi-day expansion or a
        comment replay are processed before the next text node of the cell.
        Comment declarations/references and multi-day entries are handled
        here; everything else is yielded.
        """
        queue = [f for f in reversed(list(fragments))]
        while queue:
            text = queue.pop().strip()
            kind = self.classify(text, schedule_column)
            if kind is None:
                continue

            if isinstance(kind, CommentDeclaration):
                logger.debug("Comment %r", kind.body)
                comments.declare(kind.body)
            elif isinstance(kind, CommentReference):
                line = comments.next_line()
                if line is None:
                    logger.error("%r refers to a comment, but there is none (left).", text)
                    continue
                logger.debug("Comment line %r for %r", line, text)
                queue.append(line)
            elif isinstance(kind, MultiDay):
                logger.info("Multi-day %r", text)
                queue.extend(reversed(kind.fragments))
            else:
                yield text, kind
