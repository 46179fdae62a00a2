"""
Turn classified cell fragments into ScheduleElements.

The descriptor of a timed entry looks like ``<title>(<groups or duration>)-<lecturer>``:

    "DuA(1d)-Bö"        session 1 for group d, lecturer Bö
    "WP-BI2(b/c)-Sam"   groups b and c
    "Mathe(c2)"         subgroup 2 of every class in group c
    "KL-Mathe(90)"      exam, 90 minutes; programs and room come from the comment
    "Proj(FS151)-Wi"    directly for class FS151
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from fractions import Fraction
from typing import List, Optional

from .cell_text import (
    ClassDeclaration,
    Classification,
    CommentBuffer,
    FallbackBracketed,
    FallbackWarn,
    PrimaryMatch,
)
from .groups import ClassGroupRegistry
from .legend import LecturerDirectory
from .models import Clazz, ScheduleElement
from .store import ScheduleStore

logger = logging.getLogger(__name__)

# title, group or duration, lecturer (optional, with leading dash)
DESCRIPTOR_RE = re.compile(r"(.*)\((.*)\)(-(.*))?")
CLASS_NAME_RE = re.compile(r"^(\w{2}\d{3})$")
NUMERIC_RE = re.compile(r"^\d+$")
MISPLACED_RE = re.compile(r"(.+)-")
EXAM_TITLE_RE = re.compile(r"(KL-.*|.*-KL|WP .*|-WP .*)", re.I)
# group letter, subgroup digit; a lone digit is a session number
GROUP_PAIR_RE = re.compile(r"(\w)(\d?)")

#                     special titles                                                 title-lecturer     title [room]
SPECIAL_RE = re.compile(r"(Testat-.*|Refr .*|Info (?:zu )?.*|.*-WP .*|.*KL.*|.*-Tutorium)|(.*)-(\w{2,3})|(.*) ?\[(.*)\]")

REFRESHER = "Refr"
PREPARATORY = "vor1"


@dataclass
class RowContext:
    """State carried across the cells of one row part."""

    cohort: Optional[str] = None
    clazz: Optional[Clazz] = None
    comments: CommentBuffer = field(default_factory=CommentBuffer)
    # Type of the current cell from its background color
    cell_type: Optional[str] = None
    location: str = ""

    @property
    def cohort_class(self) -> Clazz:
        return Clazz.placeholder(self.cohort)

    @property
    def resolving_class(self) -> Clazz:
        return self.clazz or self.cohort_class


class ScheduleElementBuilder:
    def __init__(
        self,
        store: ScheduleStore,
        registry: ClassGroupRegistry,
        lecturers: LecturerDirectory,
        default_duration: Fraction = Fraction(3),
    ):
        self.store = store
        self.registry = registry
        self.lecturers = lecturers
        self.default_duration = default_duration

    def build(
        self,
        text: str,
        kind: Classification,
        ctx: RowContext,
        week_start: Optional[datetime],
    ) -> List[ScheduleElement]:
        """Build and store the elements for one classified fragment."""
        if isinstance(kind, ClassDeclaration):
            ctx.clazz = self.registry.declare_class(ctx.cohort, kind.name, kind.course, kind.cert, kind.group)
            return []
        if isinstance(kind, PrimaryMatch):
            if week_start is None:
                logger.error("No week for %r (%s), skipped.", text, ctx.location)
                return []
            return self.build_timed(kind, ctx, week_start)
        if isinstance(kind, FallbackBracketed):
            logger.debug("Title %r and room %r only. Comment %r", kind.title, kind.room, ctx.comments.text)
            return [
                self.build_full_week(
                    kind.title, ctx, week_start, room=kind.room,
                    note=ctx.comments.text, supersedes=ctx.cell_type,
                )
            ]
        if isinstance(kind, FallbackWarn):
            logger.warning("Fall-through! %r (%s)", kind.text, ctx.location)
            return [self.build_full_week(kind.text, ctx, week_start)]
        raise TypeError(f"Cannot build elements from {kind!r}")

    def build_full_week(
        self,
        title: str,
        ctx: RowContext,
        start: Optional[datetime],
        room: Optional[str] = None,
        note: Optional[str] = None,
        supersedes: Optional[str] = None,
    ) -> ScheduleElement:
        """Full-week element; replaces the one with the same class, title and start.

        ``supersedes`` names the cell type entry of the same cell, which is
        dropped in favor of this more specific one.
        """
        clazz = ctx.resolving_class
        if supersedes and supersedes != title:
            self.store.discard_full_week(clazz, supersedes, start)
        element = ScheduleElement.full_week_entry(title, clazz, room, start, note)
        self.store.insert(element)
        return element

    def build_timed(self, match: PrimaryMatch, ctx: RowContext, week_start: datetime) -> List[ScheduleElement]:
        start = week_start + timedelta(days=match.day_offset)
        if match.hour is not None and match.minute is not None:
            start += timedelta(hours=match.hour, minutes=match.minute)

        m = DESCRIPTOR_RE.match(match.descriptor)
        if not m:
            return [self._build_other(match, ctx, start)]

        title, group, _, abbr = m.groups()
        lecturer = self.lecturers.resolve(abbr)

        group = group.replace("Ref ", REFRESHER + " ")
        if REFRESHER in group:
            group = group.replace(REFRESHER, "").strip()
            title += " " + REFRESHER

        referenced = None
        if CLASS_NAME_RE.match(group):
            logger.debug("Class %s in group", group)
            referenced = self.registry.resolve_by_class_name(ctx.cohort, group)

        if PREPARATORY in group:
            group = group.replace(PREPARATORY, "0")

        wrong = MISPLACED_RE.search(group)
        if wrong:
            logger.warning("Something in group that does not belong there: %r (%s)", wrong.group(1), ctx.location)
            group = group.replace(wrong.group(1) + "-", "")
            title += " " + wrong.group(1)

        if EXAM_TITLE_RE.search(title) or NUMERIC_RE.match(group):
            return self._build_exam(title, group, ctx, start)

        if referenced:
            logger.debug("Using declared class %s", referenced)
            return [self._emit(title, referenced, match.room, start, self.default_duration, lecturer)]

        return self._build_groups(title, group, lecturer, match.room, ctx, start)

    def _build_exam(self, title: str, group: str, ctx: RowContext, start: datetime) -> List[ScheduleElement]:
        """Exams and electives: group is the duration in minutes, programs come from the comment."""
        comments = ctx.comments
        logger.debug("Exam/elective %r %r (%r)", title, group, comments.text)

        room = comments.take_room()
        duration = Fraction(int(group), 60) if NUMERIC_RE.match(group) else None

        if not comments.declared:
            logger.warning("Exam %r without comment, cannot tell the programs (%s).", title, ctx.location)
            return []

        programs = comments.take_programs()
        if not programs:
            logger.warning("No programs in comment %r for exam %r (%s).", comments.text, title, ctx.location)
            return []

        logger.debug("Programs %r, rest of comment %r, room %r", programs, comments.text, room)
        return [
            self._emit(title, ctx.cohort_class.with_course(program), room, start, duration, note=comments.text)
            for program in programs
        ]

    def _build_groups(
        self,
        title: str,
        group: str,
        lecturer: Optional[str],
        room: Optional[str],
        ctx: RowContext,
        start: datetime,
    ) -> List[ScheduleElement]:
        pairs = GROUP_PAIR_RE.findall(group)

        number = None
        for letter, digit in pairs:
            if NUMERIC_RE.match(letter) and not digit:
                number = letter
                break

        elements: List[ScheduleElement] = []
        letters = [(letter, digit) for letter, digit in pairs if not (NUMERIC_RE.match(letter) and not digit)]
        if not letters:
            logger.warning("No group in %r, using %s (%s).", group, ctx.resolving_class, ctx.location)
            return [self._emit(title, ctx.resolving_class, room, start, self.default_duration, lecturer, number)]

        for letter, digit in letters:
            classes = self.registry.resolve_by_group_letter(ctx.cohort, letter)
            if not classes:
                logger.error(
                    "We don't know group %r yet! Please fix the plan manually (%s) and re-convert to HTML.",
                    letter, ctx.location,
                )
                continue
            for clazz in sorted(classes, key=lambda c: c.simple):
                if digit:
                    clazz = self.registry.with_subgroup(clazz, digit)
                elements.append(
                    self._emit(title, clazz, room, start, self.default_duration, lecturer, number)
                )
        return elements

    def _build_other(self, match: PrimaryMatch, ctx: RowContext, start: datetime) -> ScheduleElement:
        """Descriptor without groups: known special titles, title-lecturer, title [room]."""
        descriptor = match.descriptor
        m = SPECIAL_RE.search(descriptor)
        if m:
            special, title, abbr, bracket_title, room = m.groups()
            element = self._emit(
                (special or title or bracket_title or descriptor).strip(),
                ctx.resolving_class,
                room or match.room,
                start,
                lecturer=self.lecturers.resolve(abbr),
            )
            logger.info("%r as %s.", descriptor, element)
        else:
            element = self._emit(descriptor, ctx.resolving_class, match.room, start)
            logger.warning("%r without groups, taken as title (%s).", descriptor, ctx.location)
        return element

    def _emit(
        self,
        title: str,
        clazz: Clazz,
        room: Optional[str],
        start: datetime,
        duration: Optional[Fraction] = None,
        lecturer: Optional[str] = None,
        number: Optional[str] = None,
        note: Optional[str] = None,
    ) -> ScheduleElement:
        element = ScheduleElement(
            title=title,
            clazz=clazz,
            room=room,
            start=start,
            duration=duration,
            lecturer=lecturer,
            number=number,
            note=note,
        )
        logger.debug("Element %s", element)
        self.store.insert(element)
        return element
