"""
Value types shared by the extraction pass and the exporters.

- Clazz: one class (name/course/certification/cohort), immutable so it can be
  used as dict key and set element. Subgroup copies are made with
  ``with_subgroup`` and never change the instance they were made from.
- ScheduleElement: one normalized schedule entry.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from fractions import Fraction
from typing import Dict, Optional


@dataclass(frozen=True)
class Clazz:
    """A class of a cohort, e.g. ``FS151+BSc (FST)`` of cohort ``ABB2015``.

    A class without name, course and certification is the cohort placeholder;
    it is the parent of every specific class of that cohort.
    """

    name: Optional[str] = None
    course: Optional[str] = None
    cert: Optional[str] = None
    cohort: Optional[str] = None
    # Not part of the identity: "c2" events are stored with class "c"
    subgroup: Optional[str] = field(default=None, compare=False)

    @classmethod
    def placeholder(cls, cohort: Optional[str]) -> "Clazz":
        return cls(cohort=cohort)

    @property
    def is_placeholder(self) -> bool:
        return not (self.name or self.course or self.cert)

    @property
    def parent(self) -> Optional["Clazz"]:
        if self.is_placeholder:
            return None
        return Clazz.placeholder(self.cohort)

    def with_subgroup(self, subgroup: Optional[str]) -> "Clazz":
        return replace(self, subgroup=subgroup)

    def with_course(self, course: str) -> "Clazz":
        return replace(self, course=course)

    @property
    def full_name(self) -> Optional[str]:
        """Human readable name, ``None`` for cohort placeholders."""
        if self.is_placeholder:
            return None
        head = self.name or ""
        if self.course:
            head = f"{head}+{self.course}" if head else self.course
        if self.cert:
            head = f"{head} ({self.cert})"
        if self.cohort:
            head = f"{self.cohort} {head}"
        return head

    @property
    def simple(self) -> str:
        text = self.full_name or (self.cohort or "?")
        if self.subgroup:
            text += f" [{self.subgroup}]"
        return text

    @property
    def file_name(self) -> str:
        """Name usable as calendar file stem."""
        parts = [p for p in (self.cohort, self.name, self.course, self.cert) if p]
        return "-".join(parts) if parts else "unknown"

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "name": self.name,
            "course": self.course,
            "cert": self.cert,
            "cohort": self.cohort,
            "subgroup": self.subgroup,
        }

    def __str__(self) -> str:
        return self.simple


@dataclass
class ScheduleElement:
    """One schedule entry.

    ``start`` is the begin of a timed entry. For full-week entries it is the
    Monday of the week (or ``None`` when no week is known) and ``duration`` is
    meaningless. ``duration`` is in hours; ``None`` means the default applies.
    """

    title: str
    clazz: Clazz
    room: Optional[str] = None
    start: Optional[datetime] = None
    duration: Optional[Fraction] = None
    lecturer: Optional[str] = None
    number: Optional[str] = None
    note: Optional[str] = None
    full_week: bool = False

    @classmethod
    def full_week_entry(
        cls,
        title: str,
        clazz: Clazz,
        room: Optional[str] = None,
        start: Optional[datetime] = None,
        note: Optional[str] = None,
    ) -> "ScheduleElement":
        return cls(title=title, clazz=clazz, room=room, start=start, note=note, full_week=True)

    @property
    def key(self) -> tuple:
        return (self.clazz, self.title, self.start)

    def end(self, default_duration: Fraction) -> Optional[datetime]:
        if self.start is None:
            return None
        if self.full_week:
            return self.start + timedelta(days=7)
        hours = self.duration if self.duration is not None else default_duration
        return self.start + timedelta(minutes=float(hours * 60))

    def to_dict(self) -> Dict[str, object]:
        return {
            "title": self.title,
            "class": self.clazz.to_dict(),
            "room": self.room,
            "start": self.start.isoformat() if self.start else None,
            "duration": str(self.duration) if self.duration is not None else None,
            "lecturer": self.lecturer,
            "number": self.number,
            "note": self.note,
            "full_week": self.full_week,
        }

    def __str__(self) -> str:
        when = self.start.strftime("%Y-%m-%d %H:%M") if self.start else "-"
        if self.full_week:
            when = f"week of {self.start:%Y-%m-%d}" if self.start else "full week"
        extra = ", ".join(
            f"{k}={v}" for k, v in (("room", self.room), ("lect", self.lecturer), ("nr", self.number)) if v
        )
        return f"{self.title} <{self.clazz.simple}> {when}" + (f" ({extra})" if extra else "")
