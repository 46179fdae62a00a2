"""
Export a ScheduleStore to iCalendar files and JSON.
"""
from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timedelta, timezone
from fractions import Fraction
from pathlib import Path

import icalendar
import pytz

from .config import DEFAULT_TIMEZONE
from .models import Clazz, ScheduleElement
from .store import ScheduleStore

logger = logging.getLogger(__name__)

DATA_VERSION = "1.01"
PRODID = "-//studienplan-export//DE"


def _summary(element: ScheduleElement) -> str:
    summary = element.title
    if element.number:
        summary = f"{summary} {element.number}"
    if element.clazz.subgroup:
        summary = f"{summary} [{element.clazz.subgroup}]"
    return summary


def _description(element: ScheduleElement) -> str:
    lines = []
    if element.lecturer:
        lines.append(f"Lecturer: {element.lecturer}")
    lines.append(f"Class: {element.clazz.simple}")
    if element.note:
        lines.append(element.note)
    return "\n".join(lines)


def build_event(
    element: ScheduleElement,
    tz_name: str = DEFAULT_TIMEZONE,
    default_duration: Fraction = Fraction(3),
) -> icalendar.Event | None:
    """Calendar event for one element; ``None`` if it has no date."""
    if element.start is None:
        return None

    event = icalendar.Event()

    # Deterministic UID, stable across re-conversions of the same plan
    uid_string = "|".join(
        str(part) for part in (
            element.clazz.file_name, element.clazz.subgroup, element.title,
            element.start.isoformat(), element.number,
        )
    )
    uid_hash = hashlib.md5(uid_string.encode("utf-8")).hexdigest()
    event.add("uid", f"{uid_hash}@studienplan-export")

    event.add("summary", _summary(element))
    event.add("description", _description(element))
    if element.room:
        event.add("location", element.room)

    if element.full_week:
        # All-day event over the whole week
        event.add("dtstart", element.start.date())
        event.add("dtend", element.start.date() + timedelta(days=7))
    else:
        tz = pytz.timezone(tz_name)
        event.add("dtstart", tz.localize(element.start))
        event.add("dtend", tz.localize(element.end(default_duration)))
    event.add("dtstamp", datetime.now(timezone.utc))
    return event


def build_calendar(
    store: ScheduleStore,
    clazz: Clazz,
    unified: bool = True,
    tz_name: str = DEFAULT_TIMEZONE,
    default_duration: Fraction = Fraction(3),
) -> icalendar.Calendar:
    """Calendar of one class; ``unified`` adds the events of all its parents."""
    cal = icalendar.Calendar()
    cal.add("prodid", PRODID)
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("x-wr-calname", clazz.simple)
    cal.add("x-wr-timezone", tz_name)

    for element in store.elements_for(clazz, include_ancestors=unified):
        event = build_event(element, tz_name, default_duration)
        if event is None:
            logger.debug("No date for %s, not in calendar.", element)
            continue
        cal.add_component(event)
    return cal


def export_ics(
    store: ScheduleStore,
    out_dir: str | Path,
    unified: bool = True,
    tz_name: str = DEFAULT_TIMEZONE,
    default_duration: Fraction = Fraction(3),
) -> list[Path]:
    """Write one calendar file per class into ``out_dir``."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    suffix = ".unified.ics" if unified else ".ics"

    written = []
    for clazz in store.all_classes():
        path = out_dir / f"{clazz.file_name}{suffix}"
        cal = build_calendar(store, clazz, unified, tz_name, default_duration)
        logger.debug("Writing calendar file %s", path)
        path.write_bytes(cal.to_ical())
        written.append(path)

    logger.info("Wrote %d calendar file(s) to %s", len(written), out_dir)
    return written


def _envelope(data: dict, **extra) -> dict:
    return {
        "json_data_version": DATA_VERSION,
        "generated": datetime.now(timezone.utc).isoformat(),
        **extra,
        "data": data,
    }


def export_json(store: ScheduleStore, out_path: str | Path, pretty: bool = False) -> None:
    """Dump all elements, grouped by class file name."""
    data: dict[str, list] = {}
    for clazz in store.all_classes():
        data[clazz.file_name] = [e.to_dict() for e in store.elements_for(clazz)]

    Path(out_path).write_text(
        json.dumps(_envelope(data), indent=2 if pretty else None, ensure_ascii=False),
        encoding="utf-8",
    )
    logger.info("Wrote JSON data file %s", out_path)


def export_classes(
    store: ScheduleStore,
    out_path: str | Path,
    pretty: bool = False,
    ical_dir: str | None = None,
    unified: bool = True,
) -> None:
    """Dump the class hierarchy: every named class with its parents in the store."""
    data = {
        clazz.file_name: {
            "name": clazz.full_name,
            "class": clazz.to_dict(),
            "parents": [parent.file_name for parent in parents],
        }
        for clazz, parents in store.hierarchy().items()
    }
    Path(out_path).write_text(
        json.dumps(
            _envelope(data, ical_dir=ical_dir, unified=unified),
            indent=2 if pretty else None,
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )
    logger.info("Wrote JSON classes file %s", out_path)
