"""
Main pass: walk the grid and fill a ScheduleStore.

Rows 0 and 1 of every part are headers ("2016/KW 10" and "07.03-12.03", or
"Gruppe" above the class column); every following row part is processed
left to right with its own class context and pending comment.
"""
from __future__ import annotations

import logging
import re
from datetime import date, datetime, time
from pathlib import Path
from typing import Optional

from .builder import RowContext, ScheduleElementBuilder
from .cell_text import CellTextParser
from .config import Settings
from .grid_html import GROUP_COLUMN_MARKER, Grid, parse_grid_html
from .groups import ClassGroupRegistry
from .legend import ColorKeyResolver, LecturerDirectory
from .store import ScheduleStore

logger = logging.getLogger(__name__)

WEEK_LABEL_RE = re.compile(r"(\d{4})/KW ?(\d{1,2})")
DATE_RANGE_RE = re.compile(r"(\d{1,2})\.(\d{1,2})\.?\s*-\s*(\d{1,2})\.(\d{1,2})")

HEADER_ROWS = 2


class DateCompositionError(ValueError):
    """Week label and date label do not describe a valid calendar week."""


def _iso_monday(year: int, week: int) -> Optional[date]:
    try:
        return date.fromisocalendar(year, week, 1)
    except ValueError:
        return None


def week_start(week_label: Optional[str], date_label: Optional[str] = None) -> datetime:
    """Monday 00:00 of the week given by "YYYY/KW W".

    If the date label ("DD.MM-DD.MM") is given, its first day must be that
    Monday. Around new year the label year may be the calendar year rather
    than the ISO year, so the neighbouring ISO years are tried as well.
    """
    m = WEEK_LABEL_RE.search(week_label or "")
    if not m:
        raise DateCompositionError(f"Invalid week label {week_label!r}")
    year, week = int(m.group(1)), int(m.group(2))

    if not date_label:
        monday = _iso_monday(year, week)
        if monday is None:
            raise DateCompositionError(f"No calendar week {week} in {year}")
        return datetime.combine(monday, time())

    d = DATE_RANGE_RE.search(date_label)
    if not d:
        raise DateCompositionError(f"Invalid date label {date_label!r}")
    day, month = int(d.group(1)), int(d.group(2))

    for candidate in (year, year - 1, year + 1):
        monday = _iso_monday(candidate, week)
        if monday is not None and (monday.day, monday.month) == (day, month):
            return datetime.combine(monday, time())

    raise DateCompositionError(
        f"{date_label!r} does not start on the Monday of {week_label!r}"
    )


def extract_schedule(grid: Grid, settings: Settings | None = None) -> ScheduleStore:
    """Convert a grid into a ScheduleStore.

    Raises LegendError if the legend lacks the cell type or lecturer keys;
    every other data problem is logged and the pass goes on.
    """
    settings = settings or Settings()

    resolver = ColorKeyResolver.from_grid(grid, settings.cell_type_columns, settings.cell_type_rows)
    lecturers = LecturerDirectory.from_grid(grid, settings.lecturer_columns)

    registry = ClassGroupRegistry()
    store = ScheduleStore()
    builder = ScheduleElementBuilder(store, registry, lecturers, settings.default_duration)
    parser = CellTextParser()

    for i, row in enumerate(grid.rows):
        if i < HEADER_ROWS:
            continue
        for j, part in enumerate(row):
            if not part:
                continue

            cohort = resolver.cohort_for(j, part[0].color)
            if cohort is None and part[0].color:
                logger.warning(
                    "Unknown cohort color %r in row %d, part %d; using cohort-less class.",
                    part[0].color, i, j,
                )
            ctx = RowContext(cohort=cohort)

            for k, cell in enumerate(part):
                if not cell.fragments and not cell.color:
                    continue
                logger.debug("row %d, part %d, element %d", i, j, k)
                ctx.location = f"row {i}/part {j}/col {k}"

                date_label = grid.header(1, j, k)
                schedule_column = date_label != GROUP_COLUMN_MARKER

                start = None
                if schedule_column:
                    try:
                        start = week_start(grid.header(0, j, k), date_label)
                    except DateCompositionError as exc:
                        logger.error("Skipping cell at %s: %s", ctx.location, exc)
                        continue

                ctx.cell_type = resolver.cell_type_for(cell.color) if schedule_column else None
                if ctx.cell_type:
                    logger.debug("Type: %r", ctx.cell_type)
                    builder.build_full_week(ctx.cell_type, ctx, start)

                for text, kind in parser.iter_fragments(cell.fragments, ctx.comments, schedule_column):
                    builder.build(text, kind, ctx, start)

    logger.debug("Groups %r", registry.to_dict())
    logger.info("Finished: %d element(s) for %d class(es).", len(store), len(store.all_classes()))
    return store


def extract_from_html(
    html_path: str | Path | None = None,
    html_content: str | None = None,
    settings: Settings | None = None,
) -> ScheduleStore:
    grid = parse_grid_html(html_path=html_path, html_content=html_content)
    return extract_schedule(grid, settings)
