"""
Read a Studienplan HTML export (a spreadsheet saved as HTML) into a grid.

The real HTML structure:
- One big <table>; the spreadsheet is "wrapped" into several parallel
  sections. Each section starts with a row whose second cell is a year/week
  label like "2016/KW 10", followed by a date row ("Gruppe", "07.03-12.03", ...)
  and the plan rows.
- The first column of a plan row holds either a class declaration
  ("FS151+BSc (FST) d") or a cohort label ("ABB2015") whose background color
  identifies the cohort of the whole section.
- A row whose second cell is "Abkürzung" ends the plan; the remaining rows
  form the legend, which is read column by column.

Resulting structure: rows -> parts (one per section) -> cells, where
``rows[0]`` and ``rows[1]`` of every part are the week and date headers.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag  # type: ignore[import]

logger = logging.getLogger(__name__)

PLAN_END_MARKER = "Abkürzung"
GROUP_COLUMN_MARKER = "Gruppe"

WEEK_LABEL_RE = re.compile(r"\d{4}/KW \d{1,2}")
COHORT_LABEL_RE = re.compile(r"^(\w{3}\d{4})$")


@dataclass
class Cell:
    """One <td>: its text nodes and its background color."""

    fragments: List[str] = field(default_factory=list)
    color: Optional[str] = None

    @property
    def text(self) -> str:
        return " ".join(self.fragments)


@dataclass
class Grid:
    rows: List[List[List[Cell]]] = field(default_factory=list)
    legend: List[List[Cell]] = field(default_factory=list)
    # part index -> background color -> cohort code
    cohort_colors: Dict[int, Dict[str, str]] = field(default_factory=dict)

    @property
    def part_count(self) -> int:
        return max((len(row) for row in self.rows), default=0)

    def header(self, row: int, part: int, column: int) -> Optional[str]:
        """Text of a header cell (row 0: week label, row 1: date label)."""
        try:
            return self.rows[row][part][column].text
        except IndexError:
            return None

    def legend_cell(self, column: int, row: int) -> Optional[Cell]:
        try:
            return self.legend[column][row]
        except IndexError:
            return None


def _cell_from_td(td: Tag) -> Cell:
    color = td.get("bgcolor")
    return Cell(
        fragments=list(td.stripped_strings),
        color=color.strip().lower() if color else None,
    )


def parse_grid(soup: BeautifulSoup) -> Grid:
    """Walk all <tr> of the document and sort them into plan and legend."""
    grid = Grid()
    row_index = 0
    part = -1
    plan_end = False

    for tr in soup.find_all("tr"):
        cells = [_cell_from_td(td) for td in tr.find_all("td", recursive=False)]

        if len(cells) > 1:
            second = cells[1].text
            if second == PLAN_END_MARKER:
                logger.debug("Plan end.")
                plan_end = True
            elif WEEK_LABEL_RE.search(second):
                row_index = 0
                part += 1

        if cells and part >= 0:
            m = COHORT_LABEL_RE.match(cells[0].text)
            if m and cells[0].color:
                logger.debug("Cohort %r (part %d)", m.group(1), part)
                grid.cohort_colors.setdefault(part, {})[cells[0].color] = m.group(1)

        if plan_end:
            # Legend is column-oriented
            for index, cell in enumerate(cells):
                while index >= len(grid.legend):
                    grid.legend.append([])
                grid.legend[index].append(cell)
        elif part < 0:
            logger.debug("Skipping row before first week header: %r", [c.text for c in cells])
            continue
        else:
            while row_index >= len(grid.rows):
                grid.rows.append([])
            row = grid.rows[row_index]
            # Keep part indices aligned even if an earlier section was shorter
            while len(row) < part:
                row.append([])
            row.append(cells)

        row_index += 1

    logger.info("Read grid: %d part(s), max %d row(s).", part + 1, len(grid.rows))
    return grid


def parse_grid_html(
    html_path: str | Path | None = None,
    html_content: str | None = None,
) -> Grid:
    """Parse a saved Studienplan HTML file (or its content) into a Grid."""
    if html_path:
        html = Path(html_path).read_text(encoding="utf-8", errors="ignore")
    elif html_content is not None:
        html = html_content
    else:
        raise ValueError("Provide either html_path or html_content.")

    soup = BeautifulSoup(html, "html.parser")
    if not soup.find("tr"):
        raise ValueError("Could not find any table rows in HTML. Please check the file.")
    return parse_grid(soup)
