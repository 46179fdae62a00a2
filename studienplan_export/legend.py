"""
Lookups built from the legend region before the main pass.

- ColorKeyResolver: cell background color -> cohort code (per section) and
  -> cell type label (SPE, ATIW, practical placement, ...).
- LecturerDirectory: lecturer abbreviation -> full name.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from .grid_html import Grid

logger = logging.getLogger(__name__)

LECTURER_HEADER = "Dozentenkürzel"


class LegendError(ValueError):
    """A required legend cell is missing; the plan cannot be converted."""


class ColorKeyResolver:
    def __init__(
        self,
        cohort_colors: Dict[int, Dict[str, str]] | None = None,
        cell_types: Dict[str, str] | None = None,
    ):
        self._cohort_colors = cohort_colors or {}
        self._cell_types = cell_types or {}

    def cohort_for(self, wrap: int, color: str | None) -> Optional[str]:
        if not color:
            return None
        return self._cohort_colors.get(wrap, {}).get(color.lower())

    def cell_type_for(self, color: str | None) -> Optional[str]:
        if not color:
            return None
        return self._cell_types.get(color.lower())

    @classmethod
    def from_grid(cls, grid: Grid, columns: tuple[int, int], rows: Iterable[int]) -> "ColorKeyResolver":
        color_col, label_col = columns
        cell_types: Dict[str, str] = {}
        for n in rows:
            color_cell = grid.legend_cell(color_col, n)
            label_cell = grid.legend_cell(label_col, n)
            if color_cell is None or label_cell is None or not color_cell.color:
                raise LegendError(
                    f"Missing cell type key in legend (columns {color_col}/{label_col}, row {n})."
                )
            cell_types[color_cell.color] = label_cell.text
        logger.debug("Cell type colors %r", cell_types)
        logger.debug("Cohort colors %r", grid.cohort_colors)
        return cls(grid.cohort_colors, cell_types)


class LecturerDirectory:
    def __init__(self, lecturers: Dict[str, str] | None = None):
        self._lecturers = dict(lecturers or {})

    def resolve(self, abbr_or_name: str | None) -> Optional[str]:
        """Full name for an abbreviation, the input itself if unknown."""
        if abbr_or_name is None:
            return None
        return self._lecturers.get(abbr_or_name, abbr_or_name)

    def __len__(self) -> int:
        return len(self._lecturers)

    @classmethod
    def from_grid(cls, grid: Grid, columns: tuple[int, int]) -> "LecturerDirectory":
        abbr_col, name_col = columns
        if abbr_col >= len(grid.legend) or name_col >= len(grid.legend):
            raise LegendError(f"Missing lecturer columns {abbr_col}/{name_col} in legend.")

        lecturers: Dict[str, str] = {}
        for index, cell in enumerate(grid.legend[abbr_col]):
            if not cell.text or cell.text == LECTURER_HEADER:
                continue
            name_cell = grid.legend_cell(name_col, index)
            if name_cell is None:
                continue
            lecturers[cell.text] = name_cell.text
        logger.debug("Lecturers %r", lecturers)
        return cls(lecturers)
