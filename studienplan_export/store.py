"""
Schedule elements keyed by class.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Iterator, List, Optional

from .models import Clazz, ScheduleElement

logger = logging.getLogger(__name__)


class ScheduleStore:
    def __init__(self):
        self._data: Dict[Clazz, List[ScheduleElement]] = {}

    def insert(self, element: ScheduleElement) -> None:
        """Add an element.

        A full-week element replaces an earlier full-week element with the same
        class, title and start.
        """
        # Subgroup copies share the list of their class; key without the marker
        elements = self._data.setdefault(element.clazz.with_subgroup(None), [])
        if element.full_week:
            before = len(elements)
            elements[:] = [e for e in elements if not (e.full_week and e.key == element.key)]
            if len(elements) != before:
                logger.debug("Replacing full-week %r of %s", element.title, element.clazz)
        elements.append(element)

    def discard_full_week(self, clazz: Clazz, title: str, start: Optional[datetime]) -> None:
        elements = self._data.get(clazz)
        if elements:
            elements[:] = [
                e for e in elements
                if not (e.full_week and e.title == title and e.start == start)
            ]

    def elements_for(self, clazz: Clazz, include_ancestors: bool = False) -> List[ScheduleElement]:
        result = list(self._data.get(clazz, ()))
        if include_ancestors:
            parent = clazz.parent
            while parent is not None:
                result.extend(self._data.get(parent, ()))
                parent = parent.parent
        return result

    def all_classes(self) -> List[Clazz]:
        return list(self._data)

    def hierarchy(self) -> Dict[Clazz, List[Clazz]]:
        """Ancestors present in the store, for every class with a full name."""
        result: Dict[Clazz, List[Clazz]] = {}
        for clazz in self._data:
            if not clazz.full_name:
                continue
            ancestors = []
            parent = clazz.parent
            while parent is not None:
                if parent in self._data:
                    ancestors.append(parent)
                parent = parent.parent
            result[clazz] = ancestors
        return result

    def __iter__(self) -> Iterator[ScheduleElement]:
        for elements in self._data.values():
            yield from elements

    def __len__(self) -> int:
        return sum(len(elements) for elements in self._data.values())
