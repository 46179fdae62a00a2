"""
Registry of the classes declared in the plan, grouped by cohort and group letter.

Example state::

    {"ABB2015": {"c": {FS151+BSc (FST), FS152+BA (FIS)}, "d": {FS153+BSc (FST)}}}
"""
from __future__ import annotations

import logging
from typing import Dict, Optional, Set

from .models import Clazz

logger = logging.getLogger(__name__)


class ClassGroupRegistry:
    def __init__(self):
        self._groups: Dict[Optional[str], Dict[str, Set[Clazz]]] = {}

    def declare_class(
        self,
        cohort: Optional[str],
        name: str,
        course: str,
        cert: str,
        group: str,
    ) -> Clazz:
        """Register a class under its group letter and return it."""
        clazz = Clazz(name=name, course=course, cert=cert, cohort=cohort)
        self._groups.setdefault(cohort, {}).setdefault(group, set()).add(clazz)
        logger.debug("Class %s in group %r", clazz, group)
        return clazz

    def resolve_by_group_letter(self, cohort: Optional[str], letter: str) -> Set[Clazz]:
        # A copy, so callers cannot change group membership
        return set(self._groups.get(cohort, {}).get(letter, ()))

    def resolve_by_class_name(self, cohort: Optional[str], name: str) -> Optional[Clazz]:
        for classes in self._groups.get(cohort, {}).values():
            for clazz in classes:
                if clazz.name == name:
                    return clazz
        return None

    @staticmethod
    def with_subgroup(clazz: Clazz, subgroup: str) -> Clazz:
        return clazz.with_subgroup(subgroup)

    def to_dict(self) -> Dict[str, Dict[str, list]]:
        return {
            str(cohort): {
                letter: sorted(c.simple for c in classes)
                for letter, classes in sorted(groups.items())
            }
            for cohort, groups in self._groups.items()
        }
