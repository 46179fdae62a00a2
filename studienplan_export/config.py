"""
Runtime settings: timezone, default event duration, legend layout, output.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Tuple

import pytz

DEFAULT_TIMEZONE = "Europe/Berlin"


class OutputOptionError(ValueError):
    """Calendar directory name given while the output is not a directory."""


@dataclass
class Settings:
    timezone: str = DEFAULT_TIMEZONE
    # Hours, used for timed entries without an explicit duration
    default_duration: Fraction = Fraction(3)
    # Legend columns: lecturer abbreviation and full name
    lecturer_columns: Tuple[int, int] = (4, 5)
    # Legend columns: cell color and cell type label, for rows 12..14
    cell_type_columns: Tuple[int, int] = (7, 8)
    cell_type_rows: Tuple[int, ...] = field(default_factory=lambda: (12, 13, 14))
    ical_dir: str = "ical"
    data_file: str = "data.json"
    classes_file: str = "classes.json"
    unified: bool = True
    json_pretty: bool = False

    @property
    def tzinfo(self):
        return get_timezone(self.timezone)

    @classmethod
    def from_args(cls, args) -> "Settings":
        """Build settings from parsed command-line arguments.

        ``-o NAME/`` puts every output into that directory, ``-o NAME`` names
        the calendar directory and prefixes the JSON files.
        """
        settings = cls(
            timezone=getattr(args, "timezone", None) or DEFAULT_TIMEZONE,
            unified=not getattr(args, "disable_unified", False),
            json_pretty=bool(getattr(args, "json_pretty", False)),
        )
        if getattr(args, "default_duration", None):
            settings.default_duration = Fraction(args.default_duration)
            if settings.default_duration < 0:
                raise ValueError(f"Default duration must not be negative: {args.default_duration}")
        if getattr(args, "calendar_dir", None):
            settings.ical_dir = args.calendar_dir

        output = getattr(args, "output", None)
        if output:
            if output.endswith("/"):
                settings.ical_dir = output + settings.ical_dir
                settings.data_file = output + settings.data_file
                settings.classes_file = output + settings.classes_file
            else:
                if getattr(args, "calendar_dir", None):
                    raise OutputOptionError("Specified calendar dir name but output is not a directory")
                settings.ical_dir = output
                settings.data_file = output + ".data.json"
                settings.classes_file = output + ".classes.json"
        return settings


def get_timezone(tz_name: str):
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        logging.getLogger(__name__).warning(
            "Invalid timezone %s, falling back to %s", tz_name, DEFAULT_TIMEZONE
        )
        return pytz.timezone(DEFAULT_TIMEZONE)
