"""
Command-line interface: convert a Studienplan HTML export to iCalendar / JSON.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .config import OutputOptionError, Settings
from .export import export_classes, export_ics, export_json
from .extract import extract_from_html
from .legend import LegendError

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="studienplan-export",
        description=(
            "Convert an HTML-exported XLS Studienplan to iCalendar / JSON.\n"
            "FILE is the spreadsheet saved as HTML."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("file", metavar="FILE", nargs="?", help="HTML export of the Studienplan.")
    parser.add_argument(
        "-c",
        "--calendar",
        action="store_true",
        help='Generate iCalendar files to the "ical" directory (change with --calendar-dir).',
    )
    parser.add_argument("-j", "--json", action="store_true", help="Generate JSON data file (data.json).")
    parser.add_argument(
        "-d",
        "--classes",
        action="store_true",
        help="Generate JSON classes structure (classes.json).",
    )
    parser.add_argument(
        "-o",
        "--output",
        metavar="NAME",
        help="Output target. Ending with a slash: output directory. "
        "Otherwise: name of the calendar directory and prefix for the JSON files.",
    )
    parser.add_argument("-p", "--json-pretty", action="store_true", help="Write pretty JSON.")
    parser.add_argument(
        "-n",
        "--calendar-dir",
        metavar="NAME",
        help="Name of the directory containing the calendar files. Requires -o to be a directory.",
    )
    parser.add_argument(
        "-u",
        "--disable-unified",
        action="store_true",
        help="Do not include the events of parent classes (cohort) in each calendar.",
    )
    parser.add_argument("--timezone", help="Timezone of the plan. Default: Europe/Berlin")
    parser.add_argument(
        "--default-duration",
        metavar="HOURS",
        help="Duration of events without explicit duration, in hours. Default: 3",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    try:
        settings = Settings.from_args(args)
    except OutputOptionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 5
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not args.file:
        logger.info("No input file, won't parse anything.")
        return 0
    if not (args.json or args.calendar or args.classes):
        logger.info("Not parsing anything, no switch given that would require that.")
        return 0
    if not Path(args.file).exists():
        print(f"Error: file not found: {args.file}", file=sys.stderr)
        return 1

    if args.output and args.output.endswith("/"):
        Path(args.output).mkdir(parents=True, exist_ok=True)

    try:
        store = extract_from_html(html_path=args.file, settings=settings)
    except LegendError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error parsing Studienplan HTML: {e}", file=sys.stderr)
        return 1

    if args.json:
        export_json(store, settings.data_file, pretty=settings.json_pretty)
    if args.calendar:
        export_ics(
            store,
            settings.ical_dir,
            unified=settings.unified,
            tz_name=settings.tzinfo.zone,
            default_duration=settings.default_duration,
        )
    if args.classes:
        export_classes(
            store,
            settings.classes_file,
            pretty=settings.json_pretty,
            ical_dir=args.calendar_dir,
            unified=settings.unified,
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
