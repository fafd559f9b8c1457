"""
Command-line interface: find enrolled courses, look up their schedules and
export a calendar file.
"""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Dict, List

from . import __version__
from .cache import TTLCache
from .catalog import CatalogClient
from .export import default_filename, export
from .model import BreakRange
from .portal_html import parse_portal_html
from .schedule import ScheduleInputError, expand_occurrences, generate_schedule
from .semester import current_term, is_valid_term, resolve_semester_window


def _parse_course_list(text: str, term: str) -> List[Dict[str, str]]:
    """'COMP 248:AA, SOEN 287' -> [{code, section, term}, ...]"""
    infos = []
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        code, _, section = item.partition(":")
        infos.append({"code": code.strip(), "section": section.strip(), "term": term})
    return infos


def _parse_break(text: str) -> BreakRange:
    start, sep, end = text.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"Break must be START:END (YYYY-MM-DD:YYYY-MM-DD), got {text!r}")
    try:
        return BreakRange(date.fromisoformat(start.strip()), date.fromisoformat(end.strip()))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid break {text!r}: {e}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="concordia-schedule-export",
        description=(
            "Export enrolled Concordia courses to a calendar file (Google Calendar CSV / ICS / JSON).\n"
            "Courses come from a saved portal page, from the portal through a browser, or from --courses."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-o",
        "--output",
        help="Output path. Default: concordia-schedule-<year>.<format>",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["csv", "ics", "json"],
        default="csv",
        help="Export format. Default: csv",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--html",
        metavar="HTML_PATH",
        help="Saved student portal page listing your enrolled classes.",
    )
    source.add_argument(
        "--fetch-portal",
        action="store_true",
        help="Open Chrome on the student portal; you log in, open your class list, then press Enter.",
    )
    source.add_argument(
        "--courses",
        metavar="LIST",
        help="Comma-separated courses with optional section, e.g. 'COMP 248:AA,SOEN 287'.",
    )
    parser.add_argument(
        "--term",
        help="Term code YYYY + 1 (Fall) / 2 (Winter) / 4 (Summer), e.g. 20251. Default: current term.",
    )
    parser.add_argument("--term-start", metavar="YYYY-MM-DD", help="First day of classes (overrides --term dates).")
    parser.add_argument("--term-end", metavar="YYYY-MM-DD", help="Last day of classes (overrides --term dates).")
    parser.add_argument(
        "--break",
        dest="breaks",
        metavar="START:END",
        action="append",
        type=_parse_break,
        help="Break range with no classes, e.g. 2025-10-14:2025-10-18. Repeatable. Replaces the default breaks.",
    )
    parser.add_argument(
        "--no-default-breaks",
        action="store_true",
        help="Do not skip the built-in reading weeks / holidays.",
    )
    parser.add_argument("--workers", type=int, default=4, help="Parallel course lookups. Default: 4")
    parser.add_argument("--api-key", help="Open-data API key (default: $CONCORDIA_API_KEY).")
    parser.add_argument("--api-base-url", help="Open-data API base URL (default: $CONCORDIA_API_BASE_URL).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def _semester_info(args) -> dict:
    info: dict = {"term": args.term}
    if args.term_start and args.term_end:
        info["startDate"] = args.term_start
        info["endDate"] = args.term_end
    if args.breaks:
        info["breaks"] = list(args.breaks)
    elif args.no_default_breaks:
        info["breaks"] = []
    return info


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    term = args.term or current_term()
    if not is_valid_term(term):
        print(f"Error: invalid term code {term!r}; expected YYYY followed by 1, 2 or 4.", file=sys.stderr)
        return 1
    args.term = term
    if bool(args.term_start) != bool(args.term_end):
        print("Error: --term-start and --term-end must be given together.", file=sys.stderr)
        return 1

    # Collect the courses to look up
    if args.courses:
        course_infos = _parse_course_list(args.courses, term)
    elif args.html or args.fetch_portal:
        try:
            if args.fetch_portal:
                from .portal_fetch import fetch_portal_html

                print("Opening the student portal...")
                course_infos = parse_portal_html(html_content=fetch_portal_html(), term=term)
            else:
                course_infos = parse_portal_html(html_path=args.html, term=term)
        except Exception as e:
            print(f"Error reading portal page: {e}", file=sys.stderr)
            return 1
    else:
        print(
            "No course source specified. Use --html for a saved portal page, "
            "--fetch-portal to open the portal in a browser, or --courses.",
            file=sys.stderr,
        )
        return 1

    if not course_infos:
        print("Error: no enrolled courses found (expected lines like 'COMP 248 ... LEC (51)').", file=sys.stderr)
        return 1
    print(f"Found {len(course_infos)} course(s): " + ", ".join(c["code"] for c in course_infos))

    client = CatalogClient(api_key=args.api_key, base_url=args.api_base_url, cache=TTLCache())
    try:
        result = generate_schedule(course_infos, client, term=term, max_workers=args.workers)
    except ScheduleInputError as e:
        print(f"Error fetching schedules: {e}", file=sys.stderr)
        return 1

    for code, reason in result.failures:
        print(f"Skipped {code}: {reason}", file=sys.stderr)
    if not result.events:
        print("Error: no schedule data found for any course.", file=sys.stderr)
        return 1

    try:
        window = resolve_semester_window(_semester_info(args))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    events = result.events if args.format == "json" else expand_occurrences(result.events, window)
    out_path = Path(args.output) if args.output else Path(default_filename(window.start_date.year, args.format))
    export(events, out_path, args.format)
    print(f"Exported {len(events)} event(s) to {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
