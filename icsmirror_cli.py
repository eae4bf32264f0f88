#!/usr/bin/env python3
"""
icsmirror - keep a local mirror of iCalendar feeds and query it.

This is the command-line entry point.
"""

import argparse
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from icsmirror import __version__
from icsmirror.calendar_manager import CalendarManager
from icsmirror.formatting import (
    format_event,
    format_event_json,
    format_event_time,
    format_events_json,
    format_sources_json,
)
from icsmirror.models import CalendarError, SyncResult
from icsmirror.timezone_utils import get_local_timezone


logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30
END_OF_DAY = timedelta(microseconds=1)

console = Console()
err_console = Console(stderr=True)


def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False, console=err_console)],
        force=True,
    )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="icsmirror",
        description="Mirror iCalendar feeds locally and query their events"
    )
    parser.add_argument(
        "-c", "--config-dir",
        type=Path,
        help="Configuration directory (default: $ICSMIRROR_DIR or ~/.config/icsmirror)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    commands = parser.add_subparsers(dest="command", required=True, metavar="command")

    add = commands.add_parser("add", help="add a calendar source by iCal URL")
    add.add_argument("name", nargs="?", help="short name for this calendar")
    add.add_argument("url", nargs="?", help="the .ics URL for this calendar")

    remove = commands.add_parser("remove", help="remove a calendar source and its events")
    remove.add_argument("name")

    listing = commands.add_parser("list", help="list configured calendars")
    listing.add_argument("-o", "--output", choices=["table", "json"], default="table")

    commands.add_parser("sync", help="sync all calendars from their iCal URLs")

    events = commands.add_parser("events", help="list upcoming events")
    events.add_argument("-o", "--output", choices=["table", "json", "ics"], default="table")
    events.add_argument(
        "range", nargs="*", metavar="today|week|month|YYYY-MM-DD",
        help="time window (default: the next 30 days)"
    )

    get = commands.add_parser("get", help="get event details by uid")
    get.add_argument("-o", "--output", choices=["table", "json", "ics"], default="table")
    get.add_argument("uid")

    return parser.parse_args(argv)


def add_months(dt: datetime, months: int) -> datetime:
    """Shift a naive datetime by whole months, clamping the day."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    for day in range(dt.day, 0, -1):
        try:
            return dt.replace(year=year, month=month, day=day)
        except ValueError:
            continue
    raise ValueError(f"cannot shift {dt} by {months} months")


def parse_range(words: list[str], now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """
    Turn the `events` window words into naive local (from, to) bounds.

    The upper bound is the last instant before the closing midnight, so
    events on the following day are not included.

    Raises:
        ValueError: unknown keyword or malformed date
    """
    if now is None:
        now = datetime.now(get_local_timezone())
    start = datetime(now.year, now.month, now.day)

    if not words:
        return start, start + timedelta(days=DEFAULT_WINDOW_DAYS) - END_OF_DAY

    keyword = words[0]
    if keyword == "today":
        return start, start + timedelta(days=1) - END_OF_DAY
    if keyword == "week":
        return start, start + timedelta(days=7) - END_OF_DAY
    if keyword == "month":
        return start, add_months(start, 1) - END_OF_DAY

    try:
        start = datetime.strptime(keyword, "%Y-%m-%d")
    except ValueError:
        raise ValueError(
            f"invalid date {keyword!r} (use YYYY-MM-DD, today, week, or month)"
        ) from None
    end = start + timedelta(days=1)
    if len(words) >= 2:
        try:
            end = datetime.strptime(words[1], "%Y-%m-%d") + timedelta(days=1)
        except ValueError:
            raise ValueError(f"invalid end date {words[1]!r} (use YYYY-MM-DD)") from None
    return start, end - END_OF_DAY


# ==================== Commands ====================

def cmd_add(manager: CalendarManager, args: argparse.Namespace) -> int:
    name = args.name
    url = args.url
    if not name:
        name = input("Calendar name: ").strip()
    if not url:
        url = input("iCal URL: ").strip()
    if not name or not url:
        err_console.print("[bold red]error:[/] name and URL are required")
        return 1

    manager.add_source(name, url)
    console.print(f"added calendar {escape(repr(name))}")
    return 0


def cmd_remove(manager: CalendarManager, args: argparse.Namespace) -> int:
    manager.remove_source(args.name)
    console.print(f"removed calendar {escape(repr(args.name))}")
    return 0


def cmd_list(manager: CalendarManager, args: argparse.Namespace) -> int:
    sources = manager.list_sources()
    if not sources:
        console.print("no calendars configured")
        return 0

    if args.output == "json":
        print(format_sources_json(sources))
        return 0

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("NAME", overflow="fold")
    table.add_column("URL", overflow="fold")
    for source in sources:
        table.add_row(escape(source.name), escape(source.url))
    console.print(table)
    return 0


def _print_sync_result(result: SyncResult) -> None:
    console.print(f"syncing {escape(result.source)}...")
    if result.ok:
        console.print(f"  {result.count} events synced")
    else:
        console.print(f"  error: {escape(str(result.error))}")


def cmd_sync(manager: CalendarManager, args: argparse.Namespace) -> int:
    manager.sync_all(on_result=_print_sync_result)
    return 0


def cmd_events(manager: CalendarManager, args: argparse.Namespace) -> int:
    try:
        from_, to = parse_range(args.range)
    except ValueError as e:
        err_console.print(f"[bold red]error:[/] {escape(str(e))}")
        return 1

    events = manager.list_events(from_, to)
    if not events:
        console.print("no events found")
        return 0

    if args.output == "json":
        print(format_events_json(events))
    elif args.output == "ics":
        for event in events:
            try:
                raw = manager.get_event_ics(event)
            except CalendarError as e:
                logger.warning("Skipping %s: %s", event.uid, e)
                continue
            sys.stdout.write(raw.decode("utf-8", errors="replace"))
    else:
        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("TIME", no_wrap=True)
        table.add_column("SUMMARY", overflow="fold")
        table.add_column("LOCATION", overflow="fold")
        table.add_column("CALENDAR", overflow="fold")
        for event in events:
            table.add_row(
                format_event_time(event),
                escape(event.summary),
                escape(event.location),
                escape(event.calendar),
            )
        console.print(table)
    return 0


def cmd_get(manager: CalendarManager, args: argparse.Namespace) -> int:
    event, raw = manager.get_event(args.uid)
    if args.output == "json":
        print(format_event_json(event))
    elif args.output == "ics":
        sys.stdout.write(raw.decode("utf-8", errors="replace"))
    else:
        sys.stdout.write(format_event(event))
    return 0


COMMANDS = {
    "add": cmd_add,
    "remove": cmd_remove,
    "list": cmd_list,
    "sync": cmd_sync,
    "events": cmd_events,
    "get": cmd_get,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.debug)

    try:
        manager = CalendarManager.open(args.config_dir)
        return COMMANDS[args.command](manager, args)
    except CalendarError as e:
        err_console.print(f"[bold red]error:[/] {escape(str(e))}")
        return 1
    except KeyboardInterrupt:
        err_console.print("[yellow]interrupted[/]")
        return 130


if __name__ == "__main__":
    sys.exit(main())
