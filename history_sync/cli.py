#!/usr/bin/env python3
"""Command-line interface for History Sync.

Commands:
  - history-sync ingest     : Ingest one or more export files
  - history-sync aggregate  : Print the day x hour matrix and top actors
  - history-sync summary    : Print the daily per-source activity summary
  - history-sync clear      : Delete every stored event

Events are kept in a JSON-lines file (EVENTS_FILE, overridable with --store).

Typical usage:
  history-sync ingest chat.txt git.log calendar.ics
  history-sync aggregate --days 14
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

from history_sync import __version__
from history_sync.aggregation import aggregate, build_activity_summary
from history_sync.configs.settings import Settings, get_settings
from history_sync.ingestion.errors import HistorySyncError
from history_sync.ingestion.orchestrator import IngestionOrchestrator
from history_sync.monitoring.logging import setup_logging
from history_sync.storage.base import EventQuery
from history_sync.storage.jsonl import JsonLinesEventStore

logger = logging.getLogger("history_sync.cli")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="history-sync", description="History Sync CLI")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("--store", default=None, help="Path to the events .jsonl file")
    p.add_argument("--json-logs", action="store_true", help="Emit JSON logs")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd")

    pi = sub.add_parser("ingest", help="Ingest export files")
    pi.add_argument("paths", nargs="+", help="Files to ingest")

    pa = sub.add_parser("aggregate", help="Show the activity heatmap matrix")
    pa.add_argument("--days", "-d", type=int, default=None, help="Window size in days")
    pa.add_argument("--source", default=None, help="Only this source")
    pa.add_argument("--actor", default=None, help="Only this actor")
    pa.add_argument("--tag", default=None, help="Only events with this tag")
    pa.add_argument("--top", type=int, default=10, help="Number of actors to list")

    ps = sub.add_parser("summary", help="Daily per-source counts as JSON")
    ps.add_argument("--days", "-d", type=int, default=None, help="Window size in days")

    sub.add_parser("clear", help="Delete every stored event")
    return p


def _cmd_ingest(args: argparse.Namespace, settings: Settings, store) -> int:
    orchestrator = IngestionOrchestrator.from_settings(store, settings)
    failures = 0
    for raw_path in args.paths:
        path = Path(raw_path)
        try:
            result = orchestrator.ingest_bytes(path.read_bytes(), filename=path.name)
        except (OSError, HistorySyncError) as e:
            print(f"{path}: failed: {e}", file=sys.stderr)
            failures += 1
            continue
        print(
            f"{path}: {result.count} events ({result.detected_type}), "
            f"{result.stored} new"
        )
    return 1 if failures else 0


def _format_row(row: list[int]) -> str:
    return " ".join(f"{n:>2}" if n else " ." for n in row)


def _cmd_aggregate(args: argparse.Namespace, settings: Settings, store) -> int:
    days = args.days or settings.DEFAULT_WINDOW_DAYS
    if days < 1:
        print("--days must be at least 1", file=sys.stderr)
        return 2
    now = datetime.now(timezone.utc)
    query = EventQuery(
        since=now - timedelta(days=days),
        source=args.source,
        actor=args.actor,
        tag=args.tag,
    )
    result = aggregate(store.query(query), days, now=now, tz=settings.tzinfo)

    print("day  " + " ".join(f"{h:>2}" for h in range(24)))
    for delta, row in enumerate(result.matrix):
        print(f"-{delta:<3} {_format_row(row)}")
    print(f"\n{result.total} events in matrix, {len(result.events)} in window")
    for actor in result.actors[: args.top]:
        print(f"  {actor.count:>5}  {actor.name}")
    return 0


def _cmd_summary(args: argparse.Namespace, settings: Settings, store) -> int:
    days = args.days or settings.DEFAULT_WINDOW_DAYS
    if days < 1:
        print("--days must be at least 1", file=sys.stderr)
        return 2
    now = datetime.now(timezone.utc)
    events = store.query(EventQuery(since=now - timedelta(days=days)))
    summary = build_activity_summary(events, days, now=now, tz=settings.tzinfo)
    print(json.dumps(summary.model_dump(), indent=2))
    return 0


def _cmd_clear(args: argparse.Namespace, settings: Settings, store) -> int:
    removed = store.clear()
    print(f"Removed {removed} events")
    return 0


_COMMANDS = {
    "ingest": _cmd_ingest,
    "aggregate": _cmd_aggregate,
    "summary": _cmd_summary,
    "clear": _cmd_clear,
}


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    """Entry point for the ``history-sync`` console script."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.version:
        print(__version__)
        return 0
    if not args.cmd:
        parser.print_help()
        return 2

    settings = settings or get_settings()
    setup_logging(
        "DEBUG" if args.verbose else settings.LOG_LEVEL,
        json_logs=args.json_logs or settings.JSON_LOGS,
    )
    store = JsonLinesEventStore(args.store or settings.EVENTS_FILE)
    try:
        return _COMMANDS[args.cmd](args, settings, store)
    except HistorySyncError as e:
        logger.error(f"{args.cmd} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
