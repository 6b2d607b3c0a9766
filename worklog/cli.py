"""
Command-line front end for WorkLog.

Usage:
    worklog entries
    worklog log 2024-03-01 09:00 17:00
    worklog delete 2024-03-01
    worklog wage 20
    worklog month 2024-03
    worklog insight
"""

import argparse
import asyncio
import datetime
import logging
import sys
from typing import List, Optional

from worklog.domain.models import OperationResult
from worklog.infra.config import get_settings
from worklog.services.report_service import ReportService
from worklog.services.worklog_service import WorkLogService

logger = logging.getLogger(__name__)


def _parse_day(value: str) -> datetime.date:
    if value == "today":
        return datetime.date.today()
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date {value!r} (expected YYYY-MM-DD or 'today')")


def _parse_month(value: str) -> tuple:
    try:
        year, month = map(int, value.split("-"))
        datetime.date(year, month, 1)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid month {value!r} (expected YYYY-MM)")
    return year, month


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="worklog", description="Log daily work hours and project earnings")
    parser.add_argument("--backend", choices=["database", "local"],
                        help="storage backend (overrides WORKLOG_STORAGE_BACKEND)")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("entries", help="list all logged days")

    log_cmd = commands.add_parser("log", help="save start/end times for a day")
    log_cmd.add_argument("date", type=_parse_day)
    log_cmd.add_argument("start", help="HH:MM")
    log_cmd.add_argument("end", help="HH:MM")

    delete_cmd = commands.add_parser("delete", help="delete the entry for a day")
    delete_cmd.add_argument("date", type=_parse_day)

    wage_cmd = commands.add_parser("wage", help="show or set the hourly wage")
    wage_cmd.add_argument("amount", nargs="?", type=float)

    month_cmd = commands.add_parser("month", help="calendar and totals for a month")
    month_cmd.add_argument("period", nargs="?", type=_parse_month, help="YYYY-MM (default: this month)")
    month_cmd.add_argument("--output", help="also write the report to this file")

    commands.add_parser("insight", help="short feedback on the last week of entries")
    return parser


def _report_failure(result: OperationResult) -> int:
    print(f"Error ({result.error_type}): {result.error}", file=sys.stderr)
    return 1


async def _run(args: argparse.Namespace, service: WorkLogService, currency: str) -> int:
    if args.command == "log":
        result = await service.save_entry(args.date, args.start, args.end)
        if not result.success:
            return _report_failure(result)
        entry = result.data
        print(f"Saved {entry.date}: {entry.start_time}-{entry.end_time} ({entry.duration:.1f}h)")
        return 0

    if args.command == "delete":
        result = await service.delete_entry(args.date)
        if not result.success:
            return _report_failure(result)
        print(f"Deleted {args.date.isoformat()}" if result.data else f"No entry for {args.date.isoformat()}")
        return 0

    if args.command == "wage" and args.amount is not None:
        result = await service.set_wage(args.amount)
        if not result.success:
            return _report_failure(result)
        print(f"Hourly wage set to {currency}{result.data:.2f}")
        return 0

    result = await service.load()
    if not result.success:
        return _report_failure(result)

    if args.command == "wage":
        print(f"Hourly wage: {currency}{service.wage:.2f}")
    elif args.command == "entries":
        if not service.entries:
            print("No entries logged yet.")
        for entry in service.entries:
            earnings = entry.duration * service.wage
            print(f"{entry.date}  {entry.start_time}-{entry.end_time}  "
                  f"{entry.duration:5.1f}h  {currency}{earnings:.2f}")
    elif args.command == "month":
        today = datetime.date.today()
        year, month = args.period or (today.year, today.month)
        report = ReportService(currency_symbol=currency).render_month_report(
            service.entries, year, month, service.wage,
            today=today, output_file=args.output
        )
        print(report, end="")
    elif args.command == "insight":
        print(await service.get_insight())
    return 0


async def _main_async(args: argparse.Namespace, settings) -> int:
    service = WorkLogService.from_settings(settings)
    try:
        return await _run(args, service, settings.preferences.currency_symbol)
    finally:
        await service.store.close()


def main(argv: Optional[List[str]] = None, settings=None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    settings = settings or get_settings()
    if args.backend:
        settings.storage_backend = args.backend

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    logger.debug("Using %s storage", settings.storage_backend)
    return asyncio.run(_main_async(args, settings))


def run():
    sys.exit(main())
