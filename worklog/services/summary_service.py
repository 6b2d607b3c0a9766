"""
Summary Service - Folds work entries into monthly totals and earnings.

All functions are pure. An entry whose date or duration cannot be read is
skipped so one bad record never blocks the rest of the month.
"""

import datetime
import logging
import math
from typing import Iterable, List, Optional, Tuple

from worklog.domain.models import MonthSummary, WorkEntry, parse_iso_date

logger = logging.getLogger(__name__)


def _entry_day(entry) -> Optional[datetime.date]:
    try:
        return parse_iso_date(entry.date)
    except (AttributeError, TypeError, ValueError):
        logger.debug("Skipping entry with unreadable date: %r", entry)
        return None


def _entry_hours(entry) -> Optional[float]:
    try:
        hours = float(entry.duration)
    except (AttributeError, TypeError, ValueError):
        hours = None
    if hours is None or math.isnan(hours) or math.isinf(hours) or hours < 0:
        logger.debug("Skipping entry with unreadable duration: %r", entry)
        return None
    return hours


def entries_for_month(entries: Iterable[WorkEntry], year: int, month: int) -> List[WorkEntry]:
    """Entries dated in (year, month), oldest first"""
    matched: List[Tuple[datetime.date, WorkEntry]] = []
    for entry in entries:
        day = _entry_day(entry)
        if day is None or day.year != year or day.month != month:
            continue
        if _entry_hours(entry) is not None:
            matched.append((day, entry))
    matched.sort(key=lambda pair: pair[0])
    return [entry for _, entry in matched]


def summarize_month(entries: Iterable[WorkEntry], year: int, month: int,
                    wage: float) -> MonthSummary:
    """
    Total hours, entry count and projected earnings for one month.

    Args:
        entries: Any collection of entries (other months are ignored)
        year: Calendar year
        month: Month 1-12
        wage: Hourly wage

    Returns:
        MonthSummary
    """
    monthly = entries_for_month(entries, year, month)
    total_hours = sum(_entry_hours(entry) for entry in monthly)
    return MonthSummary(
        year=year,
        month=month,
        total_hours=total_hours,
        entry_count=len(monthly),
        projected_earnings=total_hours * wage
    )


def entry_earnings(entry: WorkEntry, wage: float) -> float:
    """Earnings for a single day"""
    return (_entry_hours(entry) or 0.0) * wage


def earnings_rows(entries: Iterable[WorkEntry], year: int, month: int,
                  wage: float) -> List[dict]:
    """
    Per-day rows for a month listing, oldest first.

    Each row carries the entry, its earnings and the running hours/earnings
    total for the month up to and including that day.
    """
    rows = []
    running_hours = 0.0
    for entry in entries_for_month(entries, year, month):
        running_hours += _entry_hours(entry)
        rows.append({
            'entry': entry,
            'earnings': entry_earnings(entry, wage),
            'running_hours': running_hours,
            'running_earnings': running_hours * wage
        })
    return rows


def cumulative_hours_before(entries: Iterable[WorkEntry], target_date) -> float:
    """Hours logged on all days strictly before target_date"""
    target = parse_iso_date(target_date)
    total = 0.0
    for entry in entries:
        day = _entry_day(entry)
        hours = _entry_hours(entry) if day is not None and day < target else None
        if hours is not None:
            total += hours
    return total


def month_running_hours(entries: Iterable[WorkEntry], year: int, month: int,
                        selected_date, pending_duration: float) -> float:
    """
    Monthly total including the day currently being edited.

    The unsaved duration only counts when the selected date has no saved
    entry yet; a saved entry for that date is already part of the total.
    """
    entries = list(entries)
    summary = summarize_month(entries, year, month, wage=0.0)
    selected = parse_iso_date(selected_date).isoformat()
    if any(getattr(entry, 'date', None) == selected for entry in entries):
        return summary.total_hours
    return summary.total_hours + pending_duration
