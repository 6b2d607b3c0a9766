"""
Calendar Service - Month grid layout for the entry calendar.

Weeks start on Sunday: column 0 is Sunday, column 6 is Saturday.
"""

import calendar
import datetime
from typing import Iterable, List, Optional, Union

from worklog.domain.models import CalendarCell

DateLike = Union[datetime.date, datetime.datetime]

WEEKDAY_HEADERS = ["S", "M", "T", "W", "T", "F", "S"]


def _as_date(value: Optional[DateLike]) -> Optional[datetime.date]:
    """Drop the time of day so comparisons are by calendar day only"""
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def days_in_month(year: int, month: int) -> int:
    """Number of days in the month, leap years included"""
    return calendar.monthrange(year, month)[1]


def first_weekday(year: int, month: int) -> int:
    """Weekday of the 1st with Sunday=0 .. Saturday=6"""
    # date.weekday() is Monday=0 .. Sunday=6
    return (datetime.date(year, month, 1).weekday() + 1) % 7


def build_month_grid(year: int, month: int,
                     selected_date: Optional[DateLike],
                     today: Optional[DateLike],
                     entry_dates: Iterable[str],
                     pad_to_week: bool = False) -> List[CalendarCell]:
    """
    Build the cells for one month of the calendar.

    The result is `first_weekday` empty cells followed by one cell per day,
    in order. With pad_to_week, trailing empty cells round the grid up to
    whole weeks.

    Args:
        year: Calendar year
        month: Month 1-12
        selected_date: Currently selected day (marks is_selected)
        today: Reference "today" (marks is_today)
        entry_dates: ISO dates (YYYY-MM-DD) that have a saved entry
        pad_to_week: Append trailing padding to a multiple of 7

    Returns:
        List of CalendarCell
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be 1-12, got {month}")

    selected = _as_date(selected_date)
    reference_today = _as_date(today)
    with_entries = set(entry_dates)

    cells = [CalendarCell() for _ in range(first_weekday(year, month))]
    for day in range(1, days_in_month(year, month) + 1):
        current = datetime.date(year, month, day)
        cells.append(CalendarCell(
            date=current,
            is_selected=current == selected,
            is_today=current == reference_today,
            has_entry=current.isoformat() in with_entries
        ))

    if pad_to_week:
        cells.extend(CalendarCell() for _ in range(-len(cells) % 7))
    return cells


def grid_weeks(cells: List[CalendarCell]) -> List[List[CalendarCell]]:
    """Split a grid into rows of seven cells (the last row may be short)"""
    return [cells[i:i + 7] for i in range(0, len(cells), 7)]
