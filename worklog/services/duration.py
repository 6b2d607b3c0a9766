"""Elapsed hours between two times of day on the same date."""

import datetime
from typing import Union

from worklog.domain.models import parse_time_of_day

TimeOfDay = Union[str, datetime.time]


def compute_duration(start: TimeOfDay, end: TimeOfDay) -> float:
    """
    Hours between start and end on the same day.

    Overnight shifts are not supported: an end at or before the start yields
    0.0, never a negative value and never a wrap past midnight. No rounding
    is applied (09:00-16:30 is 7.5).

    Raises:
        ValueError: If either value is not a valid HH:MM time
    """
    start_minutes = parse_time_of_day(start)
    end_minutes = parse_time_of_day(end)
    if end_minutes <= start_minutes:
        return 0.0
    return (end_minutes - start_minutes) / 60
