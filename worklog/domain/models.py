"""
Domain Models using Pydantic for validation.

Architecture Decision: Why Pydantic?
Entries round-trip through two very different backends (a SQL table and a
JSON document). Validating on the way out of either backend means a bad row
is reported as corrupt state instead of leaking into the calendar or totals.
"""

import datetime
import re
from typing import Generic, Optional, TypeVar, Union
from pydantic import BaseModel, Field, ConfigDict, field_validator


_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time_of_day(value: Union[str, datetime.time]) -> int:
    """
    Convert a 24-hour time of day into minutes since midnight.

    Args:
        value: "HH:MM" string or a datetime.time

    Returns:
        Minutes since midnight (0..1439)

    Raises:
        ValueError: If the value is not a valid 24-hour time
    """
    if isinstance(value, datetime.time):
        return value.hour * 60 + value.minute

    match = _TIME_PATTERN.match(str(value).strip())
    if not match:
        raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM)")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM)")
    return hours * 60 + minutes


def parse_iso_date(value: Union[str, datetime.date]) -> datetime.date:
    """Parse a YYYY-MM-DD string (datetimes are truncated to their date)"""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    text = str(value).strip()
    if len(text) != 10:
        raise ValueError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")
    return datetime.date.fromisoformat(text)


class WorkEntry(BaseModel):
    """
    One calendar day's logged work.

    The date is the unique key: a store holds at most one entry per date.
    Duration is derived from start/end when the entry is saved and persisted
    as-is afterwards.
    """
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    date: str = Field(..., description="Calendar date, YYYY-MM-DD")
    start_time: str = Field(..., alias="startTime", description="HH:MM, 24-hour")
    end_time: str = Field(..., alias="endTime", description="HH:MM, 24-hour")
    duration: float = Field(default=0.0, ge=0, description="Hours worked")

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, value):
        return parse_iso_date(value).isoformat()

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _normalize_time(cls, value):
        minutes = parse_time_of_day(value)
        return f"{minutes // 60:02d}:{minutes % 60:02d}"

    @property
    def entry_date(self) -> datetime.date:
        return datetime.date.fromisoformat(self.date)

    def to_record(self) -> dict:
        """Serialize using the camelCase record shape"""
        return self.model_dump(by_alias=True)


class CalendarCell(BaseModel):
    """
    One slot of a month grid.

    Padding cells before the first of the month carry no date and all flags
    are False.
    """
    date: Optional[datetime.date] = None
    is_selected: bool = False
    is_today: bool = False
    has_entry: bool = False

    @property
    def is_empty(self) -> bool:
        return self.date is None


class MonthSummary(BaseModel):
    """Totals for the entries of one (year, month)"""
    year: int
    month: int = Field(..., ge=1, le=12)
    total_hours: float = 0.0
    entry_count: int = 0
    projected_earnings: float = 0.0

    @property
    def average_hours_per_day(self) -> float:
        # An empty month divides by 1 so the average equals the (zero) total
        return self.total_hours / (self.entry_count or 1)

    @property
    def average_earnings_per_day(self) -> float:
        return self.projected_earnings / (self.entry_count or 1)


class AppState(BaseModel):
    """
    Presentation state: which day is selected and which month is shown.

    Passed explicitly into the grid and summary functions instead of living
    in globals.
    """
    selected_date: datetime.date
    view_year: int
    view_month: int = Field(..., ge=1, le=12)
    theme: str = Field(default="light", description="Theme: 'light' or 'dark'")

    @classmethod
    def for_today(cls, today: Optional[datetime.date] = None, theme: str = "light") -> "AppState":
        today = today or datetime.date.today()
        return cls(selected_date=today, view_year=today.year, view_month=today.month, theme=theme)

    def navigate(self, months: int = 0, years: int = 0) -> "AppState":
        """Shift the visible month, rolling over year boundaries"""
        index = (self.view_year + years) * 12 + (self.view_month - 1) + months
        year, month_index = divmod(index, 12)
        return self.model_copy(update={"view_year": year, "view_month": month_index + 1})

    def select(self, date: datetime.date) -> "AppState":
        return self.model_copy(update={"selected_date": date})

    def toggle_theme(self) -> "AppState":
        return self.model_copy(update={"theme": "light" if self.theme == "dark" else "dark"})


class UserPreferences(BaseModel):
    """
    User configuration and preferences.

    Loaded from settings.yaml; nothing here is stored alongside the entries.
    """
    model_config = ConfigDict(from_attributes=True)

    theme: str = Field(default="auto", description="Theme: 'light', 'dark', or 'auto' (follows system)")
    currency_symbol: str = Field(default="$", max_length=5)

    # Prefilled times for a date without a saved entry
    default_start_time: str = Field(default="09:00", description="HH:MM")
    default_end_time: str = Field(default="17:00", description="HH:MM")

    @field_validator("default_start_time", "default_end_time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        parse_time_of_day(value)
        return value


T = TypeVar("T")


class OperationResult(BaseModel, Generic[T]):
    """
    Outcome of a service call made by the presentation layer.

    Storage and validation failures are reported here instead of raised.
    """
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "OperationResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: Exception, error_type: Optional[str] = None) -> "OperationResult[T]":
        return cls(success=False, error=str(error), error_type=error_type or type(error).__name__)
