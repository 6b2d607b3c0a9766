"""
WorkLog Service - The read/write surface used by the presentation layer.

Architecture Decision: Facade over an EntryStore
The UI never touches a store directly. This service keeps the latest entry
snapshot and wage in memory (the calendar and summaries are rebuilt from
them on every render), bounds every store call with a timeout, and reports
storage problems as failed OperationResults instead of exceptions.
"""

import asyncio
import datetime
import logging
import math
from typing import List, Optional, Tuple

from worklog.domain.errors import NotFound, StorageError, StorageUnavailable
from worklog.domain.models import (
    AppState, CalendarCell, MonthSummary, OperationResult, UserPreferences, WorkEntry,
    parse_iso_date,
)
from worklog.infra.repository import EntryStore, create_entry_store
from worklog.services import calendar_service, summary_service
from worklog.services.duration import compute_duration
from worklog.services.insight_service import InsightService

logger = logging.getLogger(__name__)


class WorkLogService:
    """
    Entries, wage, month grid and month summary for one user.
    """

    def __init__(self, store: EntryStore,
                 insight_service: Optional[InsightService] = None,
                 preferences: Optional[UserPreferences] = None,
                 timeout: float = 10.0):
        self.store = store
        self.insight_service = insight_service or InsightService()
        self.preferences = preferences or UserPreferences()
        self.timeout = timeout

        # Snapshot of the store, refreshed after every read and write
        self.entries: List[WorkEntry] = []
        self.wage: float = 0.0

    @classmethod
    def from_settings(cls, settings=None) -> 'WorkLogService':
        if settings is None:
            from worklog.infra.config import get_settings
            settings = get_settings()
        return cls(
            store=create_entry_store(settings),
            insight_service=InsightService.from_settings(settings),
            preferences=settings.preferences,
            timeout=settings.storage_timeout_seconds
        )

    async def _call(self, action: str, awaitable):
        """Await a store call, turning a slow backend into StorageUnavailable"""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise StorageUnavailable(f"Timed out after {self.timeout:g}s while trying to {action}") from e

    def _failure(self, action: str, error: Exception) -> OperationResult:
        if isinstance(error, StorageError):
            logger.error("Failed to %s: %s", action, error)
            return OperationResult.fail(error)
        logger.info("Rejected %s: %s", action, error)
        return OperationResult.fail(error, error_type="ValidationError")

    @staticmethod
    def _sorted(entries: List[WorkEntry]) -> List[WorkEntry]:
        return sorted(entries, key=lambda e: e.date, reverse=True)

    async def load(self) -> OperationResult:
        """Fetch entries and wage (initial screen load)"""
        # Sequential: a database store may share one session between calls
        try:
            entries = await self._call("load entries", self.store.list())
            wage = await self._call("load hourly wage", self.store.get_wage())
        except StorageError as e:
            return self._failure("load work log", e)

        self.entries = self._sorted(entries)
        self.wage = wage
        return OperationResult.ok({'entries': self.entries, 'wage': self.wage})

    async def list_entries(self) -> OperationResult:
        """All entries, newest date first"""
        try:
            entries = await self._call("load entries", self.store.list())
        except StorageError as e:
            return self._failure("load entries", e)

        self.entries = self._sorted(entries)
        return OperationResult.ok(self.entries)

    async def save_entry(self, date, start_time, end_time) -> OperationResult:
        """
        Save the start/end times for a date, replacing any existing entry.

        The duration is computed here and stored with the entry.
        """
        try:
            entry = WorkEntry(
                date=date,
                start_time=start_time,
                end_time=end_time,
                duration=compute_duration(start_time, end_time)
            )
        except ValueError as e:
            return self._failure("save entry", e)

        try:
            await self._call("save entry", self.store.upsert(entry))
        except StorageError as e:
            return self._failure("save entry", e)

        logger.info("Logged %.2fh on %s", entry.duration, entry.date)
        await self._refresh_after_write(entry.date, entry)
        return OperationResult.ok(entry)

    async def delete_entry(self, date) -> OperationResult:
        """Delete the entry for a date. Deleting a missing date succeeds."""
        try:
            date = parse_iso_date(date).isoformat()
        except ValueError as e:
            return self._failure("delete entry", e)

        try:
            removed = await self._call("delete entry", self.store.delete(date))
        except StorageError as e:
            return self._failure("delete entry", e)

        if removed:
            logger.info("Deleted entry for %s", date)
        await self._refresh_after_write(date, None)
        return OperationResult.ok(removed)

    async def _refresh_after_write(self, date: str, entry: Optional[WorkEntry]):
        try:
            entries = await self._call("reload entries", self.store.list())
        except StorageError as e:
            # The write itself went through; patch the snapshot locally
            logger.warning("Could not reload entries after write: %s", e)
            entries = [existing for existing in self.entries if existing.date != date]
            if entry is not None:
                entries.append(entry)
        self.entries = self._sorted(entries)

    async def get_wage(self) -> OperationResult:
        try:
            self.wage = await self._call("load hourly wage", self.store.get_wage())
        except StorageError as e:
            return self._failure("load hourly wage", e)
        return OperationResult.ok(self.wage)

    async def set_wage(self, wage) -> OperationResult:
        try:
            wage = float(wage)
            if math.isnan(wage) or math.isinf(wage) or wage < 0:
                raise ValueError(f"Hourly wage must be a non-negative number, got {wage!r}")
        except (TypeError, ValueError) as e:
            return self._failure("save hourly wage", e)

        try:
            await self._call("save hourly wage", self.store.set_wage(wage))
        except StorageError as e:
            return self._failure("save hourly wage", e)

        self.wage = wage
        return OperationResult.ok(wage)

    async def get_entry(self, date) -> OperationResult:
        """Saved entry for a date; data is None when nothing is logged"""
        try:
            date = parse_iso_date(date).isoformat()
        except ValueError as e:
            return self._failure("load entry", e)

        try:
            entry = await self._call("load entry", self.store.get(date))
        except NotFound:
            entry = None
        except StorageError as e:
            return self._failure("load entry", e)
        return OperationResult.ok(entry)

    def entry_dates(self) -> set:
        return {entry.date for entry in self.entries}

    def build_month_grid(self, year: int, month: int,
                         selected_date: Optional[datetime.date],
                         today: Optional[datetime.date] = None,
                         pad_to_week: bool = False) -> List[CalendarCell]:
        """Month grid marked with the days that have a saved entry"""
        return calendar_service.build_month_grid(
            year, month,
            selected_date=selected_date,
            today=today or datetime.date.today(),
            entry_dates=self.entry_dates(),
            pad_to_week=pad_to_week
        )

    def grid_for_state(self, state: AppState, today: Optional[datetime.date] = None) -> List[CalendarCell]:
        return self.build_month_grid(state.view_year, state.view_month, state.selected_date, today)

    def summarize_month(self, year: int, month: int) -> MonthSummary:
        return summary_service.summarize_month(self.entries, year, month, self.wage)

    def month_entries(self, year: int, month: int) -> List[dict]:
        """Rows for the month listing: entry, earnings and running totals"""
        return summary_service.earnings_rows(self.entries, year, month, self.wage)

    def form_defaults(self, date) -> Tuple[str, str]:
        """Start/end times to prefill for a date"""
        date = parse_iso_date(date).isoformat()
        for entry in self.entries:
            if entry.date == date:
                return entry.start_time, entry.end_time
        return self.preferences.default_start_time, self.preferences.default_end_time

    def month_running_hours(self, state: AppState, start_time, end_time) -> float:
        """
        Hours for the viewed month including the unsaved times being edited
        for the selected date.
        """
        return summary_service.month_running_hours(
            self.entries, state.view_year, state.view_month,
            state.selected_date, compute_duration(start_time, end_time)
        )

    async def get_insight(self) -> str:
        """Short feedback on the latest entries; never fails"""
        return await self.insight_service.get_insight(self.entries)
