"""
Tests for domain model validation and the application state helpers.
"""

import datetime
import pytest
from pydantic import ValidationError
from worklog.domain.models import AppState, OperationResult, UserPreferences, WorkEntry
from worklog.domain.errors import StorageUnavailable


class TestWorkEntry:

    def test_record_uses_camel_case_keys(self):
        entry = WorkEntry(date="2024-03-01", start_time="09:00", end_time="17:00", duration=8)
        assert entry.to_record() == {
            "date": "2024-03-01", "startTime": "09:00", "endTime": "17:00", "duration": 8.0
        }

    def test_accepts_record_shape(self):
        entry = WorkEntry.model_validate({"date": "2024-03-01", "startTime": "9:05", "endTime": "17:00", "duration": 7.9})
        assert entry.start_time == "09:05"
        assert entry.entry_date == datetime.date(2024, 3, 1)

    def test_date_objects_are_normalized(self):
        entry = WorkEntry(date=datetime.date(2024, 2, 29), start_time="09:00", end_time="10:00", duration=1)
        assert entry.date == "2024-02-29"

    @pytest.mark.parametrize("field,value", [
        ("date", "2023-02-29"),
        ("date", "2024-3-1"),
        ("start_time", "25:00"),
        ("end_time", "noon"),
        ("duration", -1),
    ])
    def test_invalid_values_rejected(self, field, value):
        data = {"date": "2024-03-01", "start_time": "09:00", "end_time": "17:00", "duration": 8}
        data[field] = value
        with pytest.raises(ValidationError):
            WorkEntry(**data)


class TestAppState:

    def test_for_today(self):
        state = AppState.for_today(datetime.date(2024, 3, 15))
        assert (state.view_year, state.view_month) == (2024, 3)
        assert state.selected_date == datetime.date(2024, 3, 15)

    @pytest.mark.parametrize("months,years,expected", [
        (1, 0, (2025, 1)),
        (-12, 0, (2023, 12)),
        (0, -1, (2023, 12)),
        (-11, 0, (2024, 1)),
        (13, 1, (2027, 1)),
    ])
    def test_navigate_rolls_over_years(self, months, years, expected):
        state = AppState.for_today(datetime.date(2024, 12, 5))
        moved = state.navigate(months=months, years=years)
        assert (moved.view_year, moved.view_month) == expected
        assert moved.selected_date == state.selected_date

    def test_select_and_theme(self):
        state = AppState.for_today(datetime.date(2024, 3, 15))
        assert state.select(datetime.date(2024, 3, 2)).selected_date == datetime.date(2024, 3, 2)
        assert state.toggle_theme().theme == "dark"
        assert state.toggle_theme().toggle_theme().theme == "light"


def test_preferences_reject_bad_default_times():
    with pytest.raises(ValidationError):
        UserPreferences(default_start_time="9 o'clock")


def test_operation_result_failure_carries_error_type():
    result = OperationResult.fail(StorageUnavailable("database is down"))
    assert not result.success
    assert result.error == "database is down"
    assert result.error_type == "StorageUnavailable"
