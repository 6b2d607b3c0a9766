"""Domain layer - Pure business entities and logic"""

from .models import WorkEntry, CalendarCell, MonthSummary, AppState, UserPreferences, OperationResult
from .errors import (
    WorkLogError,
    StorageError,
    StorageUnavailable,
    CorruptState,
    NotFound,
    ExternalServiceFailure,
)

__all__ = [
    "WorkEntry", "CalendarCell", "MonthSummary", "AppState", "UserPreferences", "OperationResult",
    "WorkLogError", "StorageError", "StorageUnavailable", "CorruptState",
    "NotFound", "ExternalServiceFailure",
]
