"""Services layer - Business logic"""

from .duration import compute_duration
from .calendar_service import build_month_grid
from .summary_service import summarize_month
from .insight_service import InsightService
from .report_service import ReportService
from .worklog_service import WorkLogService

__all__ = [
    "compute_duration", "build_month_grid", "summarize_month",
    "InsightService", "ReportService", "WorkLogService",
]
