"""
Report Generation Service using Jinja2 templates.

Architecture Decision: Template Pattern
Allows users to customize reports without changing code.
"""

import calendar
import datetime
from pathlib import Path
from typing import Iterable, List, Optional
from jinja2 import Environment, FileSystemLoader

from worklog.domain.models import CalendarCell, WorkEntry
from worklog.services.calendar_service import WEEKDAY_HEADERS, build_month_grid, grid_weeks
from worklog.services.summary_service import earnings_rows, summarize_month
from worklog.utils import get_resource_path


class ReportService:
    """
    Renders monthly work reports from entries and the hourly wage.
    """

    def __init__(self, template_dir: Optional[Path] = None, currency_symbol: str = "$"):
        """
        Initialize the report service.

        Args:
            template_dir: Directory containing Jinja2 templates
            currency_symbol: Prefix used by the format_money filter
        """
        if template_dir is None:
            template_dir = get_resource_path("resources/templates")

        self.template_dir = Path(template_dir)
        self.currency_symbol = currency_symbol

        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            trim_blocks=True,
            lstrip_blocks=True
        )

        # Add custom filters
        self.env.filters['format_hours'] = self._format_hours
        self.env.filters['format_money'] = self._format_money
        self.env.filters['format_date'] = self._format_date
        self.env.filters['format_cell'] = self._format_cell

    @staticmethod
    def _format_hours(hours: float) -> str:
        """Format hours with one decimal, e.g. 7.5h"""
        return f"{hours:.1f}h"

    @staticmethod
    def _format_money(amount: float, symbol: str = "$") -> str:
        return f"{symbol}{amount:,.2f}"

    @staticmethod
    def _format_date(dt: datetime.datetime, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
        """Format datetime object"""
        return dt.strftime(fmt)

    @staticmethod
    def _format_cell(cell: CalendarCell) -> str:
        """Three characters per day: day number plus '*' when logged"""
        if cell.is_empty:
            return "   "
        marker = "*" if cell.has_entry else " "
        return f"{cell.date.day:>2}{marker}"

    def render_month_report(self, entries: Iterable[WorkEntry], year: int, month: int,
                            wage: float,
                            template_name: str = "monthly_report.txt",
                            selected_date: Optional[datetime.date] = None,
                            today: Optional[datetime.date] = None,
                            output_file: Optional[Path] = None) -> str:
        """
        Render the report for one month.

        Args:
            entries: All known entries (other months are ignored)
            year: Calendar year
            month: Month 1-12
            wage: Hourly wage
            template_name: Template file in template_dir
            selected_date: Day highlighted in the grid
            today: Reference date for the grid, defaults to today
            output_file: Optional file path to save the report

        Returns:
            The generated report as a string
        """
        entries = list(entries)
        today = today or datetime.date.today()
        cells = build_month_grid(
            year, month,
            selected_date=selected_date,
            today=today,
            entry_dates={e.date for e in entries},
            pad_to_week=True
        )

        context = {
            'year': year,
            'month': month,
            'month_name': calendar.month_name[month],
            'weekday_headers': WEEKDAY_HEADERS,
            'weeks': grid_weeks(cells),
            'summary': summarize_month(entries, year, month, wage),
            'rows': earnings_rows(entries, year, month, wage),
            'wage': wage,
            'currency': self.currency_symbol,
            'generated_at': datetime.datetime.now()
        }

        template = self.env.get_template(template_name)
        report_content = template.render(**context)

        if output_file:
            output_file = Path(output_file)
            output_file.parent.mkdir(parents=True, exist_ok=True)
            with open(output_file, 'w', encoding='utf-8') as f:
                f.write(report_content)

        return report_content

    def render_template_string(self, template_string: str, **context) -> str:
        """
        Render a template from a string instead of a file.

        Args:
            template_string: The template content as a string
            **context: Variables to pass to the template

        Returns:
            The rendered content
        """
        template = self.env.from_string(template_string)
        return template.render(**context)

    def list_templates(self) -> List[str]:
        """List all available template files"""
        return sorted(
            [f.name for f in self.template_dir.glob("*.txt")] +
            [f.name for f in self.template_dir.glob("*.md")] +
            [f.name for f in self.template_dir.glob("*.html")]
        )
