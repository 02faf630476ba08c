"""
Date range validation for range-filtered reloads.
"""

import calendar
from datetime import date, datetime

from ..api.models import DateRange


class InvalidDateRangeError(ValueError):
    """Raised when a range's start falls after its end."""

    def __init__(self, start: date, end: date):
        super().__init__(f"Start date {start} must not be after end date {end}")
        self.start = start
        self.end = end


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def one_month_before(day: date) -> date:
    """Same day of the previous month, clamped to that month's last day."""
    year, month = (day.year - 1, 12) if day.month == 1 else (day.year, day.month - 1)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def default_range(today: date | None = None) -> DateRange:
    """Initial selection of the range picker: the last month up to today."""
    today = today or date.today()
    return DateRange(start=one_month_before(today), end=today)


class RangeValidator:
    """Enforces start <= end and formats boundaries for the filtered-costs query."""

    @staticmethod
    def validate(start: date | datetime, end: date | datetime) -> DateRange:
        """
        Build a validated range.

        Raises:
            InvalidDateRangeError: if start is after end
        """
        start_day, end_day = _as_date(start), _as_date(end)
        if start_day > end_day:
            raise InvalidDateRangeError(start_day, end_day)
        return DateRange(start=start_day, end=end_day)

    @staticmethod
    def is_valid(start: date | datetime, end: date | datetime) -> bool:
        return _as_date(start) <= _as_date(end)

    @staticmethod
    def query_params(date_range: DateRange) -> dict[str, str]:
        """Format range boundaries as YYYY-MM-DD query parameters."""
        return {
            "start_date": date_range.start.isoformat(),
            "end_date": date_range.end.isoformat(),
        }


class RangeSelection:
    """Current picker state. Clearing a boundary keeps the previous value."""

    def __init__(self, initial: DateRange | None = None):
        initial = initial or default_range()
        self.start = initial.start
        self.end = initial.end

    def set_start(self, value: date | datetime | None):
        if value is not None:
            self.start = _as_date(value)

    def set_end(self, value: date | datetime | None):
        if value is not None:
            self.end = _as_date(value)

    def validated(self) -> DateRange:
        return RangeValidator.validate(self.start, self.end)
