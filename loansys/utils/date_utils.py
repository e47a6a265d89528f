"""
Date utility functions.
"""

from datetime import date, datetime
from typing import Optional, Union

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


class DateUtils:
    """Utility functions for date operations."""

    @staticmethod
    def parse(value: Union[str, date, datetime, None]) -> Optional[datetime]:
        """Parse an ISO date/datetime string; returns None when unparseable."""
        if value is None:
            return None
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None

    @staticmethod
    def format_date(value: Union[str, date, datetime, None]) -> str:
        """Format as ``DD-Mon-YYYY`` (e.g. ``05-Mar-2024``); empty string if invalid."""
        parsed = DateUtils.parse(value)
        if parsed is None:
            return ""
        return f"{parsed.day:02d}-{MONTHS[parsed.month - 1]}-{parsed.year}"
