"""
Utilities

This module contains utility functions and helpers
used across the application.
"""

from .date_utils import DateUtils
from .currency_utils import CurrencyUtils

__all__ = [
    "DateUtils",
    "CurrencyUtils",
]
