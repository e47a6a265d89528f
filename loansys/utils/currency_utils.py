"""
Currency utility functions.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable


class CurrencyUtils:
    """Utility functions for currency operations."""

    CURRENCY_SYMBOLS = {
        "INR": "₹",
        "USD": "$",
        "EUR": "€",
        "GBP": "£",
    }

    @staticmethod
    def format_amount(amount: Decimal, currency: str = "INR", show_symbol: bool = True) -> str:
        """Format amount with currency symbol and proper decimal places."""
        if amount is None:
            return "N/A"

        rounded_amount = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        formatted = f"{rounded_amount:,.2f}"

        if show_symbol:
            symbol = CurrencyUtils.CURRENCY_SYMBOLS.get(currency.upper(), currency)
            return f"{symbol}{formatted}"

        return formatted

    @staticmethod
    def sum_amounts(amounts: Iterable[Decimal]) -> Decimal:
        """Sum decimal amounts safely."""
        return sum(amounts, Decimal("0"))
