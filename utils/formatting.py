"""
Formatting utilities for human-readable listing summaries.
"""

from typing import Optional

MISSING = "n/a"


def format_currency(amount: Optional[int], currency: str = "GBP") -> str:
    """
    Format an integer amount as currency.

    Args:
        amount: The amount in whole units (e.g., pounds, not pence), or None.
        currency: Currency code (default GBP).

    Returns:
        Formatted currency string, or "n/a" when the amount is unknown.
    """
    if amount is None:
        return MISSING
    symbols = {
        "GBP": "£",
        "USD": "$",
        "EUR": "€",
    }
    symbol = symbols.get(currency, currency + " ")
    return f"{symbol}{amount:,}"


def format_flag(value: Optional[bool]) -> str:
    """Render a tri-state flag as yes / no / n/a."""
    if value is None:
        return MISSING
    return "yes" if value else "no"


def format_count(value: Optional[int], noun: str) -> str:
    """Render a room count, e.g. "3 bedrooms", "1 bathroom"."""
    if value is None:
        return f"{MISSING} {noun}s"
    return f"{value} {noun}" if value == 1 else f"{value} {noun}s"
