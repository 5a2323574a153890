"""
Leakwatch - Rounding helpers
Half-up rounding used for every money amount and percentage in a report
"""

from decimal import Decimal, ROUND_HALF_UP
import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves go up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def round_cents(value: float) -> float:
    """Round a money amount to 2 decimal places."""
    return round_half_up(value * 100) / 100


def format_fixed(value: float, places: int = 1) -> str:
    """
    Format a float with a fixed number of decimals.

    Ties are resolved upward on the exact binary value of the float, so
    0.25 -> "0.3" while 1.005 (stored as 1.00499...) -> "1.00" at 2 places.
    """
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def format_percent(value: float, places: int = 1) -> str:
    return f"{format_fixed(value, places)}%"


def parse_percent(text: str) -> float:
    """Parse "45.0%" back to 45.0; anything unparseable reads as 0."""
    try:
        return float(str(text).rstrip("%").strip())
    except ValueError:
        return 0.0
