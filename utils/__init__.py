"""
Shared helpers.
"""

from utils.money import (
    MINOR_UNITS_PER_MAJOR,
    parse_major_amount,
    to_minor_units,
    to_major_units,
    format_major_amount,
    format_price,
)

__all__ = [
    "MINOR_UNITS_PER_MAJOR",
    "parse_major_amount",
    "to_minor_units",
    "to_major_units",
    "format_major_amount",
    "format_price",
]
