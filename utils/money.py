"""
Money conversion between human-entered major units and stored minor units.

Every price is stored as an integer count of minor units (paise). This module
is the only place the scaling factor is applied; call sites must not multiply
or divide by 100 themselves.
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

# Minor units per major unit (paise per rupee).
MINOR_UNITS_PER_MAJOR = 100

# Upper bound of the price_minor INTEGER column.
MAX_PRICE_MINOR = 2_147_483_647

# Optional sign, digits with an optional fraction. No exponents, separators
# or underscores.
PLAIN_DECIMAL_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")

_CENT = Decimal("0.01")

Number = Union[str, int, float, Decimal]


def parse_major_amount(value: Optional[Number]) -> Optional[Decimal]:
    """
    Parse a base-10 decimal amount as typed into a price sheet.

    Returns None for anything that is not a plain decimal number: blanks,
    text, NaN, infinities, exponent notation ("1e3") and digit separators
    ("1_000", "1,000").

    >>> parse_major_amount("2999")
    Decimal('2999')
    >>> parse_major_amount("abc") is None
    True
    """
    if value is None:
        return None
    if isinstance(value, float):
        value = repr(value)
    text = str(value).strip()
    if not text or not PLAIN_DECIMAL_PATTERN.match(text):
        return None
    try:
        amount = Decimal(text)
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def to_minor_units(amount: Number) -> int:
    """
    Convert a major-unit amount to integer minor units.

    Rounds half away from zero: 29.995 -> 3000.

    Raises:
        ValueError: If amount is not a plain decimal number, or its minor
            units fall outside +/- MAX_PRICE_MINOR
    """
    if isinstance(amount, Decimal) and amount.is_finite():
        parsed = amount
    else:
        parsed = parse_major_amount(amount)
    if parsed is None:
        raise ValueError(f"Not a decimal amount: {amount!r}")
    scaled = parsed * MINOR_UNITS_PER_MAJOR
    if abs(scaled) > MAX_PRICE_MINOR:
        raise ValueError(f"Amount out of range: {amount!r}")
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_major_units(price_minor: int) -> Decimal:
    """Convert stored minor units to a two-place major-unit Decimal."""
    return (Decimal(price_minor) / MINOR_UNITS_PER_MAJOR).quantize(_CENT)


def format_major_amount(price_minor: int) -> str:
    """
    Render minor units the way an operator would type them in a sheet.

    Whole amounts drop the fraction so a round-tripped template reads the
    same as a hand-filled one: 299900 -> "2999", 2999 -> "29.99".
    """
    whole, remainder = divmod(price_minor, MINOR_UNITS_PER_MAJOR)
    if remainder == 0:
        return str(whole)
    return str(to_major_units(price_minor))


def format_price(price_minor: int, symbol: str = "₹") -> str:
    """Display string for a price, e.g. 299900 -> "₹2999.00"."""
    return f"{symbol}{to_major_units(price_minor):.2f}"
