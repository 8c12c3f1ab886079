"""
Conversion between ZEC decimal amounts and integer zatoshi.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation

from zlcore.constants import ZATOSHI_PER_ZEC
from zlcore.errors import InvalidAmountError

_EIGHT_PLACES = Decimal("0.00000001")


def parse_zec(value: Decimal | int | float | str) -> Decimal:
    """Parse a ZEC amount into a finite Decimal, rejecting anything non-numeric."""
    if isinstance(value, bool):
        raise InvalidAmountError(f"Amount must be numeric, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float | str):
        # Floats go through their shortest repr so 0.29 stays 0.29
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise InvalidAmountError(f"Amount must be numeric, got {value!r}") from e
    else:
        raise InvalidAmountError(f"Amount must be numeric, got {type(value).__name__}")

    if not result.is_finite():
        raise InvalidAmountError(f"Amount must be finite, got {value!r}")
    return result


def zec_to_zatoshi(value: Decimal | int | float | str) -> int:
    """
    Convert a ZEC amount to integer zatoshi.

    Sub-zatoshi fractions are truncated toward zero, never rounded.

    Raises:
        InvalidAmountError: If the value is not a finite number
    """
    zec = parse_zec(value)
    return int((zec * ZATOSHI_PER_ZEC).to_integral_value(rounding=ROUND_DOWN))


def zatoshi_to_zec(value: int) -> Decimal:
    """Convert integer zatoshi to an exact 8-place ZEC Decimal."""
    return (Decimal(value) / ZATOSHI_PER_ZEC).quantize(_EIGHT_PLACES)


def format_zec(value: int) -> str:
    """Render zatoshi as a human-readable ZEC string."""
    return f"{zatoshi_to_zec(value):f} ZEC"
