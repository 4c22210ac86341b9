"""Numeric guards shared by every scoring component"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional


def finite_number(raw: Any) -> Optional[float]:
    """
    Coerce raw input into a finite float.

    Returns None for None, empty strings, booleans, non-numeric values, NaN and +/-Infinity.
    Sign is preserved (a DSCR of 0.0 or a negative margin are real values).
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return value


def guarded_number(raw: Any) -> Optional[float]:
    """
    Coerce raw input into a finite, strictly positive float.

    Used for amounts and ratio denominators: 0, negatives and non-finite values all
    degrade to None so they can never poison downstream arithmetic.
    """
    value = finite_number(raw)
    if value is None or value <= 0:
        return None
    return value


def ratio(numerator: Any, denominator: Any) -> Optional[float]:
    """Return numerator / denominator when both are guarded, None otherwise."""
    num = guarded_number(numerator)
    den = guarded_number(denominator)
    if num is None or den is None:
        return None
    return num / den


def has_value(raw: Any) -> bool:
    """Presence test used by the pillar scorers: None, "", 0 and NaN count as absent."""
    if raw is None or raw == "":
        return False
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return finite_number(raw) is not None and raw != 0
    return True


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +Infinity (3.5 -> 4, -3.5 -> -3)."""
    return int(math.floor(value + 0.5))


def round_to(value: float, decimals: int) -> float:
    """Half-up rounding to a fixed number of decimals."""
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def format_number(value: float) -> str:
    """Render a number the way committee texts print it: 65.0 -> "65", 65.5 -> "65.5", 1e-05 -> "0.00001"."""
    if float(value).is_integer():
        return str(int(value))
    # shortest round-trip digits, never in exponent notation
    return format(Decimal(repr(float(value))), "f")


def format_fixed(value: float, digits: int) -> str:
    """Fixed-point rendering with halves rounded away from zero (1.125 -> "1.13")."""
    quantum = Decimal(1).scaleb(-digits)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))
