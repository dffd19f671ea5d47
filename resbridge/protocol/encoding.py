from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Union

from ..errors import ValidationError

MIN_CONTROL_VALUE = 0
MAX_CONTROL_VALUE = 100
TOKENS_FULL_SCALE = 1000

Number = Union[int, float, Decimal]


def is_number(value: Any) -> bool:
    """Return True for finite ints and floats (bools excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def round_half_away(value: Number) -> int:
    """Round to the nearest integer, halves away from zero.

    Works on the exact decimal value, so arbitrarily large ints and floats
    just below a half never pass through float addition.
    """
    return int(Decimal(value).to_integral_value(rounding=ROUND_HALF_UP))


def clamp_control_value(value: int) -> int:
    return max(MIN_CONTROL_VALUE, min(MAX_CONTROL_VALUE, value))


def tokens_to_percent(tokens: Number) -> Decimal:
    return Decimal(tokens) * 100 / TOKENS_FULL_SCALE


def encode_control_value(tokens: Optional[Any] = None, resistance: Optional[Any] = None) -> int:
    """Derive the 0-100 control value, preferring an explicit resistance."""
    if is_number(resistance):
        return clamp_control_value(round_half_away(resistance))
    if is_number(tokens):
        return clamp_control_value(round_half_away(tokens_to_percent(tokens)))
    raise ValidationError("Request must include a numeric 'resistance' or 'tokens' field")


def parse_test_value(raw: str) -> int:
    """Parse a test value given as a decimal integer string in [0, 100]."""
    text = (raw or "").strip()
    digits = text[1:] if text[:1] in ("+", "-") else text
    if not digits.isdigit() or not digits.isascii():
        raise ValidationError("Resistance must be between 0-100")
    value = int(text)
    if not MIN_CONTROL_VALUE <= value <= MAX_CONTROL_VALUE:
        raise ValidationError("Resistance must be between 0-100")
    return value
