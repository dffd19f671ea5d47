from .commands import PING_LINE, RESISTANCE_TAG, format_command, ping_command
from .encoding import (
    MAX_CONTROL_VALUE,
    MIN_CONTROL_VALUE,
    TOKENS_FULL_SCALE,
    clamp_control_value,
    encode_control_value,
    is_number,
    parse_test_value,
    round_half_away,
    tokens_to_percent,
)
from .types import Command

__all__ = [
    "clamp_control_value",
    "Command",
    "encode_control_value",
    "format_command",
    "is_number",
    "MAX_CONTROL_VALUE",
    "MIN_CONTROL_VALUE",
    "parse_test_value",
    "PING_LINE",
    "ping_command",
    "RESISTANCE_TAG",
    "round_half_away",
    "TOKENS_FULL_SCALE",
    "tokens_to_percent",
]
