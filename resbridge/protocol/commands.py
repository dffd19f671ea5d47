from __future__ import annotations

from .types import Command

RESISTANCE_TAG = "R"
PING_LINE = "PING\n"


def format_command(value: int, tag: str = RESISTANCE_TAG) -> Command:
    """Build the control command for a channel tag."""
    command = Command(tag=tag, value=int(value))
    command.validate()
    return command


def ping_command() -> bytes:
    """Build the liveness check line."""
    return PING_LINE.encode("ascii")
