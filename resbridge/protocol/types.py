from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Command:
    """Single newline-terminated control line addressed to a device channel."""

    tag: str
    value: int

    def validate(self) -> None:
        """Validate tag and value for the line format."""
        if not self.tag or ":" in self.tag or "\n" in self.tag:
            raise ValueError(f"Invalid command tag: {self.tag!r}")
        if not 0 <= self.value <= 100:
            raise ValueError("Command value must be between 0 and 100")

    @property
    def text(self) -> str:
        """Return the command without its line terminator."""
        return f"{self.tag}:{self.value}"

    @property
    def line(self) -> str:
        """Return the command exactly as written to the device."""
        return self.text + "\n"

    def to_bytes(self) -> bytes:
        return self.line.encode("ascii")
