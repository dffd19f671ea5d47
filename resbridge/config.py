from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from .protocol import RESISTANCE_TAG
from .transport.serial import RECONNECT_DELAY_S, SERIAL_BAUD_RATE

ENV_PREFIX = "RESBRIDGE_"
DEFAULT_SERIAL_PORT = "/dev/ttyACM0"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_HTTP_PORT = 3000
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class BridgeConfig:
    serial_port: str = DEFAULT_SERIAL_PORT
    baud_rate: int = SERIAL_BAUD_RATE
    host: str = DEFAULT_HOST
    http_port: int = DEFAULT_HTTP_PORT
    reconnect_delay: float = RECONNECT_DELAY_S
    tag: str = RESISTANCE_TAG
    log_level: str = DEFAULT_LOG_LEVEL

    def validate(self) -> None:
        if not self.serial_port:
            raise ValueError("Serial port path must not be empty")
        if self.baud_rate <= 0:
            raise ValueError("Baud rate must be greater than zero")
        if not 0 < self.http_port < 65536:
            raise ValueError("HTTP port must be between 1 and 65535")
        if self.reconnect_delay < 0:
            raise ValueError("Reconnect delay must not be negative")
        if not self.tag or ":" in self.tag or any(ch.isspace() for ch in self.tag):
            raise ValueError(f"Invalid command tag: {self.tag!r}")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level: {self.log_level}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BridgeConfig":
        env = os.environ if environ is None else environ
        config = cls(
            serial_port=env.get(ENV_PREFIX + "SERIAL_PORT", DEFAULT_SERIAL_PORT),
            baud_rate=_env_number(env, "BAUD_RATE", int, SERIAL_BAUD_RATE),
            host=env.get(ENV_PREFIX + "HOST", DEFAULT_HOST),
            http_port=_env_number(env, "HTTP_PORT", int, DEFAULT_HTTP_PORT),
            reconnect_delay=_env_number(env, "RECONNECT_DELAY", float, RECONNECT_DELAY_S),
            tag=env.get(ENV_PREFIX + "TAG", RESISTANCE_TAG),
            log_level=env.get(ENV_PREFIX + "LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )
        config.validate()
        return config

    def with_overrides(self, **overrides: Any) -> "BridgeConfig":
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        config = replace(self, **changes)
        config.validate()
        return config


def _env_number(env: Mapping[str, str], name: str, kind: type, default: Any) -> Any:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return kind(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from exc
