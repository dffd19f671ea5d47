from __future__ import annotations

import logging
import os

from ..config import BridgeConfig

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

ENDPOINTS = (
    ("POST", "/update", "Receive resistance data"),
    ("GET", "/status", "Check server status"),
    ("GET", "/test/{resistance}", "Test with resistance (0-100)"),
    ("GET", "/ports", "List available serial ports"),
    ("GET", "/ping", "Ping Arduino"),
)

logger = logging.getLogger("resbridge")


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def emit_startup_warnings(config: BridgeConfig) -> None:
    path = config.serial_port
    if os.name == "posix" and path.startswith("/dev/") and not os.path.exists(path):
        logger.warning("Serial port %s does not exist yet; will keep retrying", path)
        logger.warning("Use --list-ports to see available devices")


def emit_startup_banner(config: BridgeConfig) -> None:
    rule = "=" * 60
    logger.info(rule)
    logger.info("Arduino bridge server started")
    logger.info("Server running on http://%s:%s", config.host, config.http_port)
    logger.info("Target Arduino port: %s @ %s baud", config.serial_port, config.baud_rate)
    logger.info("Available endpoints:")
    for method, path, summary in ENDPOINTS:
        logger.info("  %-4s %-20s - %s", method, path, summary)
    logger.info(rule)
