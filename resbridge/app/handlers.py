from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..errors import EnumerationFailure, LinkUnavailable, ValidationError, WriteFailure
from ..protocol import (
    RESISTANCE_TAG,
    encode_control_value,
    format_command,
    is_number,
    parse_test_value,
    ping_command,
)
from ..transport import LinkState, PortInfo, SerialLink, list_ports

logger = logging.getLogger(__name__)

NOT_CONNECTED_TIP = "Check if Arduino is plugged in and server restarted"

PortLister = Callable[[], Awaitable[List[PortInfo]]]


@dataclass
class BridgeResponse:
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)


def _error(status_code: int, message: str, **extra: Any) -> BridgeResponse:
    body: Dict[str, Any] = {"success": False, "error": message}
    body.update(extra)
    return BridgeResponse(status_code, body)


def _unavailable() -> BridgeResponse:
    logger.warning("Arduino not connected - cannot send data")
    return _error(503, "Arduino not connected", tip=NOT_CONNECTED_TIP)


class BridgeService:
    """Turns bridge requests into serial writes and maps outcomes to responses.

    The service only reads link state; connecting and reconnecting belong to
    the SerialLink.
    """

    def __init__(
        self,
        link: SerialLink,
        tag: str = RESISTANCE_TAG,
        port_lister: Optional[PortLister] = None,
    ) -> None:
        self.link = link
        self.tag = tag
        self._port_lister = port_lister or list_ports

    async def _deliver(self, data: bytes) -> Optional[BridgeResponse]:
        """Write to the link; return the error response, or None once written."""
        if not self.link.is_open():
            return _unavailable()
        try:
            await self.link.write(data)
        except LinkUnavailable:
            return _unavailable()
        except WriteFailure as exc:
            logger.error("Write error: %s", exc)
            return _error(500, f"Failed to write to Arduino: {exc}")
        return None

    async def handle_update(self, body: Any) -> BridgeResponse:
        if not isinstance(body, dict):
            return _error(400, "Request body must be a JSON object")
        tokens = body.get("tokens")
        resistance = body.get("resistance")
        try:
            value = encode_control_value(tokens=tokens, resistance=resistance)
        except ValidationError as exc:
            return _error(400, str(exc))
        logger.info("Received update: %s%% resistance (%s tokens)", value, tokens)

        command = format_command(value, self.tag)
        failure = await self._deliver(command.to_bytes())
        if failure is not None:
            return failure
        logger.info("Sent to Arduino: %s", command.text)
        return BridgeResponse(
            200,
            {
                "success": True,
                "resistance": value,
                "tokens": tokens if is_number(tokens) else None,
                "command": command.text,
            },
        )

    def handle_status(self) -> BridgeResponse:
        connected = self.link.state is LinkState.CONNECTED
        return BridgeResponse(
            200,
            {
                "success": True,
                "server": "running",
                "arduino": "connected" if connected else "disconnected",
                "port": self.link.port,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    async def handle_test(self, raw: str) -> BridgeResponse:
        try:
            value = parse_test_value(raw)
        except ValidationError as exc:
            return _error(400, str(exc))
        command = format_command(value, self.tag)
        failure = await self._deliver(command.to_bytes())
        if failure is not None:
            return failure
        logger.info("Test: sent %s", command.text)
        return BridgeResponse(200, {"success": True, "command": command.text})

    async def handle_ping(self) -> BridgeResponse:
        failure = await self._deliver(ping_command())
        if failure is not None:
            return failure
        logger.info("Sent PING to Arduino")
        return BridgeResponse(200, {"success": True, "message": "Ping sent"})

    async def handle_list_ports(self) -> BridgeResponse:
        try:
            ports = await self._port_lister()
        except EnumerationFailure as exc:
            logger.error("Port listing failed: %s", exc)
            return _error(500, str(exc))
        logger.info("Available ports: %s", ", ".join(port.path for port in ports) or "none")
        return BridgeResponse(200, {"success": True, "ports": [port.to_dict() for port in ports]})
