from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from ..errors import EnumerationFailure


@dataclass(frozen=True)
class PortInfo:
    path: str
    manufacturer: Optional[str] = None
    serial_number: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "manufacturer": self.manufacturer,
            "serialNumber": self.serial_number,
        }


def _comports() -> Iterable:
    try:
        from serial.tools import list_ports
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("pyserial is required. Install with: pip install pyserial") from exc
    return list_ports.comports()


def list_ports_blocking(comports: Callable[[], Iterable] = _comports) -> List[PortInfo]:
    try:
        found = list(comports())
    except Exception as exc:
        raise EnumerationFailure(str(exc) or exc.__class__.__name__) from exc
    ports = [
        PortInfo(
            path=port.device,
            manufacturer=getattr(port, "manufacturer", None),
            serial_number=getattr(port, "serial_number", None),
        )
        for port in found
    ]
    ports.sort(key=lambda item: item.path)
    return ports


async def list_ports(comports: Callable[[], Iterable] = _comports) -> List[PortInfo]:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, list_ports_blocking, comports)
