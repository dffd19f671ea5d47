from .ports import PortInfo, list_ports, list_ports_blocking
from .serial import RECONNECT_DELAY_S, SERIAL_BAUD_RATE, LinkState, SerialLink

__all__ = [
    "LinkState",
    "list_ports",
    "list_ports_blocking",
    "PortInfo",
    "RECONNECT_DELAY_S",
    "SERIAL_BAUD_RATE",
    "SerialLink",
]
