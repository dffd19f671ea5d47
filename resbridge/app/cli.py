from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from ..config import BridgeConfig
from ..errors import EnumerationFailure
from ..transport import list_ports_blocking
from .diagnostics import configure_logging, emit_startup_warnings
from .server import build_service, create_app


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="resbridge: forward resistance updates from a browser extension to an Arduino over serial."
    )
    parser.add_argument("--serial", metavar="PATH", help="Serial port path (e.g. /dev/ttyACM0, COM3)")
    parser.add_argument("--baud", type=int, help="Serial baud rate")
    parser.add_argument("--host", help="HTTP listen address")
    parser.add_argument("--port", type=int, help="HTTP listen port")
    parser.add_argument("--reconnect-delay", type=float, metavar="SECONDS", help="Delay before reconnecting")
    parser.add_argument("--tag", help="Command tag for control updates")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)")
    parser.add_argument("--list-ports", action="store_true", help="List available serial ports and exit")
    parser.epilog = "Defaults come from RESBRIDGE_* environment variables."
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> BridgeConfig:
    return BridgeConfig.from_env().with_overrides(
        serial_port=args.serial,
        baud_rate=args.baud,
        host=args.host,
        http_port=args.port,
        reconnect_delay=args.reconnect_delay,
        tag=args.tag,
        log_level=args.log_level,
    )


def print_ports() -> int:
    try:
        ports = list_ports_blocking()
    except EnumerationFailure as exc:
        print(f"Failed to list ports: {exc}", file=sys.stderr)
        return 2
    if not ports:
        print("No serial ports found")
    for port in ports:
        details = ", ".join(part for part in (port.manufacturer, port.serial_number) if part)
        print(f"{port.path} ({details})" if details else port.path)
    return 0


def serve(config: BridgeConfig) -> int:
    import uvicorn

    emit_startup_warnings(config)
    app = create_app(build_service(config), config=config)
    uvicorn.run(
        app,
        host=config.host,
        port=config.http_port,
        log_level=config.log_level.lower(),
        log_config=None,
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.list_ports:
        return print_ports()
    try:
        config = load_config(args)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    configure_logging(config.log_level)
    return serve(config)


if __name__ == "__main__":
    raise SystemExit(main())
