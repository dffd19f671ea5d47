from __future__ import annotations

import asyncio
import enum
import logging
from typing import Awaitable, Callable, Optional, Tuple

from ..errors import ConnectFailure, LinkUnavailable, WriteFailure

SERIAL_BAUD_RATE = 115200
RECONNECT_DELAY_S = 5.0

logger = logging.getLogger(__name__)

StreamPair = Tuple[asyncio.StreamReader, asyncio.StreamWriter]
Opener = Callable[..., Awaitable[StreamPair]]


class LinkState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


def _default_opener(url: str, baudrate: int) -> Awaitable[StreamPair]:
    try:
        import serial_asyncio
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("pyserial-asyncio is required. Install with: pip install pyserial-asyncio") from exc
    return serial_asyncio.open_serial_connection(url=url, baudrate=baudrate)


class SerialLink:
    """Owns the serial device stream and drives open/close/reconnect.

    State changes only through the ``handle_*`` transition methods, which the
    open attempt and the reader task invoke. A close (or a failed open)
    schedules exactly one reconnect after ``reconnect_delay`` seconds; an
    error on its own only logs.
    """

    def __init__(
        self,
        port: str,
        baud_rate: int = SERIAL_BAUD_RATE,
        reconnect_delay: float = RECONNECT_DELAY_S,
        opener: Optional[Opener] = None,
    ) -> None:
        self._port = port
        self._baud_rate = baud_rate
        self._reconnect_delay = reconnect_delay
        self._opener = opener or _default_opener
        self._state = LinkState.DISCONNECTED
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._connect_task: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._write_lock: Optional[asyncio.Lock] = None
        self._closed = False

    @property
    def port(self) -> str:
        return self._port

    @property
    def baud_rate(self) -> int:
        return self._baud_rate

    @property
    def state(self) -> LinkState:
        return self._state

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    def is_open(self) -> bool:
        return self._state is LinkState.CONNECTED

    async def start(self) -> None:
        self._closed = False
        self.connect()

    def connect(self) -> None:
        """Start one open attempt in the background; the result arrives as a transition."""
        if self._closed or self._state is LinkState.CONNECTED:
            return
        if self._connect_task is not None and not self._connect_task.done():
            return
        self._state = LinkState.CONNECTING
        logger.info("Attempting to connect to %s...", self._port)
        self._connect_task = asyncio.get_running_loop().create_task(self._open())

    async def _open(self) -> None:
        try:
            reader, writer = await self._opener(url=self._port, baudrate=self._baud_rate)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            failure = ConnectFailure(f"Failed to open {self._port}: {exc}")
            logger.error("%s", failure)
            logger.info("Tip: check that the port is correct and the device is plugged in")
            self._state = LinkState.DISCONNECTED
            self._schedule_reconnect()
            return
        self.handle_open(reader, writer)

    def handle_open(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        if self._closed:
            self._state = LinkState.DISCONNECTED
            writer.close()
            return
        self._reader = reader
        self._writer = writer
        self._state = LinkState.CONNECTED
        logger.info("Device connected on %s", self._port)
        self._reader_task = asyncio.get_running_loop().create_task(self._read_loop(reader))

    def handle_error(self, exc: BaseException) -> None:
        self._state = LinkState.DISCONNECTED
        logger.error("Serial connection error: %s", exc)

    def handle_close(self) -> None:
        self._state = LinkState.DISCONNECTED
        self._release_stream()
        if self._closed:
            return
        logger.warning("Device disconnected from %s", self._port)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._closed or self.reconnect_pending:
            return
        logger.info("Will attempt to reconnect in %g seconds...", self._reconnect_delay)
        self._reconnect_task = asyncio.get_running_loop().create_task(self._reconnect_after_delay())

    async def _reconnect_after_delay(self) -> None:
        await asyncio.sleep(self._reconnect_delay)
        self._reconnect_task = None
        self.connect()

    async def _read_loop(self, reader: asyncio.StreamReader) -> None:
        try:
            while True:
                line = await reader.readline()
                if not line:
                    break
                text = line.decode("ascii", errors="ignore").strip()
                if text:
                    logger.info("Device: %s", text)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.handle_error(exc)
        if reader is self._reader:
            self.handle_close()

    def _release_stream(self) -> None:
        reader_task = self._reader_task
        if reader_task is not None and reader_task is not asyncio.current_task():
            reader_task.cancel()
        self._reader_task = None
        writer = self._writer
        self._reader = None
        self._writer = None
        if writer is not None and not writer.is_closing():
            writer.close()

    async def write(self, data: bytes) -> None:
        """Write one line and wait for it to drain.

        Raises LinkUnavailable when the link is not open and WriteFailure when
        the I/O fails. A write failure leaves the link state untouched.
        """
        if self._write_lock is None:
            self._write_lock = asyncio.Lock()
        async with self._write_lock:
            writer = self._writer
            if not self.is_open() or writer is None:
                raise LinkUnavailable("Arduino not connected")
            try:
                writer.write(data)
                await writer.drain()
            except Exception as exc:
                raise WriteFailure(str(exc) or exc.__class__.__name__) from exc

    async def close(self) -> None:
        """Cancel pending attempts and close the device handle."""
        self._closed = True
        tasks = [self._reconnect_task, self._connect_task, self._reader_task]
        self._reconnect_task = None
        self._connect_task = None
        self._reader_task = None
        for task in tasks:
            if task is not None and not task.done():
                task.cancel()
        for task in tasks:
            if task is None:
                continue
            try:
                await task
            except asyncio.CancelledError:
                pass
        writer = self._writer
        self._state = LinkState.DISCONNECTED
        self._release_stream()
        if writer is not None:
            logger.info("Closing connection to %s", self._port)
            try:
                await writer.wait_closed()
            except Exception as exc:
                logger.debug("Ignoring error while closing %s: %s", self._port, exc)
