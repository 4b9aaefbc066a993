"""Serial acquisition of weights from the scale indicator.

The indicator pushes a frame only after the operator presses PRINT (or
continuously in some modes); there is no request/response handshake.
The engine opens the port 8N1, listens passively, accumulates bytes into
frames and resolves on the first frame that yields a weight. Noisy or
partial frames are discarded silently.
"""

import asyncio
import logging
import re
import threading
import time
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple

import serial
from serial.tools import list_ports as serial_list_ports

from ..config import Config
from ..exceptions import AcquisitionTimeout, HardwareError
from ..models.schema import PortInfo, WeightReading
from .frames import FrameBuffer, FrameCleaner
from .patterns import COMPILED_PATTERNS

logger = logging.getLogger(__name__)


def parse_weight(token: str) -> Tuple[Decimal, str]:
    """
    Map an extracted weight token to a value and unit.

    Args:
        token: Token such as "12.5 kg" or "250 g"

    Returns:
        (value, unit); unit is 'g' when the token says so, else 'kg'.
        Unparseable tokens give (0, 'kg').
    """
    match = COMPILED_PATTERNS['token'][0].search(token or '')
    if not match:
        return Decimal('0'), Config.DEFAULT_WEIGHT_UNIT

    try:
        value = Decimal(re.sub(r'\s', '', match.group(1)))
    except InvalidOperation:
        value = Decimal('0')

    unit = 'g' if (match.group(2) or '').lower() == 'g' else Config.DEFAULT_WEIGHT_UNIT
    return value, unit


class SerialAcquisitionEngine:
    """
    Reads single weights from a serial scale.

    Each ``read_weight`` call owns the port for its duration: the handle is
    opened inside the call and closed on every exit path, including
    cancellation of the awaiting task.
    """

    def __init__(self, poll_interval: float = Config.SERIAL_POLL_INTERVAL_S):
        """
        Initialize the engine.

        Args:
            poll_interval: Serial read timeout in seconds; bounds how long a
                single read blocks before the deadline is re-checked
        """
        self.poll_interval = poll_interval
        self.cleaner = FrameCleaner()
        self.logger = logging.getLogger(self.__class__.__name__)

    def list_ports(self) -> List[PortInfo]:
        """
        Enumerate serial ports on the host.

        Falls back to a fixed list of common port names when nothing is
        detected, so the operator can still try a manual connection.
        """
        try:
            ports = [
                PortInfo(path=p.device, manufacturer=p.manufacturer, description=p.description)
                for p in serial_list_ports.comports()
            ]
        except Exception as e:
            self.logger.error(f"Error listing serial ports: {e}")
            ports = []

        if not ports:
            self.logger.warning("No ports detected. Providing fallback options.")
            return [PortInfo(path=path, manufacturer=label) for path, label in Config.FALLBACK_PORTS]

        self.logger.info(f"Detected {len(ports)} serial port(s): {[p.path for p in ports]}")
        return ports

    async def read_weight(
        self,
        path: str,
        baud_rate: int = Config.DEFAULT_BAUD_RATE,
        timeout_ms: Optional[int] = None
    ) -> WeightReading:
        """
        Wait for the next weight pushed by the scale.

        Args:
            path: Port name, e.g. "COM3" or "/dev/ttyUSB0"
            baud_rate: Line speed (default 9600)
            timeout_ms: Hard deadline for the whole read

        Returns:
            First successfully parsed WeightReading

        Raises:
            HardwareError: Port could not be opened or failed mid-read
            AcquisitionTimeout: No weight arrived before the deadline
        """
        timeout_s = (timeout_ms if timeout_ms is not None else Config.SERIAL_READ_TIMEOUT_MS) / 1000
        self.logger.info(f"Listening on {path} @ {baud_rate} baud (timeout {timeout_s:.1f}s)")

        # Worker threads cannot be cancelled; the flag ends the read loop instead
        stop = threading.Event()
        try:
            return await asyncio.to_thread(self._read_blocking, path, baud_rate, timeout_s, stop)
        except asyncio.CancelledError:
            stop.set()
            self.logger.info(f"Read on {path} cancelled, releasing port")
            raise

    def _open(self, path: str, baud_rate: int) -> serial.Serial:
        try:
            return serial.Serial(
                port=path,
                baudrate=baud_rate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.poll_interval,
            )
        except (serial.SerialException, ValueError) as e:
            self.logger.error(f"Port open FAILED for {path}: {e}")
            raise HardwareError(f"Failed to open port {path}: {e}") from e

    def _read_blocking(
        self, path: str, baud_rate: int, timeout_s: float, stop: Optional[threading.Event] = None
    ) -> WeightReading:
        stop = stop or threading.Event()
        deadline = time.monotonic() + timeout_s
        buffer = FrameBuffer()

        with self._open(path, baud_rate) as port:
            self.logger.info(f"Port {path} open. Waiting for PRINT on the scale...")

            while time.monotonic() < deadline and not stop.is_set():
                try:
                    chunk = port.read(port.in_waiting or 1)
                except serial.SerialException as e:
                    raise HardwareError(f"Serial port error on {path}: {e}") from e

                if not chunk:
                    continue

                self.logger.debug(f"RAW data: {chunk.hex()} | ASCII: {chunk!r}")
                buffer.feed(chunk)

                if not buffer.is_ready():
                    continue

                extracted = self.cleaner.extract(buffer.text)
                if extracted:
                    value, unit = extracted
                    reading = WeightReading(
                        value=value, unit=unit, raw=self.cleaner.clean(buffer.text)
                    )
                    self.logger.info(f"Parsed weight {reading.token} from {path}")
                    return reading

                self.logger.debug(f"Could not parse frame {buffer.text!r}, continuing to listen")
                buffer.clear()

        if stop.is_set():
            raise AcquisitionTimeout(f"Read on {path} was cancelled")

        raise AcquisitionTimeout(
            f"No weight data received on {path} within {timeout_s:.1f}s. "
            f"Press the PRINT button on the scale and try again."
        )

    def extract_weight(self, frame: str) -> Optional[str]:
        """Return the "<value> <unit>" token for a frame, or None."""
        extracted = self.cleaner.extract(frame)
        if extracted is None:
            return None
        value, unit = extracted
        return f"{value} {unit}"

    @staticmethod
    def parse_weight(token: str) -> Tuple[Decimal, str]:
        return parse_weight(token)
