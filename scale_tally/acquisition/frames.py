"""Frame accumulation and cleaning for raw scale bytes.

This module handles the byte-level side of acquisition:
- Accumulating chunks until a frame is ready
- Stripping control bytes
- Extracting a weight token from a cleaned frame
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

from ..config import Config
from .patterns import COMPILED_PATTERNS, CONTROL_CHARS, FRAME_DELIMITERS

logger = logging.getLogger(__name__)


class FrameBuffer:
    """
    Accumulates serial chunks until they form a candidate frame.

    A frame is ready when the buffer holds CR, LF or '=', or has grown
    to ``max_bytes``.
    """

    def __init__(self, max_bytes: int = Config.FRAME_MAX_BYTES):
        self.max_bytes = max_bytes
        self._data = ''

    def feed(self, chunk: bytes):
        self._data += chunk.decode('ascii', errors='ignore')

    def is_ready(self) -> bool:
        return (
            any(d in self._data for d in FRAME_DELIMITERS)
            or len(self._data) >= self.max_bytes
        )

    @property
    def text(self) -> str:
        return self._data

    def clear(self):
        self._data = ''

    def __len__(self):
        return len(self._data)


class FrameCleaner:
    """
    Turns a ready frame into a weight token.

    Uses the ordered patterns from patterns.py and bounds the value to the
    scale's plausible range.
    """

    def __init__(self):
        """Initialize the frame cleaner."""
        self.patterns = COMPILED_PATTERNS['weight']
        self.logger = logging.getLogger(self.__class__.__name__)

    def clean(self, raw: str) -> str:
        """
        Remove control characters but keep spaces for format detection.

        Args:
            raw: Accumulated frame text

        Returns:
            Cleaned, stripped frame text
        """
        return CONTROL_CHARS.sub('', raw).strip()

    def extract(self, raw: str) -> Optional[Tuple[Decimal, str]]:
        """
        Extract the weight value and unit from a frame.

        Args:
            raw: Accumulated frame text

        Returns:
            (value, unit) tuple, or None if no pattern yields a usable value
        """
        cleaned = self.clean(raw)

        if len(cleaned) < 2:
            return None

        for pattern in self.patterns:
            match = pattern.search(cleaned)
            if not match or not match.group(1):
                continue

            try:
                value = Decimal(match.group(1))
            except InvalidOperation:
                continue

            if Config.MIN_SCALE_READING <= value <= Config.MAX_SCALE_READING:
                unit = match.group(2) if match.lastindex and match.lastindex >= 2 else None
                unit = (unit or Config.DEFAULT_WEIGHT_UNIT).lower()
                self.logger.debug(f"Extracted {value} {unit} from {cleaned!r}")
                return value, unit

        return None
