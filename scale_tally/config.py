"""Configuration settings for the scale-to-Tally station.

This module centralizes configuration values and settings
for easy maintenance and extension. Values that differ per
installation can be overridden through environment variables
or a local ``.env`` file.
"""

import os
from pathlib import Path
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration."""

    # Application info
    APP_NAME = "Scale Tally Station"
    VERSION = "1.0.0"

    # Logging
    LOG_LEVEL = os.getenv("SCALE_TALLY_LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    # Serial acquisition (TI-10 style indicator: 8N1, push-on-print)
    DEFAULT_BAUD_RATE = int(os.getenv("SCALE_TALLY_BAUD_RATE", "9600"))
    SERIAL_READ_TIMEOUT_MS = int(os.getenv("SCALE_TALLY_READ_TIMEOUT_MS", "30000"))
    SERIAL_POLL_INTERVAL_S = 0.2
    FRAME_MAX_BYTES = 15
    FALLBACK_PORTS = [
        ('COM3', 'Fallback - Try if valid'),
        ('COM4', 'Fallback - Try if valid'),
        ('COM1', 'System Port'),
    ]

    # Weight bounds
    MIN_SCALE_READING = Decimal('0')
    MAX_SCALE_READING = Decimal('99999')
    DEFAULT_WEIGHT_UNIT = "kg"

    # Tally integration
    MIN_VOUCHER_QUANTITY = Decimal('0.001')
    VOUCHER_TIMEOUT_S = 5
    CONNECTION_PROBE_TIMEOUT_S = 2
    DEFAULT_GODOWN = "Main Location"

    # Label printing
    DEFAULT_PRINTER = os.getenv("SCALE_TALLY_PRINTER")
    LABEL_PRODUCT_WIDTH = 30
    LABEL_DATE_FORMAT = "%d/%m/%Y %H:%M:%S"

    # Paths (relative ones resolve against the working directory)
    DATA_DIR = Path(os.getenv("SCALE_TALLY_DATA_DIR", "data"))
    EXPORT_DIR = Path("output")

    @staticmethod
    def _resolve(path: Path) -> Path:
        return path if path.is_absolute() else Path.cwd() / path

    @classmethod
    def get_data_dir(cls) -> Path:
        """Get data directory, creating if it doesn't exist."""
        data_dir = cls._resolve(cls.DATA_DIR)
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    @classmethod
    def get_export_dir(cls) -> Path:
        """Get export directory, creating if it doesn't exist."""
        export_dir = cls._resolve(cls.EXPORT_DIR)
        export_dir.mkdir(parents=True, exist_ok=True)
        return export_dir
