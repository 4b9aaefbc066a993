"""Utility modules."""

from .logger import setup_logger
from .io_handler import RecordStore

__all__ = ["setup_logger", "RecordStore"]
