"""Serial weight acquisition."""

from .serial_engine import SerialAcquisitionEngine, parse_weight

__all__ = ["SerialAcquisitionEngine", "parse_weight"]
