"""Weighing validation."""

from .validator import WeightValidator

__all__ = ["WeightValidator"]
