"""Thermal label printing."""

from .label_renderer import LabelRenderer

__all__ = ["LabelRenderer"]
