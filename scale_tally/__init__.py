"""Scale Tally Station: serial weighing, label printing and Tally sync."""

__version__ = "1.0.0"
