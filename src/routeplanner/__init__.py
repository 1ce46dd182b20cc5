"""Route planning service for amusement machine operators."""

__version__ = "0.1.0"
