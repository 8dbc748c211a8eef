"""Gamescope session launcher with automatic display capability detection."""

__version__ = "0.3.0"
