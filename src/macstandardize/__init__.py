"""Standardize per-user macOS preferences and Dock layout at enrollment time."""

__version__ = "1.2.0"
