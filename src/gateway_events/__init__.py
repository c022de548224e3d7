"""Typed event ingestion for the Discord real-time gateway."""

__version__ = "0.1.0"
