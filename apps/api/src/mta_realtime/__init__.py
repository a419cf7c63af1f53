"""MTA Realtime Feed API."""

__version__ = "0.1.0"
