"""Data models for dsk.

This module exports the core data structures used throughout the application.
"""

from dsk.models.mount import DeviceType, Mount

__all__ = ["DeviceType", "Mount"]
