"""dsk - disk usage and free space across Linux, macOS and Windows."""

__version__ = "0.1.0"
