"""Utility modules for dsk.

This module exports commonly used utility functions.
"""

from dsk.utils.formatting import (
    console,
    err_console,
    format_size,
    parse_size,
    print_error,
    print_warning,
)
from dsk.utils.wildcard import match, match_any

__all__ = [
    "console",
    "err_console",
    "format_size",
    "match",
    "match_any",
    "parse_size",
    "print_error",
    "print_warning",
]
