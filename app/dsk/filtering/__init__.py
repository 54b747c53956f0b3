"""Mount filtering.

This module exports the filter options and the filter engine entry points.
"""

from dsk.filtering.engine import apply, filter_by_paths, should_include
from dsk.filtering.options import FilterOptions, parse_comma_separated, parse_device_types

__all__ = [
    "FilterOptions",
    "apply",
    "filter_by_paths",
    "parse_comma_separated",
    "parse_device_types",
    "should_include",
]
