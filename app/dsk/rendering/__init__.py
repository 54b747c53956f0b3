"""Renderers for mount lists.

This module exports the table renderer, the plain-text and HTML exports and the
column helpers they share.
"""

from dsk.rendering.columns import Column, parse_columns, parse_sort, sort_mounts
from dsk.rendering.export import to_csv, to_html, to_json, to_markdown
from dsk.rendering.table import (
    TableOptions,
    build_tables,
    parse_avail_thresholds,
    parse_usage_thresholds,
    print_tables,
)

__all__ = [
    "Column",
    "TableOptions",
    "build_tables",
    "parse_avail_thresholds",
    "parse_columns",
    "parse_sort",
    "parse_usage_thresholds",
    "print_tables",
    "sort_mounts",
    "to_csv",
    "to_html",
    "to_json",
    "to_markdown",
]
