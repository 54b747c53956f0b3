"""CLI package for dsk.

This package contains the Typer application.
"""

from dsk.cli.main import app

__all__ = ["app"]
