"""Bundled data files for dsk."""
