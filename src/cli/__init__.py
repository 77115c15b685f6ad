"""Olimpus command-line interface."""

from olimpus import __version__

__all__ = ["__version__"]
