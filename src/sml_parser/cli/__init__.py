"""Command-line interface module for SML Parser.

This module provides the ``sml`` tool for parsing reports, formatting,
validation and conversion of SML files.
"""

from .main import main

__all__ = ["main"]
