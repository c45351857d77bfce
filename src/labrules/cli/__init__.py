"""
CLI layer for labrules.

Provides a Typer application with sub-commands that delegate to the
operations layer (``labrules.ops``).  This package handles only terminal
transport: argument parsing, coloured output and table formatting.

Entry point::

    labrules --help
"""

from labrules.cli.app import app

__all__ = ["app"]
