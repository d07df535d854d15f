"""
CLI layer for staffing-cache.

Provides a Typer application whose commands delegate to the cache and
domain packages. This package handles only terminal transport: argument
parsing, coloured output and table formatting.

Entry point::

    staffing --help
"""

from staffing.cli.app import app

__all__ = ["app"]
