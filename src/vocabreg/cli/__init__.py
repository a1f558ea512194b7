"""
CLI layer for the vocabulary registry.

Provides a Typer application whose sub-commands delegate to
``vocabreg.workflow``; this package handles only terminal transport:
argument parsing, coloured output and table formatting.

Entry point::

    vocabreg --help
"""

from vocabreg.cli.app import app

__all__ = ["app"]
