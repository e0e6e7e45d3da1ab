"""Command line interface for bibforge.

A thin, non-interactive layer over the core: every missing value is
supplied through options or configuration, never by prompting.
"""

from bibforge.cli.main import cli

__all__ = ["cli"]
