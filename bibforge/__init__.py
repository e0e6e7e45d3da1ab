"""Bibliography entries with schema resolution and a BibTeX engine."""

__version__ = "0.1.0"
