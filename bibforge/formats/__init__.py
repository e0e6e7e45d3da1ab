"""Bibliography file formats."""

from typing import Any

from bibforge.formats.base import Format, ParseResult
from bibforge.formats.bibtex import BibtexFormat

FORMATS: dict[str, type[Format]] = {
    BibtexFormat.name: BibtexFormat,
}


def get_format(name: str, **options: Any) -> Format:
    """Look up a format by name or file extension.

    Args:
        name: Format name (``"bibtex"``) or extension (``"bib"``, ``".bib"``).
        **options: Passed to the format's constructor.

    Raises:
        ValueError: If no format matches.
    """
    normal = name.lower().lstrip(".")
    for format_class in FORMATS.values():
        if normal in (format_class.name, format_class.extension):
            return format_class(**options)
    raise ValueError(f"Unknown bibliography format: {name}")


__all__ = ["FORMATS", "BibtexFormat", "Format", "ParseResult", "get_format"]
