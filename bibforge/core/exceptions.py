"""Exception classes for bibliography handling.

Parse-time failures are collected rather than raised so that one broken
entry never hides the rest of a file; the same classes are raised directly
by the collection and resolver operations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import MissingRequiredFields


class BibError(Exception):
    """Base exception for all bibliography errors."""

    pass


class ParseError(BibError):
    """Structural or semantic failure tied to a location in the source."""

    def __init__(
        self,
        message: str,
        line: int = 0,
        column: int = 0,
        cite_key: str | None = None,
    ):
        self.message = message
        self.line = line
        self.column = column
        self.cite_key = cite_key
        super().__init__(message)

    def __str__(self) -> str:
        location = f"Line {self.line}, column {self.column}"
        if self.cite_key:
            return f"{location} ({self.cite_key}): {self.message}"
        return f"{location}: {self.message}"


class MalformedEntryError(ParseError):
    """Raised for unbalanced delimiters, missing keys or missing closing braces."""

    pass


class UnresolvedVariableError(ParseError):
    """Raised when a field references an undefined @string variable."""

    def __init__(
        self,
        variable: str,
        line: int = 0,
        column: int = 0,
        cite_key: str | None = None,
    ):
        self.variable = variable
        super().__init__(f"Undefined string variable: {variable}", line, column, cite_key)


class DanglingCrossrefError(ParseError):
    """Raised when a crossref field names a key that is not in the file."""

    def __init__(
        self,
        target: str,
        line: int = 0,
        column: int = 0,
        cite_key: str | None = None,
    ):
        self.target = target
        super().__init__(f"Cross-referenced entry not found: {target}", line, column, cite_key)


class DuplicateKeyError(BibError, ValueError):
    """Raised when a citation key is already taken."""

    def __init__(self, key: str, line: int = 0, column: int = 0):
        self.key = key
        self.cite_key = key
        self.line = line
        self.column = column
        super().__init__(f"Duplicate citation key: {key}")

    def __str__(self) -> str:
        if self.line:
            return f"Line {self.line}, column {self.column}: Duplicate citation key: {self.key}"
        return f"Duplicate citation key: {self.key}"


class InvalidKindError(BibError, ValueError):
    """Raised when a custom kind name cannot be used as a BibTeX entry type."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid entry kind '{name}': {reason}")


class NotFoundError(BibError, LookupError):
    """Raised when a citation key is not present."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Entry not found: {key}")


class UnresolvedEntryError(BibError):
    """Raised when required fields cannot be supplied for an entry."""

    def __init__(self, diagnostic: MissingRequiredFields):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.render())


class BibliographyParseError(BibError):
    """Aggregate of the per-entry errors collected while parsing a file."""

    def __init__(self, errors: list[Any]):
        self.errors = list(errors)
        lines = [f"{len(self.errors)} error(s) while parsing bibliography"]
        lines.extend(f"  {error}" for error in self.errors)
        super().__init__("\n".join(lines))


class ConfigError(BibError, ValueError):
    """Raised when a configuration file cannot be loaded."""

    pass
