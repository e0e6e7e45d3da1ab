"""Format contract shared by bibliography file formats."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from bibforge.core.exceptions import BibError, BibliographyParseError
from bibforge.core.models import Biblio, Entry

logger = logging.getLogger(__name__)


@dataclass
class ParseResult:
    """Entries that parsed cleanly plus the per-entry errors.

    A result with errors still carries every entry that could be read.
    """

    biblio: Biblio
    errors: list[BibError] = field(default_factory=list)
    strings: dict[str, str] = field(default_factory=dict)
    comments: list[str] = field(default_factory=list)
    preambles: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> Biblio:
        """Return the bibliography, or raise if any entry failed.

        Raises:
            BibliographyParseError: Carrying every collected error.
        """
        if self.errors:
            raise BibliographyParseError(self.errors)
        return self.biblio


class Format(ABC):
    """Abstract base class for bibliography formats."""

    name: str = ""
    extension: str = ""

    @abstractmethod
    def parse(self, text: str) -> ParseResult:
        """Parse text into a bibliography, collecting per-entry errors."""
        pass

    @abstractmethod
    def write_entry(self, entry: Entry) -> str:
        """Render a single entry."""
        pass

    @abstractmethod
    def write(self, biblio: Biblio) -> str:
        """Render a whole bibliography."""
        pass

    def read_text(self, path: Path) -> str:
        """Read a file as UTF-8, falling back to Latin-1."""
        path = Path(path)
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            logger.info("%s is not valid UTF-8, reading as Latin-1", path)
            return path.read_text(encoding="latin-1")

    def read_file(self, path: Path) -> ParseResult:
        return self.parse(self.read_text(path))

    def write_file(self, biblio: Biblio, path: Path) -> None:
        path = Path(path)
        path.write_text(self.write(biblio), encoding="utf-8")
        logger.debug("Wrote %d entries to %s", len(biblio), path)
