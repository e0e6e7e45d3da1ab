"""BibTeX implementation of the format contract."""

from __future__ import annotations

from bibforge.bibtex.encoder import BibtexEncoder
from bibforge.bibtex.expander import expand
from bibforge.bibtex.parser import BibtexParser
from bibforge.core.models import Biblio, Entry

from .base import Format, ParseResult


class BibtexFormat(Format):
    """Read and write ``.bib`` files."""

    name = "bibtex"
    extension = "bib"

    def __init__(self, indent: int = 2, group_headers: bool = True):
        self.encoder = BibtexEncoder(indent=indent, group_headers=group_headers)

    def parse(self, text: str) -> ParseResult:
        parsed = BibtexParser().parse(text)
        expansion = expand(parsed)
        return ParseResult(
            biblio=expansion.biblio,
            errors=expansion.errors,
            strings=expansion.strings,
            comments=parsed.comments,
            preambles=parsed.preambles,
        )

    def write_entry(self, entry: Entry) -> str:
        return self.encoder.encode_entry(entry) + "\n"

    def write(self, biblio: Biblio) -> str:
        return self.encoder.encode(biblio)
