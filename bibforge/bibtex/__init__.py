"""BibTeX reading and writing.

Parsing runs in two passes: :mod:`.parser` turns text into raw entries and
``@string`` definitions, then :mod:`.expander` expands variables and merges
crossrefs into a :class:`~bibforge.core.models.Biblio`.
"""

from bibforge.bibtex.encoder import BibtexEncoder
from bibforge.bibtex.expander import BibtexExpander, ExpansionResult, expand
from bibforge.bibtex.lexer import BibtexLexer, Token, TokenType
from bibforge.bibtex.mapping import bibtex_type, kind_for_type
from bibforge.bibtex.parser import BibtexParser, ParsedFile

__all__ = [
    "BibtexEncoder",
    "BibtexExpander",
    "BibtexLexer",
    "BibtexParser",
    "ExpansionResult",
    "ParsedFile",
    "Token",
    "TokenType",
    "bibtex_type",
    "expand",
    "kind_for_type",
]
