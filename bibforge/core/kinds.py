"""Entry kinds and their required-field schemas."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum, unique

import msgspec

from .exceptions import InvalidKindError

# Characters that end an identifier in BibTeX source.
_IDENTIFIER_STOP = frozenset(" \t\r\n\f\v\"#%'(),={}@")

RESERVED_TYPES = frozenset({"comment", "preamble", "string"})


@unique
class EntryKind(Enum):
    """Known entry kinds, each with a fixed required-field schema."""

    ARTICLE = "article"
    BOOK = "book"
    BOOKLET = "booklet"
    BOOK_CHAPTER = "book chapter"
    BOOK_PAGES = "book pages"
    BOOK_SECTION = "book section"
    IN_PROCEEDINGS = "in proceedings"
    MANUAL = "manual"
    MASTER_THESIS = "master thesis"
    PHD_THESIS = "phd thesis"
    PROCEEDINGS = "proceedings"
    TECH_REPORT = "tech report"
    UNPUBLISHED = "unpublished"

    @property
    def label(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


class CustomKind(msgspec.Struct, frozen=True):
    """Any kind outside the known set. Only requires a title.

    The name doubles as the BibTeX entry type, so it must be a lowercase
    BibTeX identifier that names neither a known kind nor one of the
    @string, @comment and @preamble commands.

    Raises:
        InvalidKindError: If the name cannot be written and read back as
            the same custom kind.
    """

    name: str

    def __post_init__(self):
        name = self.name
        if (
            not name
            or name != name.lower()
            or name.isdigit()
            or any(c in _IDENTIFIER_STOP for c in name)
        ):
            raise InvalidKindError(name, "not a valid BibTeX entry type")
        if name in RESERVED_TYPES:
            raise InvalidKindError(name, f"@{name} is a BibTeX command")
        known = TYPE_ALIASES.get(name) or _KIND_LOOKUP.get(_compact(name))
        if known is not None:
            raise InvalidKindError(name, f"already names the {known} kind")

    @property
    def label(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.name


Kind = EntryKind | CustomKind

# Declaration order matters: missing fields are reported in this order.
REQUIRED_FIELDS: dict[EntryKind, tuple[str, ...]] = {
    EntryKind.ARTICLE: ("author", "title", "journal", "year"),
    EntryKind.BOOK: ("author", "title", "publisher", "year"),
    EntryKind.BOOKLET: ("title",),
    EntryKind.BOOK_CHAPTER: ("author", "title", "chapter", "publisher", "year"),
    EntryKind.BOOK_PAGES: ("author", "title", "pages", "publisher", "year"),
    EntryKind.BOOK_SECTION: ("author", "title", "booktitle", "publisher", "year"),
    EntryKind.IN_PROCEEDINGS: ("author", "title", "booktitle", "year"),
    EntryKind.MANUAL: ("title",),
    EntryKind.MASTER_THESIS: ("author", "title", "school", "year"),
    EntryKind.PHD_THESIS: ("author", "title", "school", "year"),
    EntryKind.PROCEEDINGS: ("title", "year"),
    EntryKind.TECH_REPORT: ("author", "title", "institution", "year"),
    EntryKind.UNPUBLISHED: ("author", "title"),
}

CUSTOM_REQUIRED_FIELDS: tuple[str, ...] = ("title",)


def _compact(text: str) -> str:
    return "".join(c for c in text.lower() if c.isalnum())


_KIND_LOOKUP: dict[str, EntryKind] = {}
for _kind in EntryKind:
    _KIND_LOOKUP[_compact(_kind.value)] = _kind
    _KIND_LOOKUP[_compact(_kind.name)] = _kind

# BibTeX entry type names. @inbook also covers book pages; see
# bibforge.bibtex.mapping.kind_for_type for the split.
TYPE_ALIASES: dict[str, EntryKind] = {
    "article": EntryKind.ARTICLE,
    "book": EntryKind.BOOK,
    "booklet": EntryKind.BOOKLET,
    "inbook": EntryKind.BOOK_CHAPTER,
    "incollection": EntryKind.BOOK_SECTION,
    "inproceedings": EntryKind.IN_PROCEEDINGS,
    "conference": EntryKind.IN_PROCEEDINGS,
    "manual": EntryKind.MANUAL,
    "mastersthesis": EntryKind.MASTER_THESIS,
    "masterthesis": EntryKind.MASTER_THESIS,
    "phdthesis": EntryKind.PHD_THESIS,
    "proceedings": EntryKind.PROCEEDINGS,
    "techreport": EntryKind.TECH_REPORT,
    "report": EntryKind.TECH_REPORT,
    "unpublished": EntryKind.UNPUBLISHED,
}


def parse_kind(text: str | Kind) -> Kind:
    """Map a user supplied kind name to a known kind or a custom one.

    Spacing, underscores and case are ignored, so ``"book chapter"``,
    ``"BOOK_CHAPTER"`` and ``"bookchapter"`` all name the same kind.
    BibTeX type names are accepted too: ``"incollection"`` is a book
    section and ``"inbook"`` a book chapter. Anything else becomes a
    lowercase :class:`CustomKind`.

    Raises:
        InvalidKindError: If the name is reserved or not a valid custom kind.
    """
    if isinstance(text, EntryKind | CustomKind):
        return text

    name = text.strip().lower()
    known = TYPE_ALIASES.get(name) or _KIND_LOOKUP.get(_compact(name))
    if known is not None:
        return known
    return CustomKind(name)


def required_fields(kind: Kind, extra: Iterable[str] = ()) -> tuple[str, ...]:
    """Return the required field names for a kind in declaration order.

    Args:
        kind: Known or custom kind.
        extra: Additional required names appended after the base schema.
            Names already required are ignored.

    Returns:
        Tuple of lowercase field names without duplicates.
    """
    if isinstance(kind, EntryKind):
        base = REQUIRED_FIELDS[kind]
    else:
        base = CUSTOM_REQUIRED_FIELDS

    result = list(base)
    for name in extra:
        normal = name.strip().lower()
        if normal and normal not in result:
            result.append(normal)
    return tuple(result)
