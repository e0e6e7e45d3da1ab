"""Mapping between entry kinds and BibTeX entry type names."""

from collections.abc import Container

from bibforge.core.kinds import EntryKind, Kind, parse_kind

BIBTEX_TYPES: dict[EntryKind, str] = {
    EntryKind.ARTICLE: "article",
    EntryKind.BOOK: "book",
    EntryKind.BOOKLET: "booklet",
    EntryKind.BOOK_CHAPTER: "inbook",
    EntryKind.BOOK_PAGES: "inbook",
    EntryKind.BOOK_SECTION: "incollection",
    EntryKind.IN_PROCEEDINGS: "inproceedings",
    EntryKind.MANUAL: "manual",
    EntryKind.MASTER_THESIS: "mastersthesis",
    EntryKind.PHD_THESIS: "phdthesis",
    EntryKind.PROCEEDINGS: "proceedings",
    EntryKind.TECH_REPORT: "techreport",
    EntryKind.UNPUBLISHED: "unpublished",
}


def bibtex_type(kind: Kind) -> str:
    """BibTeX entry type used when writing an entry of this kind."""
    if isinstance(kind, EntryKind):
        return BIBTEX_TYPES[kind]
    return kind.name


def kind_for_type(entry_type: str, field_names: Container[str] = ()) -> Kind:
    """Kind for a parsed BibTeX entry type.

    ``@inbook`` covers both chapter and page-range references: it is a book
    pages entry when it has ``pages`` but no ``chapter``, otherwise a book
    chapter. Other types resolve like a kind name, so aliases such as
    ``@conference`` give their known kind.
    """
    entry_type = entry_type.lower()
    if entry_type == "inbook":
        if "pages" in field_names and "chapter" not in field_names:
            return EntryKind.BOOK_PAGES
        return EntryKind.BOOK_CHAPTER
    return parse_kind(entry_type)
