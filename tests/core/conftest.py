"""Shared fixtures for core module tests."""

import pytest

from bibforge.core.kinds import EntryKind
from bibforge.core.models import Biblio, Entry
from bibforge.core.resolver import Resolver


@pytest.fixture
def book_entry() -> Entry:
    """A complete book entry."""
    return Entry(
        key="SteveMcConnell2004",
        kind=EntryKind.BOOK,
        fields={
            "author": "Steve McConnell",
            "title": "Code Complete",
            "publisher": "DV-Professional",
            "year": "2004",
            "isbn": "0735619670",
        },
    )


@pytest.fixture
def incomplete_article() -> Entry:
    """An article lacking journal and year."""
    return Entry(
        key="knuth1984",
        kind=EntryKind.ARTICLE,
        fields={"title": "Literate Programming", "author": "Donald E. Knuth"},
    )


@pytest.fixture
def biblio(book_entry: Entry, incomplete_article: Entry) -> Biblio:
    return Biblio([book_entry, incomplete_article])


@pytest.fixture
def resolver() -> Resolver:
    return Resolver()
