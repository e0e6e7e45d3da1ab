"""Tests for kind <-> BibTeX type mapping."""

import pytest

from bibforge.bibtex.mapping import bibtex_type, kind_for_type
from bibforge.core.kinds import CustomKind, EntryKind


class TestKindForType:
    """Test reading entry types."""

    @pytest.mark.parametrize(
        "entry_type, kind",
        [
            ("article", EntryKind.ARTICLE),
            ("BOOK", EntryKind.BOOK),
            ("incollection", EntryKind.BOOK_SECTION),
            ("conference", EntryKind.IN_PROCEEDINGS),
            ("masterthesis", EntryKind.MASTER_THESIS),
            ("mastersthesis", EntryKind.MASTER_THESIS),
            ("report", EntryKind.TECH_REPORT),
        ],
    )
    def test_known_types(self, entry_type: str, kind: EntryKind) -> None:
        assert kind_for_type(entry_type) is kind

    def test_inbook_with_pages_only(self) -> None:
        assert kind_for_type("inbook", {"pages", "title"}) is EntryKind.BOOK_PAGES

    @pytest.mark.parametrize("fields", [{"chapter"}, {"chapter", "pages"}, set()])
    def test_inbook_defaults_to_chapter(self, fields: set[str]) -> None:
        assert kind_for_type("inbook", fields) is EntryKind.BOOK_CHAPTER

    def test_unknown_type(self) -> None:
        assert kind_for_type("Misc") == CustomKind("misc")

    def test_kind_name_spelling(self) -> None:
        """A type spelled like a kind name reads as that kind."""
        assert kind_for_type("tech_report") is EntryKind.TECH_REPORT


class TestBibtexType:
    """Test writing entry types."""

    def test_every_kind_round_trips(self) -> None:
        for kind in EntryKind:
            fields = {"pages"} if kind is EntryKind.BOOK_PAGES else {"chapter"}
            assert kind_for_type(bibtex_type(kind), fields) is kind

    def test_custom_kind(self) -> None:
        assert bibtex_type(CustomKind("web-page")) == "web-page"
        assert kind_for_type("web-page") == CustomKind("web-page")
