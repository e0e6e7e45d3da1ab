"""End-to-end tests for the BibTeX format."""

import pytest

from bibforge.core.exceptions import BibliographyParseError, MalformedEntryError
from bibforge.core.kinds import CustomKind, EntryKind, parse_kind
from bibforge.core.models import Biblio, Entry
from bibforge.core.resolver import Resolver
from bibforge.formats import BibtexFormat, get_format


@pytest.fixture
def bibtex() -> BibtexFormat:
    return BibtexFormat()


@pytest.fixture
def sample_biblio() -> Biblio:
    """Resolved entries without crossrefs or variables."""
    thesis = Entry(
        key="wild2016",
        kind=EntryKind.PHD_THESIS,
        fields={
            "author": "Sebastian Wild",
            "title": "Dual-Pivot {Quicksort} and Beyond",
            "school": "TU Kaiserslautern",
            "year": "2016",
            "month": "8",
        },
    )
    pages = Entry(
        key="knuth-pages",
        kind=EntryKind.BOOK_PAGES,
        fields={
            "author": ["Donald E. Knuth"],
            "title": "The Art of Computer Programming",
            "pages": "1--10",
            "publisher": "Addison-Wesley",
            "year": "1997",
        },
    )
    chapter = Entry(
        key="knuth-chapter",
        kind=EntryKind.BOOK_CHAPTER,
        fields={
            "author": "Donald E. Knuth",
            "title": "The Art of Computer Programming",
            "chapter": "5",
            "publisher": "Addison-Wesley",
            "year": "1998",
            "note": r"See also \url{https://example.org/~knuth}, 100\% sure",
        },
    )
    online = Entry(key="site", kind=CustomKind("online"), fields={"title": "A Site"})
    article = Entry(
        key="dijkstra68",
        kind=EntryKind.ARTICLE,
        fields={
            "author": "Edsger W. Dijkstra",
            "title": "Go To Statement Considered Harmful",
            "journal": "Communications of the {ACM}",
            "year": "1968",
            "month": "Spring",
            "volume": 11,
        },
    )
    return Biblio([thesis, pages, chapter, online, article])


class TestRoundTrip:
    """parse(write(biblio)) gives back the same entries."""

    def test_round_trip(self, bibtex: BibtexFormat, sample_biblio: Biblio) -> None:
        result = bibtex.parse(bibtex.write(sample_biblio))

        assert result.ok
        assert result.biblio == sample_biblio

    def test_round_trip_is_stable(self, bibtex: BibtexFormat, sample_biblio: Biblio) -> None:
        once = bibtex.write(sample_biblio)
        twice = bibtex.write(bibtex.parse(once).biblio)
        assert once == twice

    def test_round_trip_with_other_settings(self, sample_biblio: Biblio) -> None:
        bibtex = BibtexFormat(indent=8, group_headers=False)
        assert bibtex.parse(bibtex.write(sample_biblio)).biblio == sample_biblio

    @pytest.mark.parametrize(
        "name",
        [
            "inbook",
            "incollection",
            "conference",
            "report",
            "mastersthesis",
            "phd thesis",
            "web-page",
            "data_set",
        ],
    )
    def test_kind_names_round_trip(self, bibtex: BibtexFormat, name: str) -> None:
        """An entry keeps its kind whichever name it was created with."""
        entry = Entry(key="k", kind=parse_kind(name), fields={"title": "T"})
        result = bibtex.parse(bibtex.write(Biblio([entry])))

        assert result.ok
        assert result.biblio.get("k") == entry

    def test_book_pages_with_chapter_reads_as_chapter(self, bibtex: BibtexFormat) -> None:
        """Both kinds are @inbook; a chapter field decides the kind on reading."""
        entry = Entry(
            key="k",
            kind=EntryKind.BOOK_PAGES,
            fields={"title": "T", "pages": "1--9", "chapter": "2"},
        )
        written = bibtex.write(Biblio([entry]))

        assert written.startswith("% inbook\n@inbook{k,")
        assert bibtex.parse(written).biblio.get("k").kind is EntryKind.BOOK_CHAPTER

    def test_expanded_output_is_self_contained(self, bibtex: BibtexFormat) -> None:
        text = (
            '@string{pub = "Springer"}\n'
            "@comment{ignored}\n"
            "@book{child, crossref = {parent}, title = {Child}, author = {A}}\n"
            "@book{parent, publisher = pub, year = 2001, title = {Parent}}\n"
        )
        written = bibtex.write(bibtex.parse(text).biblio)

        assert "@string" not in written
        assert "@comment" not in written
        assert "publisher = {Springer}" in written
        assert written.count("publisher = {Springer}") == 2
        assert "crossref = {parent}" in written


class TestProperties:
    """Behaviour of the complete pipeline."""

    def test_mcconnell(self, bibtex: BibtexFormat) -> None:
        text = (
            "@book{SteveMcConnell2004, author={Steve McConnell}, title={Code Complete}, "
            "publisher={DV-Professional}, year={2004}, isbn={0735619670}}"
        )
        result = bibtex.parse(text)
        entry = result.biblio.get("SteveMcConnell2004")

        assert result.ok
        assert entry.kind is EntryKind.BOOK
        for name in ("author", "title", "publisher", "year"):
            assert entry.has_field(name)
        assert Resolver().missing_fields(entry) == []

    def test_variable_expansion(self, bibtex: BibtexFormat) -> None:
        result = bibtex.parse('@string{lazy = "Sebastian"}\n@misc{k, author = lazy # " Wild"}')
        assert result.biblio.get("k").get_field("author") == "Sebastian Wild"
        assert result.strings == {"lazy": "Sebastian"}

    def test_forward_crossref(self, bibtex: BibtexFormat) -> None:
        text = "@book{b, crossref = {a}, title={X}}\n@book{a, author={Y}, year={2020}}"
        b = bibtex.parse(text).biblio.get("b")

        assert b.get_field("author") == "Y"
        assert b.get_field("year") == "2020"
        assert b.get_field("title") == "X"

    def test_partial_file(self, bibtex: BibtexFormat) -> None:
        text = "@book{broken,\n  title = {X}\n\n@book{ok, title = {Y}}\n"
        result = bibtex.parse(text)

        assert not result.ok
        assert len(result.errors) == 1
        assert isinstance(result.errors[0], MalformedEntryError)
        assert result.biblio.keys() == ["ok"]

        with pytest.raises(BibliographyParseError) as exc_info:
            result.raise_for_errors()
        assert exc_info.value.errors == result.errors

    def test_collects_comments_and_preambles(self, bibtex: BibtexFormat) -> None:
        result = bibtex.parse('@comment{note}\n@preamble{"x"}\n')
        assert result.comments == ["note"]
        assert result.preambles == ['"x"']
        assert result.raise_for_errors() == Biblio()


class TestFiles:
    """Test reading and writing files."""

    def test_write_and_read(self, tmp_path, bibtex: BibtexFormat, sample_biblio: Biblio) -> None:
        path = tmp_path / "refs.bib"
        bibtex.write_file(sample_biblio, path)

        assert bibtex.read_file(path).biblio == sample_biblio

    def test_latin1_fallback(self, tmp_path, bibtex: BibtexFormat) -> None:
        path = tmp_path / "old.bib"
        path.write_bytes("@misc{k, title = {Caf\xe9}}".encode("latin-1"))

        assert bibtex.read_file(path).biblio.get("k").title == "Caf\xe9"

    def test_write_entry(self, bibtex: BibtexFormat) -> None:
        entry = Entry(key="k", kind=EntryKind.BOOKLET, fields={"title": "T"})
        assert bibtex.write_entry(entry) == "@booklet{k,\n  title = {T}\n}\n"


class TestRegistry:
    """Test format lookup."""

    @pytest.mark.parametrize("name", ["bibtex", "BibTeX", "bib", ".bib"])
    def test_lookup(self, name: str) -> None:
        assert isinstance(get_format(name), BibtexFormat)

    def test_options(self) -> None:
        assert get_format("bib", indent=4).encoder.indent == "    "

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown bibliography format"):
            get_format("ris")
