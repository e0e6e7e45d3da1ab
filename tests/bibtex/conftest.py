"""Shared fixtures for BibTeX tests."""

import pytest

from bibforge.bibtex.parser import BibtexParser


@pytest.fixture
def parser() -> BibtexParser:
    return BibtexParser()


@pytest.fixture
def mcconnell_bibtex() -> str:
    return (
        "@book{SteveMcConnell2004,\n"
        "  author = {Steve McConnell},\n"
        "  title = {Code Complete},\n"
        "  publisher = {DV-Professional},\n"
        "  year = {2004},\n"
        "  isbn = {0735619670}\n"
        "}\n"
    )
