"""Pytest fixtures for CLI tests."""

from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture
def cli_runner():
    """Click CLI test runner that invokes the bibforge group."""

    class BibforgeCliRunner(CliRunner):
        def invoke(self, args, **kwargs):  # type: ignore
            from bibforge.cli.main import cli

            if isinstance(args, list):
                return super().invoke(cli, [str(arg) for arg in args], **kwargs)
            return super().invoke(args, **kwargs)

    return BibforgeCliRunner()


@pytest.fixture
def bib_file(tmp_path: Path) -> Path:
    """A bibliography with one complete and one incomplete entry."""
    path = tmp_path / "refs.bib"
    path.write_text(
        "@book{SteveMcConnell2004,\n"
        "  author = {Steve McConnell},\n"
        "  title = {Code Complete},\n"
        "  publisher = {DV-Professional},\n"
        "  year = {2004},\n"
        "  isbn = {0735619670}\n"
        "}\n"
        "\n"
        "@article{knuth1984,\n"
        "  title = {Literate Programming},\n"
        "  author = {Donald E. Knuth}\n"
        "}\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def complete_file(tmp_path: Path) -> Path:
    path = tmp_path / "complete.bib"
    path.write_text(
        "@misc{site, title = {A Site}, url = {https://example.org}}\n"
        "@book{b, author = {A}, title = {B}, publisher = {P}, year = 2000}\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def broken_file(tmp_path: Path) -> Path:
    path = tmp_path / "broken.bib"
    path.write_text(
        "@book{broken,\n  title = {X}\n\n@misc{ok, title = {Y}}\n",
        encoding="utf-8",
    )
    return path
