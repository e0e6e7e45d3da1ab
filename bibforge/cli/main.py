"""Main CLI entry point and application setup."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path

import click
from click.exceptions import Exit

from bibforge import __version__
from bibforge.cli import output
from bibforge.config import Settings, load_config
from bibforge.core.exceptions import (
    BibError,
    DuplicateKeyError,
    NotFoundError,
    UnresolvedEntryError,
)
from bibforge.core.models import Biblio, Entry
from bibforge.core.resolver import Resolver, defaults_supplier
from bibforge.formats import Format, ParseResult, get_format


@dataclass
class Context:
    """CLI context that holds shared resources."""

    settings: Settings
    resolver: Resolver
    format: Format
    debug: bool = False


def setup_logging(
    verbose: bool = False, quiet: bool = False, debug: bool = False
) -> None:
    """Configure logging based on CLI flags."""
    if quiet:
        level = logging.ERROR
    elif verbose or debug:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s"
        if not debug
        else "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_assignments(
    ctx: click.Context, param: click.Parameter, values: tuple[str, ...]
) -> dict[str, str]:
    """Turn repeated ``NAME=VALUE`` options into a mapping."""
    result = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"expected NAME=VALUE, got {item!r}", ctx, param)
        result[name.strip().lower()] = value
    return result


class BibforgeGroup(click.Group):
    """Custom group that turns library errors into exit code 1."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except KeyboardInterrupt:
            output.print_warning("Interrupted")
            ctx.exit(130)
        except (click.ClickException, click.Abort, Exit, SystemExit):
            raise
        except BibError as e:
            debug = getattr(ctx.obj, "debug", False) if ctx.obj else False
            if debug:
                raise
            output.print_error(str(e))
            ctx.exit(1)


@click.group(cls=BibforgeGroup)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("--debug", is_flag=True, help="Enable debug mode with full tracebacks")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.version_option(
    version=__version__, prog_name="bibforge", message="bibforge version %(version)s"
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    no_color: bool,
    debug: bool,
    config: Path | None,
) -> None:
    """Check, complete and format BibTeX bibliographies."""
    setup_logging(verbose=verbose, quiet=quiet, debug=debug)
    output.configure(no_color=no_color)

    settings = load_config(config)
    ctx.obj = Context(
        settings=settings,
        resolver=Resolver(settings.required),
        format=get_format(
            "bibtex", indent=settings.indent, group_headers=settings.group_headers
        ),
        debug=debug,
    )


def read_biblio(ctx: click.Context, path: Path, missing_ok: bool = False) -> Biblio:
    """Parse a bibliography file, refusing to continue on parse errors.

    Files are rewritten from the parsed entries, so a file with broken
    entries is never modified.
    """
    if missing_ok and not path.exists():
        return Biblio()

    result = ctx.obj.format.read_file(path)
    if not result.ok:
        report_errors(result)
        output.print_error(f"{path}: fix the errors above before modifying the file")
        ctx.exit(1)
    return result.biblio


def report_errors(result: ParseResult) -> None:
    for error in result.errors:
        output.print_error(str(error))


def build_entry(
    ctx: click.Context,
    kind: str,
    key: str,
    values: dict[str, str],
    required: tuple[str, ...],
    source: Entry | None = None,
) -> Entry:
    """Create a complete entry or exit with the missing-fields diagnostic."""
    resolver: Resolver = ctx.obj.resolver
    entry = resolver.new_entry(kind, key, required)
    for name, value in values.items():
        resolver.resolve_field(entry, name, value)
    if source is not None:
        resolver.set_fields_from_entry(entry, source)

    try:
        resolver.resolve(entry, defaults_supplier(ctx.obj.settings.defaults))
    except UnresolvedEntryError as e:
        output.print_missing(e.diagnostic)
        output.print_hint("--set")
        ctx.exit(1)
    return entry


def add_and_write(ctx: click.Context, path: Path, biblio: Biblio, entry: Entry) -> None:
    try:
        biblio.add(entry)
    except DuplicateKeyError as e:
        output.print_error(str(e))
        ctx.exit(1)
    ctx.obj.format.write_file(biblio, path)
    output.print_success(f"Added {entry.key} to {path}")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--default",
    "-d",
    "defaults",
    multiple=True,
    callback=parse_assignments,
    metavar="NAME=VALUE",
    help="Value for a missing required field (repeatable)",
)
@click.option("--fix", is_flag=True, help="Write the completed entries back")
@click.pass_context
def check(ctx: click.Context, file: Path, defaults: dict[str, str], fix: bool) -> None:
    """Report parse errors and entries missing required fields."""
    result: ParseResult = ctx.obj.format.read_file(file)
    report_errors(result)

    biblio = result.biblio
    resolver: Resolver = ctx.obj.resolver
    supplier = defaults_supplier({**ctx.obj.settings.defaults, **defaults})

    incomplete = []
    filled = 0
    for entry in biblio.unresolved(resolver):
        candidate = entry.copy()
        try:
            resolver.resolve(candidate, supplier)
        except UnresolvedEntryError as e:
            incomplete.append(e.diagnostic)
            continue
        entry.fields.update(candidate.fields)
        filled += 1

    for diagnostic in incomplete:
        output.print_missing(diagnostic)
    if incomplete:
        output.print_hint("--default")

    if fix and filled:
        if not result.ok:
            output.print_error(f"{file}: not rewriting a file with parse errors")
            ctx.exit(1)
        if incomplete:
            output.print_warning(f"{file}: not rewriting while entries are still incomplete")
        else:
            ctx.obj.format.write_file(biblio, file)
            output.print_success(f"Completed {filled} entries in {file}")

    if not result.ok or incomplete:
        ctx.exit(1)
    output.print_success(f"{file}: {len(biblio)} entries, all complete")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write to this file instead of rewriting FILE",
)
@click.option("--check", "check_only", is_flag=True, help="Only report whether FILE would change")
@click.pass_context
def fmt(ctx: click.Context, file: Path, output_path: Path | None, check_only: bool) -> None:
    """Rewrite a bibliography in normalized form."""
    biblio = read_biblio(ctx, file)
    text = ctx.obj.format.write(biblio)

    if check_only:
        current = ctx.obj.format.read_text(file)
        if current != text:
            output.print_warning(f"{file} would be reformatted")
            ctx.exit(1)
        output.print_success(f"{file} is already formatted")
        return

    target = output_path or file
    target.write_text(text, encoding="utf-8")
    output.print_success(f"Wrote {len(biblio)} entries to {target}")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("key")
@click.pass_context
def rm(ctx: click.Context, file: Path, key: str) -> None:
    """Remove the entry with citation KEY."""
    biblio = read_biblio(ctx, file)
    try:
        entry = biblio.remove(key)
    except NotFoundError as e:
        output.print_error(str(e))
        ctx.exit(1)
    ctx.obj.format.write_file(biblio, file)
    output.print_success(f"Removed {entry.key} from {file}")


@cli.command()
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("kind")
@click.argument("key")
@click.option(
    "--set",
    "-s",
    "values",
    multiple=True,
    callback=parse_assignments,
    metavar="NAME=VALUE",
    help="Field value (repeatable)",
)
@click.option(
    "--require",
    "-r",
    "required",
    multiple=True,
    help="Extra field to require for this entry (repeatable)",
)
@click.pass_context
def new(
    ctx: click.Context,
    file: Path,
    kind: str,
    key: str,
    values: dict[str, str],
    required: tuple[str, ...],
) -> None:
    """Add a new KIND entry with citation KEY to FILE.

    FILE is created if it does not exist. The entry is only added when all
    of its required fields are supplied.
    """
    biblio = read_biblio(ctx, file, missing_ok=True)
    entry = build_entry(ctx, kind, key, values, required)
    add_and_write(ctx, file, biblio, entry)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("source")
@click.argument("kind")
@click.argument("key")
@click.option(
    "--set",
    "-s",
    "values",
    multiple=True,
    callback=parse_assignments,
    metavar="NAME=VALUE",
    help="Field value (repeatable)",
)
@click.option(
    "--require",
    "-r",
    "required",
    multiple=True,
    help="Extra field to require for this entry (repeatable)",
)
@click.pass_context
def derive(
    ctx: click.Context,
    file: Path,
    source: str,
    kind: str,
    key: str,
    values: dict[str, str],
    required: tuple[str, ...],
) -> None:
    """Add a KIND entry KEY based on the existing entry SOURCE.

    Fields given with --set win; every other field is copied from SOURCE.
    """
    biblio = read_biblio(ctx, file)
    source_entry = biblio.get(source)
    if source_entry is None:
        raise NotFoundError(source)
    entry = build_entry(ctx, kind, key, values, required, source=source_entry)
    add_and_write(ctx, file, biblio, entry)


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
