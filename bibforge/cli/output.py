"""CLI output utilities."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from bibforge.core.models import MissingRequiredFields

# Global console instances, replaced by the main group from --no-color
console = Console()
error_console = Console(stderr=True)


def configure(no_color: bool = False, width: int | None = None) -> None:
    """Recreate the consoles with the given settings."""
    global console, error_console
    console = create_console(no_color=no_color, width=width)
    error_console = create_console(no_color=no_color, width=width, stderr=True)


def create_console(
    no_color: bool = False, width: int | None = None, stderr: bool = False
) -> Console:
    """Create Rich console with appropriate settings."""
    return Console(
        no_color=no_color,
        width=width or 120,
        highlight=not no_color,
        color_system=None if no_color else "auto",
        stderr=stderr,
    )


def print_success(message: str) -> None:
    """Print success message.

    Args:
        message: Success message
    """
    console.print(f"✅ {escape(message)}", style="green", soft_wrap=True)


def print_error(message: str) -> None:
    """Print error message to stderr.

    Args:
        message: Error message
    """
    error_console.print(f"❌ {escape(message)}", style="red", soft_wrap=True)


def print_warning(message: str) -> None:
    error_console.print(f"⚠️  {escape(message)}", style="yellow", soft_wrap=True)


def print_missing(diagnostic: MissingRequiredFields) -> None:
    """Print a missing-fields diagnostic verbatim to stderr."""
    error_console.print(
        escape(diagnostic.render()),
        end="",
        emoji=False,
        highlight=False,
        soft_wrap=True,
    )


def print_hint(option: str) -> None:
    error_console.print(
        f"hint: consider supplying the missing fields with {option} name=value.",
        highlight=False,
        emoji=False,
        soft_wrap=True,
    )
