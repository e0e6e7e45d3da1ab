"""Field values and date handling.

A field value keeps the pieces it was concatenated from (BibTeX ``#``) but
compares and renders by its joined text. Values hold BibTeX source text, so
inner braces and LaTeX escapes are kept verbatim.
"""

from __future__ import annotations

import calendar
import re
from collections.abc import Iterable

import msgspec

MONTH_MACROS = (
    "jan",
    "feb",
    "mar",
    "apr",
    "may",
    "jun",
    "jul",
    "aug",
    "sep",
    "oct",
    "nov",
    "dec",
)

MONTH_NAMES = {
    "jan": "January",
    "feb": "February",
    "mar": "March",
    "apr": "April",
    "may": "May",
    "jun": "June",
    "jul": "July",
    "aug": "August",
    "sep": "September",
    "oct": "October",
    "nov": "November",
    "dec": "December",
}

NAME_FIELDS = frozenset({"author", "editor", "translator", "bookauthor"})

_DATE_PATTERN = re.compile(r"^\s*(\d{4})(?:[-/](\d{1,2})(?:[-/](\d{1,2}))?)?\s*$")
_NAME_SEPARATOR = re.compile(r"\s+and\s+")


class DateParts(msgspec.Struct, frozen=True):
    """Year, month and day decomposed from a date value."""

    year: int
    month: int | None = None
    day: int | None = None


class FieldValue(msgspec.Struct, frozen=True, eq=False):
    """Immutable text value of an entry field."""

    parts: tuple[str, ...] = ()

    @classmethod
    def from_text(cls, text: str | int) -> FieldValue:
        return cls((str(text),))

    @classmethod
    def from_names(cls, names: Iterable[str]) -> FieldValue:
        """Join person names with the BibTeX ``and`` separator."""
        return cls((" and ".join(name.strip() for name in names if name.strip()),))

    @classmethod
    def coerce(cls, value: FieldValue | str | int | Iterable[str]) -> FieldValue:
        """Build a value from the loosely typed inputs accepted by entries."""
        if isinstance(value, FieldValue):
            return value
        if isinstance(value, str | int):
            return cls.from_text(value)
        return cls.from_names(value)

    @property
    def text(self) -> str:
        return "".join(self.parts)

    def is_empty(self) -> bool:
        return not self.text.strip()

    def names(self) -> tuple[str, ...]:
        """Split a name list on ``and`` outside braces.

        ``{Barnes and Noble}`` stays a single corporate name.
        """
        text = self.text
        names = []
        depth = 0
        start = 0
        pos = 0
        while pos < len(text):
            char = text[pos]
            if char == "\\":
                pos += 2
                continue
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
            elif depth == 0:
                match = _NAME_SEPARATOR.match(text, pos)
                if match and pos > start and text[pos].isspace():
                    names.append(text[start:pos].strip())
                    start = match.end()
                    pos = match.end()
                    continue
            pos += 1
        names.append(text[start:].strip())
        return tuple(name for name in names if name)

    def date_parts(self) -> DateParts | None:
        """Decompose ``YYYY``, ``YYYY-MM`` or ``YYYY-MM-DD`` text.

        Returns:
            The parts, or None when the text is not a recognizable date or
            the month/day is out of range.
        """
        match = _DATE_PATTERN.match(self.text)
        if not match:
            return None

        year = int(match.group(1))
        month = int(match.group(2)) if match.group(2) else None
        day = int(match.group(3)) if match.group(3) else None

        if month is not None and not 1 <= month <= 12:
            return None
        if day is not None and not 1 <= day <= calendar.monthrange(year, month)[1]:
            return None
        return DateParts(year=year, month=month, day=day)

    def __add__(self, other: object) -> FieldValue:
        if isinstance(other, FieldValue):
            return FieldValue(self.parts + other.parts)
        if isinstance(other, str):
            return FieldValue(self.parts + (other,))
        return NotImplemented

    def __radd__(self, other: object) -> FieldValue:
        if isinstance(other, str):
            return FieldValue((other,) + self.parts)
        return NotImplemented

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FieldValue):
            return self.text == other.text
        if isinstance(other, str):
            return self.text == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.text)

    def __str__(self) -> str:
        return self.text

    def __bool__(self) -> bool:
        return not self.is_empty()


def month_number(macro: str) -> int | None:
    """Return 1-12 for a three-letter month macro, else None."""
    try:
        return MONTH_MACROS.index(macro.strip().lower()) + 1
    except ValueError:
        return None


def month_macro(value: FieldValue | str) -> str | None:
    """Return the macro for a normalized month value (``"3"`` -> ``"mar"``)."""
    text = str(value).strip()
    if text.isdigit() and 1 <= int(text) <= 12 and text == str(int(text)):
        return MONTH_MACROS[int(text) - 1]
    return None


def normalized_month(number: int) -> FieldValue:
    return FieldValue.from_text(str(number))
