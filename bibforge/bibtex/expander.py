"""Second pass over a parsed BibTeX file.

Walks the parsed items in file order, expanding ``@string`` variables and
``#`` concatenations with the variable table as it stands at each item, so
a variable must be defined before it is used. Crossrefs are resolved only
after every entry is expanded, so a child may reference a parent that
appears later in the file. Inherited fields are copied eagerly and the
``crossref`` field is kept.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from bibforge.core.exceptions import (
    BibError,
    DanglingCrossrefError,
    DuplicateKeyError,
    UnresolvedVariableError,
)
from bibforge.core.models import Biblio, Entry
from bibforge.core.values import MONTH_NAMES, FieldValue, month_number, normalized_month

from .mapping import kind_for_type
from .parser import ParsedFile, PieceType, RawEntry, RawValue, StringDefinition

logger = logging.getLogger(__name__)


class StringTable:
    """Case-insensitive @string variables, seeded with the month macros."""

    def __init__(self):
        self._predefined = dict(MONTH_NAMES)
        self._defined: dict[str, FieldValue] = {}

    def define(self, name: str, value: FieldValue) -> None:
        self._defined[name.lower()] = value

    def lookup(self, name: str) -> FieldValue | None:
        normal = name.lower()
        if normal in self._defined:
            return self._defined[normal]
        if normal in self._predefined:
            return FieldValue.from_text(self._predefined[normal])
        return None

    def is_user_defined(self, name: str) -> bool:
        return name.lower() in self._defined

    def as_dict(self) -> dict[str, str]:
        return {name: value.text for name, value in self._defined.items()}


@dataclass
class ExpansionResult:
    """Resolved entries plus everything that went wrong."""

    biblio: Biblio
    errors: list[BibError] = field(default_factory=list)
    strings: dict[str, str] = field(default_factory=dict)


class BibtexExpander:
    """Turn a :class:`ParsedFile` into a :class:`Biblio`."""

    def __init__(self, parsed: ParsedFile):
        self.parsed = parsed
        self.strings = StringTable()
        self.errors: list[BibError] = list(parsed.errors)

    def expand(self) -> ExpansionResult:
        expanded: list[tuple[RawEntry, Entry]] = []

        for item in self.parsed.items:
            try:
                if isinstance(item, StringDefinition):
                    self.strings.define(item.name, self.expand_value(item.value, None))
                else:
                    expanded.append((item, self.expand_entry(item)))
            except UnresolvedVariableError as e:
                self.errors.append(e)
                logger.warning("%s", e)

        entries = self.resolve_crossrefs(expanded)

        biblio = Biblio()
        for raw, entry in entries:
            try:
                biblio.add(entry)
            except DuplicateKeyError:
                line, column = self.parsed.location(raw.offset)
                self.errors.append(DuplicateKeyError(entry.key, line, column))
                logger.warning("Duplicate citation key %s, keeping the first", entry.key)

        self.errors.sort(key=lambda error: getattr(error, "line", 0))
        return ExpansionResult(
            biblio=biblio, errors=self.errors, strings=self.strings.as_dict()
        )

    def expand_value(self, raw: RawValue, key: str | None) -> FieldValue:
        """Concatenate the operands of a raw value."""
        parts = []
        for piece in raw.pieces:
            if piece.type is PieceType.VARIABLE:
                value = self.strings.lookup(piece.text)
                if value is None:
                    line, column = self.parsed.location(piece.offset)
                    raise UnresolvedVariableError(piece.text, line, column, key)
                parts.extend(value.parts)
            else:
                parts.append(piece.text)
        return FieldValue(tuple(parts))

    def expand_entry(self, raw: RawEntry) -> Entry:
        fields: dict[str, FieldValue] = {}
        for name, raw_value in raw.fields.items():
            month = self._bare_month(raw_value) if name == "month" else None
            if month is not None:
                fields[name] = normalized_month(month)
            else:
                fields[name] = self.expand_value(raw_value, raw.key)

        entry = Entry(key=raw.key, kind=kind_for_type(raw.entry_type, fields), fields=fields)
        normalize_dates(entry)
        return entry

    def _bare_month(self, raw: RawValue) -> int | None:
        """Month number for a bare ``mar`` or ``3``, else None."""
        text = raw.pieces[0].text
        if raw.is_single_number:
            number = int(text)
            return number if 1 <= number <= 12 else None
        if raw.is_single_variable and not self.strings.is_user_defined(text):
            return month_number(text)
        return None

    def resolve_crossrefs(
        self, expanded: list[tuple[RawEntry, Entry]]
    ) -> list[tuple[RawEntry, Entry]]:
        """Merge parent fields into every entry with a crossref.

        Chains are followed from the nearest parent outwards; a field is only
        inherited when no closer entry defines it. Entries whose crossref
        points nowhere are dropped and reported.
        """
        by_key: dict[str, Entry] = {}
        for _, entry in expanded:
            by_key.setdefault(entry.key.lower(), entry)

        inherited: list[tuple[RawEntry, Entry, dict[str, FieldValue]]] = []
        resolved = []
        for raw, entry in expanded:
            parents = self._ancestors(entry, by_key)
            if parents is None:
                target = entry.get_field("crossref").text.strip()
                line, column = self.parsed.location(raw.offset)
                self.errors.append(DanglingCrossrefError(target, line, column, entry.key))
                logger.warning("Entry %s references missing entry %s", entry.key, target)
                continue

            additions = {}
            for parent in parents:
                for name, value in parent.items():
                    if not entry.has_field(name) and name not in additions:
                        additions[name] = value
            if additions:
                inherited.append((raw, entry, additions))
            resolved.append((raw, entry))

        # Apply after the walk so no entry sees a sibling's inherited fields.
        for raw, entry, additions in inherited:
            for name, value in additions.items():
                entry.set_field(name, value)
            # @inbook splits on pages and chapter, which may be inherited.
            entry.kind = kind_for_type(raw.entry_type, entry.fields)

        return resolved

    def _ancestors(self, entry: Entry, by_key: dict[str, Entry]) -> list[Entry] | None:
        """Crossref chain above an entry, nearest first; None if it dangles."""
        chain: list[Entry] = []
        seen = {entry.key.lower()}
        current = entry

        while True:
            reference = current.get_field("crossref")
            if reference is None or reference.is_empty():
                return chain
            target = reference.text.strip().lower()
            if target in seen:
                logger.warning("Crossref cycle at %s -> %s", current.key, target)
                return chain
            parent = by_key.get(target)
            if parent is None:
                # Only the entry's own reference counts as dangling.
                return None if current is entry else chain
            chain.append(parent)
            seen.add(target)
            current = parent


def normalize_dates(entry: Entry) -> None:
    """Split a ``date`` field into year, month and day.

    Parts the entry already defines are kept. A ``date`` that does not look
    like ``YYYY[-MM[-DD]]`` is left untouched.
    """
    date = entry.get_field("date")
    if date is None:
        return

    parts = date.date_parts()
    if parts is None:
        logger.warning("Entry %s has an unrecognized date %r", entry.key, date.text)
        return

    if not entry.has_field("year"):
        entry.set_field("year", str(parts.year))
    if parts.month is not None and not entry.has_field("month"):
        entry.set_field("month", normalized_month(parts.month))
    if parts.day is not None and not entry.has_field("day"):
        entry.set_field("day", str(parts.day))
    entry.remove_field("date")


def expand(parsed: ParsedFile) -> ExpansionResult:
    return BibtexExpander(parsed).expand()
