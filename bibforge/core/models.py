"""Core data models for bibliography entries.

Key components:
- Entry: Mutable record of a kind, a citation key and its field values
- Biblio: Ordered collection of entries with unique citation keys
- MissingRequiredFields: Structured report of an incomplete entry
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Any

import msgspec

from .exceptions import DuplicateKeyError, NotFoundError
from .kinds import Kind, parse_kind
from .values import NAME_FIELDS, FieldValue

if TYPE_CHECKING:
    from .resolver import Resolver

logger = logging.getLogger(__name__)

ValueLike = FieldValue | str | int | Iterable[str]


class Entry(msgspec.Struct, kw_only=True, eq=False):
    """A single bibliographic record.

    Field names are case-insensitive and stored lowercase. Setting a field
    never validates it; completeness against the kind's schema is checked
    by :class:`bibforge.core.resolver.Resolver`.
    """

    key: str
    kind: Kind
    fields: dict[str, FieldValue] = msgspec.field(default_factory=dict)
    extra_required: tuple[str, ...] = ()

    def __post_init__(self):
        if isinstance(self.kind, str):
            self.kind = parse_kind(self.kind)
        if self.fields:
            self.fields = {
                name.lower(): FieldValue.coerce(value)
                for name, value in self.fields.items()
            }

    def set_field(self, name: str, value: ValueLike) -> None:
        """Set a field, replacing any existing value.

        A sequence of strings is treated as a list of names and joined with
        ``and`` (author and editor fields).
        """
        self.fields[name.lower()] = FieldValue.coerce(value)

    def get_field(self, name: str) -> FieldValue | None:
        return self.fields.get(name.lower())

    def has_field(self, name: str) -> bool:
        """Check whether a field is present with a non-empty value."""
        value = self.fields.get(name.lower())
        return value is not None and not value.is_empty()

    def remove_field(self, name: str) -> FieldValue | None:
        return self.fields.pop(name.lower(), None)

    def field_names(self) -> list[str]:
        return list(self.fields)

    def items(self) -> Iterator[tuple[str, FieldValue]]:
        return iter(self.fields.items())

    @property
    def title(self) -> str | None:
        value = self.fields.get("title")
        return value.text if value is not None else None

    @property
    def authors(self) -> tuple[str, ...]:
        """Parse the author field into individual names."""
        value = self.fields.get("author")
        return value.names() if value is not None else ()

    def names(self, name: str) -> tuple[str, ...]:
        """Split any name-list field (author, editor, ...) into names."""
        if name.lower() not in NAME_FIELDS:
            raise ValueError(f"Not a name field: {name}")
        value = self.fields.get(name.lower())
        return value.names() if value is not None else ()

    def copy(self, key: str | None = None) -> Entry:
        return Entry(
            key=key if key is not None else self.key,
            kind=self.kind,
            fields=dict(self.fields),
            extra_required=self.extra_required,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary of strings."""
        return {
            "key": self.key,
            "kind": str(self.kind),
            "fields": {name: value.text for name, value in self.fields.items()},
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return (
            self.key == other.key
            and self.kind == other.kind
            and self.fields == other.fields
        )


class MissingRequiredFields(msgspec.Struct, frozen=True):
    """Diagnostic for an entry lacking required fields.

    ``found`` keeps field insertion order and ``missing`` keeps schema
    order so the rendering is stable.
    """

    kind: str
    cite_key: str
    found: dict[str, str]
    missing: tuple[str, ...]

    def render(self) -> str:
        lines = [f"error: missing required fields in {self.kind} entry", "found:"]
        lines.extend(f"    {name}: {value}" for name, value in self.found.items())
        lines.append("missing:")
        lines.extend(f"    {name}" for name in self.missing)
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.render()


class Biblio:
    """Ordered collection of entries owned by one bibliography.

    Citation keys are unique, compared case-insensitively as BibTeX does,
    and insertion order is preserved.
    """

    def __init__(self, entries: Iterable[Entry] = ()):
        self._entries: dict[str, Entry] = {}
        for entry in entries:
            self.add(entry)

    @staticmethod
    def _normalize(key: str) -> str:
        return key.lower()

    def add(self, entry: Entry) -> None:
        """Append an entry.

        Raises:
            DuplicateKeyError: If the citation key is already present. The
                collection is left unchanged.
        """
        normal = self._normalize(entry.key)
        if normal in self._entries:
            raise DuplicateKeyError(entry.key)
        self._entries[normal] = entry
        logger.debug("Added entry %s", entry.key)

    def remove(self, key: str) -> Entry:
        """Remove and return the entry with this citation key.

        Raises:
            NotFoundError: If no entry has the key.
        """
        try:
            entry = self._entries.pop(self._normalize(key))
        except KeyError:
            raise NotFoundError(key) from None
        logger.debug("Removed entry %s", entry.key)
        return entry

    def get(self, key: str) -> Entry | None:
        return self._entries.get(self._normalize(key))

    def rename(self, old: str, new: str) -> Entry:
        """Change an entry's citation key keeping its position."""
        entry = self.get(old)
        if entry is None:
            raise NotFoundError(old)
        old_normal = self._normalize(old)
        new_normal = self._normalize(new)
        if new_normal != old_normal and new_normal in self._entries:
            raise DuplicateKeyError(new)

        entry.key = new
        self._entries = {
            (new_normal if k == old_normal else k): v for k, v in self._entries.items()
        }
        return entry

    def keys(self) -> list[str]:
        return [entry.key for entry in self._entries.values()]

    def entries(self) -> list[Entry]:
        return list(self._entries.values())

    def unresolved(self, resolver: Resolver | None = None) -> list[Entry]:
        """Entries that do not satisfy their kind's schema."""
        return [entry for entry, _ in self._diagnose(resolver)]

    def check(self, resolver: Resolver | None = None) -> list[MissingRequiredFields]:
        """Diagnostics for every incomplete entry, in insertion order."""
        return [diagnostic for _, diagnostic in self._diagnose(resolver)]

    def render_missing(self, resolver: Resolver | None = None) -> str:
        """Render every diagnostic followed by a hint, or an empty string."""
        diagnostics = self.check(resolver)
        if not diagnostics:
            return ""
        parts = [diagnostic.render() for diagnostic in diagnostics]
        parts.append(
            "hint: consider supplying the missing fields with --default name=value."
        )
        return "\n".join(parts)

    def _diagnose(
        self, resolver: Resolver | None
    ) -> list[tuple[Entry, MissingRequiredFields]]:
        if resolver is None:
            from .resolver import Resolver

            resolver = Resolver()

        results = []
        for entry in self._entries.values():
            diagnostic = resolver.diagnose(entry)
            if diagnostic is not None:
                results.append((entry, diagnostic))
        return results

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(list(self._entries.values()))

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._normalize(key) in self._entries

    def __eq__(self, other: object) -> bool:
        """Equal when both hold the same entries, ignoring order."""
        if not isinstance(other, Biblio):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"Biblio({len(self)} entries)"
