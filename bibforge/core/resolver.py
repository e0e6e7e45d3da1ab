"""Schema resolution for bibliography entries.

The resolver never prompts. Callers drive interactive filling themselves
by asking for :meth:`Resolver.missing_fields` and answering with
:meth:`Resolver.resolve_field`, or hand a supplier to
:meth:`Resolver.resolve` for batch completion.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping

from .exceptions import UnresolvedEntryError
from .kinds import Kind, parse_kind, required_fields
from .models import Entry, MissingRequiredFields, ValueLike
from .values import FieldValue

logger = logging.getLogger(__name__)

Supplier = Callable[[str], ValueLike | None]


def defaults_supplier(defaults: Mapping[str, ValueLike]) -> Supplier:
    """Build a supplier answering from a fixed mapping of field defaults."""
    normalized = {name.lower(): value for name, value in defaults.items()}

    def supply(name: str) -> ValueLike | None:
        return normalized.get(name.lower())

    return supply


class Resolver:
    """Check entries against their kind's schema and fill the gaps.

    Args:
        extra_required: Optional mapping of kind name to field names that
            are required on top of the built-in schema for every entry of
            that kind (typically from configuration).
    """

    def __init__(self, extra_required: Mapping[str, Iterable[str]] | None = None):
        self.extra_required: dict[Kind, tuple[str, ...]] = {}
        for kind_name, names in (extra_required or {}).items():
            kind = parse_kind(kind_name)
            base = required_fields(kind)
            self.extra_required[kind] = required_fields(kind, names)[len(base) :]

    def required_fields(
        self, kind: Kind, extra: Iterable[str] = ()
    ) -> tuple[str, ...]:
        """Schema in effect for a kind, including configured extras."""
        configured = self.extra_required.get(kind, ())
        return required_fields(kind, [*configured, *extra])

    def add_required_fields(
        self, kind: Kind, extra_names: Iterable[str]
    ) -> tuple[str, ...]:
        """Extend the schema for a new entry with caller-chosen field names.

        Names already required by the kind are ignored.

        Returns:
            The full required-field tuple for the new entry.
        """
        return self.required_fields(kind, extra_names)

    def new_entry(
        self, kind: Kind | str, key: str, extra_fields: Iterable[str] = ()
    ) -> Entry:
        """Create an empty entry whose schema includes ``extra_fields``."""
        kind = parse_kind(kind)
        base = required_fields(kind)
        schema = self.add_required_fields(kind, extra_fields)
        return Entry(key=key, kind=kind, extra_required=schema[len(base) :])

    def missing_fields(self, entry: Entry) -> list[str]:
        """Required fields that are absent or empty, in schema order."""
        schema = self.required_fields(entry.kind, entry.extra_required)
        return [name for name in schema if not entry.has_field(name)]

    def is_resolved(self, entry: Entry) -> bool:
        return not self.missing_fields(entry)

    def diagnose(self, entry: Entry) -> MissingRequiredFields | None:
        """Return a diagnostic for an incomplete entry, or None."""
        missing = self.missing_fields(entry)
        if not missing:
            return None
        return MissingRequiredFields(
            kind=str(entry.kind),
            cite_key=entry.key,
            found={name: value.text for name, value in entry.items()},
            missing=tuple(missing),
        )

    def resolve_field(self, entry: Entry, name: str, value: ValueLike) -> None:
        """Answer a single missing field."""
        entry.set_field(name, value)

    def resolve(self, entry: Entry, supplier: Supplier) -> Entry:
        """Fill every missing field from ``supplier`` in schema order.

        The supplier is called once per missing field name and returns the
        value, or None when it has nothing to offer.

        Raises:
            UnresolvedEntryError: When some fields are still missing after
                asking the supplier. Values supplied before the failure are
                kept on the entry.
        """
        for name in self.missing_fields(entry):
            value = supplier(name)
            if value is None:
                continue
            value = FieldValue.coerce(value)
            if value.is_empty():
                continue
            entry.set_field(name, value)
            logger.debug("Resolved %s.%s", entry.key, name)

        diagnostic = self.diagnose(entry)
        if diagnostic is not None:
            raise UnresolvedEntryError(diagnostic)
        return entry

    def set_fields_from_entry(self, target: Entry, source: Entry) -> list[str]:
        """Copy fields the target lacks from another entry.

        Fields already present on the target are never overwritten.

        Returns:
            Names of the copied fields in source order.
        """
        copied = []
        for name, value in source.items():
            if not target.has_field(name):
                target.set_field(name, value)
                copied.append(name)
        return copied
