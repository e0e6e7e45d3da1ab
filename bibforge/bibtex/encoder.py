"""BibTeX serialization.

Entries are written expanded and self-contained: no ``@string``,
``@comment`` or ``@preamble`` blocks are emitted, and inherited crossref
fields are written out in full.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from bibforge.core.kinds import required_fields
from bibforge.core.models import Biblio, Entry
from bibforge.core.values import FieldValue, month_macro

from .mapping import bibtex_type

logger = logging.getLogger(__name__)


class BibtexEncoder:
    """Encode entries and bibliographies to BibTeX text.

    Values are written inside braces exactly as stored, since they already
    hold BibTeX source (LaTeX escapes, case-protecting braces). Only braces
    that would unbalance the output are escaped.
    """

    FIELD_ORDER = [
        "author",
        "editor",
        "title",
        "booktitle",
        "journal",
        "volume",
        "number",
        "pages",
        "chapter",
        "edition",
        "series",
        "publisher",
        "address",
        "organization",
        "institution",
        "school",
        "year",
        "month",
        "day",
        "type",
        "note",
        "key",
        "crossref",
        "doi",
        "url",
        "isbn",
        "issn",
        "abstract",
        "keywords",
    ]

    def __init__(self, indent: int = 2, group_headers: bool = True):
        self.indent = " " * indent
        self.group_headers = group_headers

    def balance_braces(self, text: str) -> str:
        """Escape braces that have no partner so the value re-parses."""
        unmatched: set[int] = set()
        opened: list[int] = []
        pos = 0
        while pos < len(text):
            char = text[pos]
            if char == "\\":
                pos += 2
                continue
            if char == "{":
                opened.append(pos)
            elif char == "}":
                if opened:
                    opened.pop()
                else:
                    unmatched.add(pos)
            pos += 1
        unmatched.update(opened)

        if text.endswith("\\") and (len(text) - len(text.rstrip("\\"))) % 2:
            # A trailing lone backslash would escape the closing brace.
            text += "\\"

        if not unmatched:
            return text
        logger.debug("Escaping %d unbalanced braces", len(unmatched))
        return "".join(
            "\\" + char if index in unmatched else char for index, char in enumerate(text)
        )

    def ordered_fields(self, entry: Entry) -> list[tuple[str, FieldValue]]:
        """Fields in output order: schema, standard order, then alphabetical."""
        remaining = dict(entry.items())
        ordered = []
        for name in [*required_fields(entry.kind, entry.extra_required), *self.FIELD_ORDER]:
            if name in remaining:
                ordered.append((name, remaining.pop(name)))
        ordered.extend(sorted(remaining.items()))
        return ordered

    def encode_value(self, name: str, value: FieldValue) -> str:
        if name == "month":
            macro = month_macro(value)
            if macro is not None:
                return macro
        return f"{{{self.balance_braces(value.text)}}}"

    def encode_entry(self, entry: Entry) -> str:
        """Encode a single entry to BibTeX format.

        Args:
            entry: Entry to encode.

        Returns:
            BibTeX formatted string without a trailing newline.
        """
        lines = [f"@{bibtex_type(entry.kind)}{{{entry.key},"]

        for name, value in self.ordered_fields(entry):
            lines.append(f"{self.indent}{name} = {self.encode_value(name, value)},")

        if lines[-1].endswith(","):
            lines[-1] = lines[-1][:-1]

        lines.append("}")
        return "\n".join(lines)

    def group(self, entries: Iterable[Entry]) -> dict[str, list[Entry]]:
        """Group entries by BibTeX type, sorted by type name."""
        groups: dict[str, list[Entry]] = {}
        for entry in entries:
            groups.setdefault(bibtex_type(entry.kind), []).append(entry)
        return dict(sorted(groups.items()))

    def encode(self, biblio: Biblio) -> str:
        """Encode a whole bibliography, grouped by entry type."""
        blocks = []
        for type_name, entries in self.group(biblio).items():
            encoded = [self.encode_entry(entry) for entry in entries]
            if self.group_headers:
                encoded[0] = f"% {type_name}\n{encoded[0]}"
            blocks.extend(encoded)

        if not blocks:
            return ""
        return "\n\n".join(blocks) + "\n"
