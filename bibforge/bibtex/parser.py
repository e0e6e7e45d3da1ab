"""BibTeX parser with error recovery.

The parser makes a single forward pass and produces an ordered list of
raw entries and @string definitions. Nothing is expanded here: variable
references and crossrefs are left for :mod:`bibforge.bibtex.expander`,
which needs the whole file before it can resolve forward crossrefs.

Errors are collected per entry; after a failure the parser resynchronizes
on the end of the broken entry or the next ``@`` so one bad entry never
hides the rest of the file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from bibforge.core.exceptions import BibError, MalformedEntryError

from .lexer import BibtexLexer, Token, TokenType

logger = logging.getLogger(__name__)

_CLOSING = {
    TokenType.LBRACE: (TokenType.RBRACE, "}"),
    TokenType.LPAREN: (TokenType.RPAREN, ")"),
}


class PieceType(Enum):
    """Kinds of operands in a field value expression."""

    LITERAL = "literal"
    NUMBER = "number"
    VARIABLE = "variable"


@dataclass
class ValuePiece:
    """One operand of a ``#`` concatenation."""

    type: PieceType
    text: str
    offset: int


@dataclass
class RawValue:
    """Unexpanded field value: operands joined by ``#``."""

    pieces: list[ValuePiece]
    offset: int

    @property
    def is_single_variable(self) -> bool:
        return len(self.pieces) == 1 and self.pieces[0].type is PieceType.VARIABLE

    @property
    def is_single_number(self) -> bool:
        return len(self.pieces) == 1 and self.pieces[0].type is PieceType.NUMBER


@dataclass
class RawEntry:
    """An entry as written in the file, before expansion."""

    entry_type: str
    key: str
    fields: dict[str, RawValue]
    offset: int


@dataclass
class StringDefinition:
    """An ``@string{name = value}`` definition."""

    name: str
    value: RawValue
    offset: int


@dataclass
class ParsedFile:
    """Output of the parsing pass, in file order."""

    items: list[RawEntry | StringDefinition] = field(default_factory=list)
    errors: list[BibError] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)
    preambles: list[str] = field(default_factory=list)
    lexer: BibtexLexer | None = None

    @property
    def entries(self) -> list[RawEntry]:
        return [item for item in self.items if isinstance(item, RawEntry)]

    def location(self, offset: int) -> tuple[int, int]:
        if self.lexer is None:
            return 0, 0
        return self.lexer.location(offset)


class BibtexParser:
    """Recursive-descent parser over :class:`BibtexLexer` tokens."""

    def __init__(self):
        self.lexer = BibtexLexer("")
        self.result = ParsedFile()
        self._closing_char = "}"

    def parse(self, text: str) -> ParsedFile:
        """Parse BibTeX text into raw entries and string definitions."""
        self.lexer = BibtexLexer(text)
        self.result = ParsedFile(lexer=self.lexer)

        while True:
            self.lexer.skip_whitespace()
            if self.lexer.at_eof():
                break
            if self.lexer.current_char() != "@":
                self.lexer.skip_text()
                continue

            token = self.lexer.next_token()

            try:
                self.parse_at_command(token)
            except MalformedEntryError as e:
                self.result.errors.append(e)
                logger.warning("Skipping malformed entry: %s", e)
                self.recover(token)

        logger.debug(
            "Parsed %d items with %d errors",
            len(self.result.items),
            len(self.result.errors),
        )
        return self.result

    def recover(self, at_token: Token) -> None:
        """Resynchronize after a malformed entry that began at ``at_token``."""
        if self.lexer.at_eof():
            # The broken entry swallowed the rest of the input; look for the
            # next line that starts an entry after its beginning.
            self.lexer.skip_to_next_entry_line(at_token.offset + 1)
            return

        if not self.lexer.skip_to_entry_end(self._closing_char):
            self.lexer.skip_to_next_entry_line(at_token.offset + 1)

    def parse_at_command(self, at_token: Token):
        """Dispatch on the word after ``@``."""
        self._closing_char = "}"
        type_token = self.lexer.next_token()
        if type_token.type != TokenType.IDENTIFIER:
            # A stray "@" in free text, e.g. an email address.
            self.lexer.pos = type_token.offset
            return

        delimiter = self.lexer.peek_token()
        if delimiter.type not in _CLOSING:
            logger.debug("Ignoring '@%s' outside of an entry", type_token.value)
            return

        command = type_token.value.lower()
        if command == "comment":
            self.parse_comment()
        elif command == "preamble":
            self.parse_preamble()
        elif command == "string":
            self.parse_string_def(at_token)
        else:
            self.parse_entry(at_token, command)

    def _open(self) -> tuple[TokenType, str]:
        delimiter = self.lexer.next_token()
        closing_type, closing_char = _CLOSING[delimiter.type]
        self._closing_char = closing_char
        return closing_type, closing_char

    def parse_comment(self):
        """Store an ``@comment`` body verbatim without interpreting it."""
        _, closing_char = self._open()
        body = self.lexer.skip_block(closing_char)
        self.result.comments.append(body.strip())

    def parse_preamble(self):
        _, closing_char = self._open()
        body = self.lexer.skip_block(closing_char)
        self.result.preambles.append(body.strip())

    def parse_string_def(self, at_token: Token):
        """Parse ``@string{name = value}``."""
        closing_type, _ = self._open()

        name_token = self.lexer.next_token()
        if name_token.type != TokenType.IDENTIFIER:
            raise self.lexer.error("Expected string name", name_token.offset)

        self.expect(TokenType.EQUALS, f"Expected '=' after string name '{name_token.value}'")
        value = self.parse_field_value()

        end = self.lexer.next_token()
        if end.type != closing_type:
            raise self.lexer.error("Expected end of @string definition", end.offset)

        self.result.items.append(
            StringDefinition(name=name_token.value, value=value, offset=at_token.offset)
        )

    def parse_entry(self, at_token: Token, entry_type: str):
        """Parse ``@type{key, name = value, ...}``."""
        closing_type, closing_char = self._open()

        key_token = self.lexer.read_key()
        key = key_token.value
        after_key = self.lexer.peek_token()

        if not key or after_key.type == TokenType.EQUALS:
            raise self.lexer.error("Missing citation key", key_token.offset)

        if after_key.type == TokenType.COMMA:
            self.lexer.next_token()
        elif after_key.type != closing_type:
            raise self._entry_error(
                f"Expected ',' after citation key, got {after_key.value!r}",
                after_key.offset,
                key,
            )

        try:
            fields = self.parse_fields(closing_type, closing_char, key)
        except MalformedEntryError as e:
            if e.cite_key is None:
                e.cite_key = key
            raise

        self.result.items.append(
            RawEntry(entry_type=entry_type, key=key, fields=fields, offset=at_token.offset)
        )

    def parse_fields(
        self, closing_type: TokenType, closing_char: str, key: str
    ) -> dict[str, RawValue]:
        """Parse ``name = value`` pairs up to the closing delimiter.

        A trailing comma before the closing delimiter is accepted.
        """
        fields: dict[str, RawValue] = {}

        while True:
            token = self.lexer.next_token()

            if token.type == closing_type:
                return fields
            if token.type == TokenType.COMMA:
                continue
            if token.type in {TokenType.AT, TokenType.EOF}:
                self.lexer.pos = token.offset
                raise self._entry_error(
                    f"Missing closing '{closing_char}' for entry", token.offset, key
                )
            if token.type != TokenType.IDENTIFIER:
                raise self._entry_error(
                    f"Expected field name, got {token.value!r}", token.offset, key
                )

            name = token.value.lower()
            self.expect(TokenType.EQUALS, f"Expected '=' after field name '{name}'")
            value = self.parse_field_value()

            if name in fields:
                logger.warning("Entry %s repeats field '%s', keeping the first", key, name)
            else:
                fields[name] = value

            following = self.lexer.peek_token()
            if following.type == TokenType.COMMA:
                self.lexer.next_token()
            elif following.type != closing_type:
                if following.type in {TokenType.AT, TokenType.EOF}:
                    message = f"Missing closing '{closing_char}' for entry"
                else:
                    message = f"Expected ',' or '{closing_char}' after field '{name}'"
                raise self._entry_error(message, following.offset, key)

    def parse_field_value(self) -> RawValue:
        """Parse operands joined by ``#``.

        Operands are braced or quoted literals, bare numbers, or bare
        identifiers naming @string variables.
        """
        self.lexer.skip_whitespace()
        start = self.lexer.pos
        pieces = []

        while True:
            self.lexer.skip_whitespace()
            char = self.lexer.current_char()

            if char == "{":
                token = self.lexer.read_braced()
                pieces.append(ValuePiece(PieceType.LITERAL, token.value, token.offset))
            elif char == '"':
                token = self.lexer.read_quoted()
                pieces.append(ValuePiece(PieceType.LITERAL, token.value, token.offset))
            else:
                token = self.lexer.next_token()
                if token.type == TokenType.NUMBER:
                    pieces.append(ValuePiece(PieceType.NUMBER, token.value, token.offset))
                elif token.type == TokenType.IDENTIFIER:
                    if token.value[0].isdigit():
                        raise self.lexer.error(
                            f"Invalid bare value {token.value!r}", token.offset
                        )
                    pieces.append(
                        ValuePiece(PieceType.VARIABLE, token.value, token.offset)
                    )
                else:
                    raise self.lexer.error(
                        f"Expected field value, got {token.value or 'end of input'!r}",
                        token.offset,
                    )

            if self.lexer.peek_token().type == TokenType.CONCAT:
                self.lexer.next_token()
            else:
                break

        return RawValue(pieces=pieces, offset=start)

    def expect(self, token_type: TokenType, message: str) -> Token:
        token = self.lexer.next_token()
        if token.type != token_type:
            raise self.lexer.error(message, token.offset)
        return token

    def _entry_error(self, message: str, offset: int, key: str) -> MalformedEntryError:
        error = self.lexer.error(message, offset)
        error.cite_key = key
        return error
