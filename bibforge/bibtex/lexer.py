"""Lexical analysis for BibTeX.

The lexer is pulled by the parser one token at a time. Structural
characters become single tokens, while brace- and quote-delimited values
are read whole at character level so that nested braces, whitespace and
LaTeX escapes survive unchanged. Brace nesting is tracked with a depth
counter, never with recursion.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto

from bibforge.core.exceptions import MalformedEntryError

# Characters that end an identifier (field names, @string names, variable
# references and entry types).
_IDENTIFIER_STOP = frozenset(" \t\r\n\f\v\"#%'(),={}@")

# Characters that end a citation key.
_KEY_STOP = frozenset(" \t\r\n\f\v\",={}()#%")

_ENTRY_LINE_START = re.compile(r"\n[ \t]*@")


class TokenType(Enum):
    """BibTeX token types."""

    AT = auto()
    LBRACE = auto()
    RBRACE = auto()
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()
    EQUALS = auto()
    CONCAT = auto()
    IDENTIFIER = auto()
    NUMBER = auto()
    STRING = auto()
    TEXT = auto()
    EOF = auto()


@dataclass
class Token:
    """A lexical token with its source offset."""

    type: TokenType
    value: str
    offset: int
    end: int

    def __str__(self) -> str:
        return f"{self.type.name}({self.value!r}) at {self.offset}"


_SINGLE_CHAR_TOKENS = {
    "@": TokenType.AT,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
    "=": TokenType.EQUALS,
    "#": TokenType.CONCAT,
}


class BibtexLexer:
    """On-demand tokenizer over a BibTeX string."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def location(self, offset: int) -> tuple[int, int]:
        """Return the 1-based (line, column) of an offset."""
        offset = min(offset, len(self.text))
        line = self.text.count("\n", 0, offset) + 1
        line_start = self.text.rfind("\n", 0, offset) + 1
        return line, offset - line_start + 1

    def error(self, message: str, offset: int | None = None) -> MalformedEntryError:
        line, column = self.location(self.pos if offset is None else offset)
        return MalformedEntryError(message, line, column)

    def at_eof(self) -> bool:
        return self.pos >= len(self.text)

    def current_char(self) -> str | None:
        if self.pos >= len(self.text):
            return None
        return self.text[self.pos]

    def skip_whitespace(self) -> None:
        """Skip whitespace and ``%`` line comments."""
        text = self.text
        length = len(text)
        while self.pos < length:
            char = text[self.pos]
            if char.isspace():
                self.pos += 1
            elif char == "%":
                newline = text.find("\n", self.pos)
                self.pos = length if newline == -1 else newline + 1
            else:
                break

    def skip_text(self) -> None:
        """Skip free text outside entries up to the next ``@`` or line end."""
        text = self.text
        length = len(text)
        while self.pos < length and text[self.pos] not in "@\n%":
            self.pos += 1

    def peek_token(self) -> Token:
        saved = self.pos
        try:
            return self.next_token()
        finally:
            self.pos = saved

    def next_token(self) -> Token:
        """Read the next structural token.

        Brace characters are returned as LBRACE/RBRACE; use
        :meth:`read_braced` where a braced value is expected instead.
        """
        self.skip_whitespace()
        start = self.pos
        char = self.current_char()

        if char is None:
            return Token(TokenType.EOF, "", start, start)

        token_type = _SINGLE_CHAR_TOKENS.get(char)
        if token_type is not None:
            self.pos += 1
            return Token(token_type, char, start, self.pos)

        if char == '"':
            return self.read_quoted()

        if char not in _IDENTIFIER_STOP:
            word = self.read_identifier()
            token_type = TokenType.NUMBER if word.isdigit() else TokenType.IDENTIFIER
            return Token(token_type, word, start, self.pos)

        self.pos += 1
        return Token(TokenType.TEXT, char, start, self.pos)

    def read_identifier(self) -> str:
        start = self.pos
        text = self.text
        while self.pos < len(text) and text[self.pos] not in _IDENTIFIER_STOP:
            self.pos += 1
        return text[start : self.pos]

    def read_key(self) -> Token:
        """Read a citation key, which may contain characters like ``/`` or ``:``."""
        self.skip_whitespace()
        start = self.pos
        text = self.text
        while self.pos < len(text) and text[self.pos] not in _KEY_STOP:
            self.pos += 1
        return Token(TokenType.IDENTIFIER, text[start : self.pos], start, self.pos)

    def read_braced(self) -> Token:
        """Read a ``{...}`` value with balanced nested braces.

        A backslash escapes the next character, so ``\\{`` does not open a
        group. The returned value excludes the outer braces.

        Raises:
            MalformedEntryError: If the input ends before the braces balance.
        """
        self.skip_whitespace()
        start = self.pos
        text = self.text
        if self.current_char() != "{":
            raise self.error("Expected '{'")

        depth = 0
        pos = start
        length = len(text)
        while pos < length:
            char = text[pos]
            if char == "\\":
                pos += 2
                continue
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    self.pos = pos + 1
                    return Token(TokenType.STRING, text[start + 1 : pos], start, self.pos)
            pos += 1

        self.pos = length
        raise self.error("Unbalanced braces in value", start)

    def read_quoted(self) -> Token:
        """Read a ``"..."`` value.

        Braces inside are balanced, and a quote inside braces does not end
        the value. Quotes do not nest.

        Raises:
            MalformedEntryError: If the closing quote is missing or the
                braces inside do not balance.
        """
        self.skip_whitespace()
        start = self.pos
        text = self.text
        if self.current_char() != '"':
            raise self.error("Expected '\"'")

        depth = 0
        pos = start + 1
        length = len(text)
        while pos < length:
            char = text[pos]
            if char == "\\":
                pos += 2
                continue
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth < 0:
                    self.pos = pos
                    raise self.error("Unbalanced braces in quoted value", start)
            elif char == '"' and depth == 0:
                self.pos = pos + 1
                return Token(TokenType.STRING, text[start + 1 : pos], start, self.pos)
            pos += 1

        self.pos = length
        raise self.error("Unterminated quoted value", start)

    def skip_block(self, closing: str) -> str:
        """Skip to the matching ``closing`` delimiter and return the body.

        The current position must be just after the opening delimiter.

        Raises:
            MalformedEntryError: If the block never closes.
        """
        opening = "{" if closing == "}" else "("
        start = self.pos
        text = self.text
        depth = 1
        pos = start
        while pos < len(text):
            char = text[pos]
            if char == "\\":
                pos += 2
                continue
            if char == opening:
                depth += 1
            elif char == closing:
                depth -= 1
                if depth == 0:
                    self.pos = pos + 1
                    return text[start:pos]
            pos += 1

        self.pos = len(text)
        raise self.error(f"Missing closing '{closing}'", start)

    def skip_to_entry_end(self, closing: str) -> bool:
        """Recover inside a broken entry body.

        Moves past the delimiter that closes the entry, or stops in front of
        an ``@`` at field-list depth. Returns False if the input ran out.
        """
        opening = "{" if closing == "}" else "("
        text = self.text
        depth = 1
        pos = self.pos
        while pos < len(text):
            char = text[pos]
            if char == "\\":
                pos += 2
                continue
            if char == "@" and depth == 1:
                self.pos = pos
                return True
            if char == opening:
                depth += 1
            elif char == closing:
                depth -= 1
                if depth == 0:
                    self.pos = pos + 1
                    return True
            pos += 1

        self.pos = len(text)
        return False

    def skip_to_next_entry_line(self, offset: int) -> None:
        """Move to the next line that starts with ``@`` after ``offset``."""
        match = _ENTRY_LINE_START.search(self.text, offset)
        if match is None:
            self.pos = len(self.text)
        else:
            self.pos = match.end() - 1
