"""
SQL tokenizer.

Turns raw SQL text into a flat stream of tokens. Only the distinctions the
statement classifier needs are made: whitespace, comments, strings, keywords
(including quoted identifiers), parameters, semicolons and everything else.
Every input character belongs to exactly one token.
"""

import re
import string
from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache
from typing import Any

from sqlidentify.models import ParamTypes

from .dialects import (
    CLOSING_QUOTES,
    KEYWORDS,
    Dialect,
    default_param_types,
    quoted_identifier_openers,
    string_openers,
)

WHITESPACE = frozenset(" \t\n\r")
LETTERS = frozenset(string.ascii_letters + "_")
DIGITS = frozenset(string.digits)

_DOLLAR_QUOTE_OPENER = re.compile(r"\$[A-Za-z0-9_]*\$")


class TokenType(StrEnum):
    """Kinds of token produced by the tokenizer"""

    WHITESPACE = "whitespace"
    COMMENT_INLINE = "comment-inline"
    COMMENT_BLOCK = "comment-block"
    STRING = "string"
    SEMICOLON = "semicolon"
    KEYWORD = "keyword"
    PARAMETER = "parameter"
    UNKNOWN = "unknown"


# Tokens that never start a statement on their own
BLANK_TOKEN_TYPES = frozenset(
    {
        TokenType.WHITESPACE,
        TokenType.COMMENT_INLINE,
        TokenType.COMMENT_BLOCK,
        TokenType.SEMICOLON,
    }
)


@dataclass(frozen=True, slots=True)
class Token:
    """A lexical token. ``start`` and ``end`` are inclusive offsets."""

    type: TokenType
    value: str
    start: int
    end: int

    @property
    def upper(self) -> str:
        return self.value.upper()

    def as_json_dict(self) -> dict[str, Any]:
        return {
            "type": str(self.type),
            "value": self.value,
            "start": self.start,
            "end": self.end,
        }


@dataclass(slots=True)
class ScanCursor:
    """Position state for a single scan over ``text``.

    ``start`` is the first character of the token being scanned and
    ``position`` is one past the last consumed character.
    """

    text: str
    start: int = 0
    position: int = 0

    @property
    def end(self) -> int:
        return len(self.text) - 1

    def at_end(self) -> bool:
        return self.position > self.end

    def peek(self, offset: int = 0) -> str:
        index = self.position + offset
        if 0 <= index <= self.end:
            return self.text[index]
        return ""

    def peek_back(self) -> str:
        if self.start == 0:
            return ""
        return self.text[self.start - 1]

    def startswith(self, prefix: str) -> bool:
        return self.text.startswith(prefix, self.position)

    def advance(self, count: int = 1) -> None:
        self.position = min(self.position + count, len(self.text))

    def advance_while(self, predicate: Any) -> None:
        while not self.at_end() and predicate(self.text[self.position]):
            self.position += 1

    def skip_to_end(self) -> None:
        self.position = len(self.text)

    def emit(self, token_type: TokenType) -> Token:
        return Token(
            type=token_type,
            value=self.text[self.start : self.position],
            start=self.start,
            end=self.position - 1,
        )


def scan_token(cursor: ScanCursor, dialect: Dialect, param_types: ParamTypes) -> Token | None:
    """Scan one token at the cursor and advance past it.

    Returns None once the input is exhausted.
    """
    cursor.start = cursor.position
    if cursor.at_end():
        return None

    ch = cursor.peek()

    if ch in WHITESPACE:
        cursor.advance_while(lambda c: c in WHITESPACE)
        return cursor.emit(TokenType.WHITESPACE)

    if cursor.startswith("--"):
        return _scan_comment_inline(cursor)

    if cursor.startswith("/*"):
        return _scan_comment_block(cursor)

    if ch in string_openers(dialect):
        return _scan_string(cursor, CLOSING_QUOTES[ch])

    dollar_quote = _DOLLAR_QUOTE_OPENER.match(cursor.text, cursor.position)
    if dollar_quote is not None:
        return _scan_dollar_quoted_string(cursor, dollar_quote.group(0))

    if _is_parameter(cursor, param_types):
        return _scan_parameter(cursor, dialect, param_types)

    if ch in quoted_identifier_openers(dialect):
        return _scan_quoted_identifier(cursor, CLOSING_QUOTES[ch])

    if ch in LETTERS:
        return _scan_word(cursor)

    cursor.advance()
    if ch == ";":
        return cursor.emit(TokenType.SEMICOLON)
    return cursor.emit(TokenType.UNKNOWN)


def iter_tokens(
    text: str,
    dialect: Dialect = Dialect.GENERIC,
    param_types: ParamTypes | None = None,
) -> Iterator[Token]:
    """Yield the tokens of ``text`` in order."""
    if param_types is None:
        param_types = default_param_types(dialect)
    cursor = ScanCursor(text)
    while (token := scan_token(cursor, dialect, param_types)) is not None:
        yield token


def tokenize(
    text: str,
    dialect: Dialect = Dialect.GENERIC,
    param_types: ParamTypes | None = None,
) -> list[Token]:
    """Tokenize ``text`` completely."""
    return list(iter_tokens(text, dialect, param_types))


def _is_alphanumeric(ch: str) -> bool:
    return ch in LETTERS or ch in DIGITS


def _scan_comment_inline(cursor: ScanCursor) -> Token:
    newline = cursor.text.find("\n", cursor.position + 2)
    if newline < 0:
        cursor.skip_to_end()
    else:
        cursor.position = newline + 1
    return cursor.emit(TokenType.COMMENT_INLINE)


def _scan_comment_block(cursor: ScanCursor) -> Token:
    closing = cursor.text.find("*/", cursor.position + 2)
    if closing < 0:
        cursor.skip_to_end()
    else:
        cursor.position = closing + 2
    return cursor.emit(TokenType.COMMENT_BLOCK)


def _scan_string(cursor: ScanCursor, closing_quote: str) -> Token:
    cursor.advance()
    while not cursor.at_end():
        ch = cursor.peek()
        cursor.advance()
        if ch == closing_quote:
            # a doubled delimiter is an escaped quote
            if cursor.peek() == closing_quote:
                cursor.advance()
                continue
            break
    return cursor.emit(TokenType.STRING)


def _scan_dollar_quoted_string(cursor: ScanCursor, label: str) -> Token:
    closing = cursor.text.find(label, cursor.position + len(label))
    if closing < 0:
        cursor.skip_to_end()
    else:
        cursor.position = closing + len(label)
    return cursor.emit(TokenType.STRING)


def _scan_quoted_identifier(cursor: ScanCursor, closing_quote: str) -> Token:
    closing = cursor.text.find(closing_quote, cursor.position + 1)
    if closing < 0:
        cursor.skip_to_end()
    else:
        cursor.position = closing + 1
    # quoted identifiers behave like opaque keywords for the classifier
    return cursor.emit(TokenType.KEYWORD)


def _scan_word(cursor: ScanCursor) -> Token:
    cursor.advance_while(lambda c: c in LETTERS)
    token = cursor.emit(TokenType.KEYWORD)
    if token.upper in KEYWORDS:
        return token
    return cursor.emit(TokenType.UNKNOWN)


@lru_cache(maxsize=128)
def _compile_custom(pattern: str) -> re.Pattern[str]:
    return re.compile(f"(?:{pattern})")


def _match_custom(cursor: ScanCursor, patterns: tuple[str, ...]) -> str:
    for pattern in patterns:
        match = _compile_custom(pattern).match(cursor.text, cursor.start)
        if match and match.group(0):
            return match.group(0)
    return ""


def _is_parameter(cursor: ScanCursor, param_types: ParamTypes) -> bool:
    ch = cursor.peek()
    next_ch = cursor.peek(1)

    # '::' is a cast, never a parameter
    if ch == ":" and (cursor.peek_back() == ":" or next_ch == ":"):
        return False

    if param_types.is_positional and ch == "?":
        return True

    if ch in param_types.numbered and next_ch in DIGITS and next_ch:
        return True

    if ch in param_types.named or ch in param_types.quoted:
        return True

    return bool(param_types.custom) and bool(_match_custom(cursor, param_types.custom))


def _scan_parameter(cursor: ScanCursor, dialect: Dialect, param_types: ParamTypes) -> Token:
    sigil = cursor.peek()
    next_ch = cursor.peek(1)
    quote_openers = quoted_identifier_openers(dialect)
    cursor.advance()
    matched = False

    if sigil in param_types.numbered and next_ch and next_ch in DIGITS:
        run_end = cursor.position
        while run_end < len(cursor.text) and _is_alphanumeric(cursor.text[run_end]):
            run_end += 1
        run = cursor.text[cursor.position : run_end]
        if run and all(c in DIGITS for c in run):
            cursor.position = run_end
            matched = True

    if not matched and sigil in param_types.named and next_ch not in quote_openers:
        cursor.advance_while(_is_alphanumeric)
        matched = True

    if not matched and sigil in param_types.quoted and next_ch and next_ch in quote_openers:
        closing_quote = CLOSING_QUOTES[next_ch]
        cursor.advance()
        cursor.advance_while(lambda c: (_is_alphanumeric(c) or c == " ") and c != closing_quote)
        cursor.advance()
        matched = True

    if not matched and param_types.custom:
        custom = _match_custom(cursor, param_types.custom)
        if custom:
            cursor.position = cursor.start + len(custom)
            matched = True

    if not matched and not param_types.is_positional and sigil != "?":
        return cursor.emit(TokenType.UNKNOWN)

    return cursor.emit(TokenType.PARAMETER)
