"""
Statement splitter.

Walks the token stream once, hands each statement's tokens to a classifier
and collects the finished statements. ``WITH`` headers are tracked here
rather than in the classifier: the header is skipped and folded into the
statement that follows it.
"""

import logging
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Optional

from sqlidentify.models import ParamTypes

from .classifier import ClassifierOptions, ParsedStatement, StatementClassifier, create_classifier
from .dialects import Dialect, default_param_types
from .statement_types import ExecutionType, StatementType
from .tokenizer import BLANK_TOKEN_TYPES, Token, TokenType, iter_tokens

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ParseResult:
    """Statements found in a query plus the full token stream"""

    start: int
    end: int
    type: str = "QUERY"
    body: list[ParsedStatement] = field(default_factory=list)
    tokens: list[Token] = field(default_factory=list)


@dataclass(slots=True)
class CteHeader:
    """State of a ``WITH name AS (...) [, ...]`` header being skipped"""

    active: bool = False
    start: int = 0
    as_seen: bool = False
    parens: int = 0
    complete: bool = False
    params: list[str] = field(default_factory=list)

    def open(self, token: Token) -> None:
        self.active = True
        self.start = token.start

    def reset(self) -> None:
        self.active = False
        self.as_seen = False
        self.complete = False
        self.parens = 0

    def track(self, token: Token) -> None:
        """Follow ``AS ( ... )`` nesting until a definition closes."""
        if self.as_seen:
            if token.value == "(":
                self.parens += 1
            elif token.value == ")":
                self.parens -= 1
                if self.parens == 0:
                    self.complete = True
        elif token.upper == "AS":
            self.as_seen = True

    def next_definition(self) -> None:
        self.as_seen = False
        self.complete = False


class TokenStream:
    """Token iterator with lookahead to the next non-whitespace token."""

    def __init__(self, tokens: Iterator[Token]) -> None:
        self._tokens = tokens
        self._buffer: deque[Token] = deque()

    def _fill(self, count: int) -> bool:
        while len(self._buffer) < count:
            token = next(self._tokens, None)
            if token is None:
                return False
            self._buffer.append(token)
        return True

    def peek(self) -> Optional[Token]:
        return self._buffer[0] if self._fill(1) else None

    def pop(self) -> Token:
        self._fill(1)
        return self._buffer.popleft()

    def peek_significant(self) -> Optional[Token]:
        """Return the first non-whitespace token after the current one."""
        index = 1
        while self._fill(index + 1):
            token = self._buffer[index]
            if token.type != TokenType.WHITESPACE:
                return token
            index += 1
        return None


def parse(
    text: str,
    strict: bool = True,
    dialect: Dialect = Dialect.GENERIC,
    identify_tables: bool = False,
    param_types: Optional[ParamTypes] = None,
) -> ParseResult:
    """Split ``text`` into classified statements.

    Raises the errors of ``sqlidentify.domain.errors`` in strict mode when a
    statement cannot be classified.
    """
    if param_types is None:
        param_types = default_param_types(dialect)

    options = ClassifierOptions(dialect=dialect, strict=strict, identify_tables=identify_tables)
    result = ParseResult(start=0, end=len(text) - 1)
    stream = TokenStream(iter_tokens(text, dialect, param_types))
    cte = CteHeader()
    classifier: Optional[StatementClassifier] = None

    while (token := stream.peek()) is not None:
        next_token = stream.peek_significant()

        if classifier is not None:
            stream.pop()
            classifier.add_token(token, next_token)
            result.tokens.append(token)
            if classifier.ended:
                _emit(result, classifier.close(token.end))
                classifier = None
            continue

        is_blank = token.type in BLANK_TOKEN_TYPES
        if not cte.active and is_blank:
            result.tokens.append(stream.pop())
        elif not cte.active and token.type == TokenType.KEYWORD and token.upper == "WITH":
            cte.open(token)
            result.tokens.append(stream.pop())
        elif cte.active and token.type == TokenType.SEMICOLON:
            # a semicolon inside an unfinished header ends it prematurely
            result.tokens.append(stream.pop())
            _emit(
                result,
                ParsedStatement(
                    start=cte.start,
                    end=token.end,
                    type=StatementType.UNKNOWN,
                    execution_type=ExecutionType.UNKNOWN,
                ),
            )
            cte.reset()
            cte.params.clear()
        elif cte.active and not cte.complete:
            cte.track(token)
            result.tokens.append(stream.pop())
        elif cte.active and token.value == ",":
            cte.next_definition()
            result.tokens.append(stream.pop())
        elif cte.active and is_blank:
            result.tokens.append(stream.pop())
        else:
            # the token is not consumed here; the new classifier reads it next
            classifier = create_classifier(token, next_token, options)
            if cte.active:
                statement = classifier.statement
                statement.start = cte.start
                statement.is_cte = True
                statement.parameters.extend(cte.params)
                cte.params = []
                cte.reset()

        if cte.active and token.type == TokenType.PARAMETER:
            cte.params.append(token.value)

    if classifier is not None:
        _emit(result, classifier.close(result.end))

    return result


def _emit(result: ParseResult, statement: ParsedStatement) -> None:
    logger.debug(
        "Statement %s (%s) at %d..%d",
        statement.type,
        statement.execution_type,
        statement.start,
        statement.end,
    )
    result.body.append(statement)
