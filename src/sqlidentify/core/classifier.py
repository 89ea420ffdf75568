"""
Statement classifier.

A classifier is created for the first significant token of a statement and is
then fed every following token until it reports the end of the statement. It
works as a small step machine: each step accepts a set of keywords and
records what it learned (statement start, statement type) on the in-progress
``Statement``. Around the steps it tracks procedural block nesting so that
semicolons inside BEGIN ... END bodies do not end the statement, skips
modifiers that may sit between a verb and its object (``CREATE OR REPLACE
TEMP VIEW``), and collects parameters and table names.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

from sqlidentify.domain.errors import (
    DoubleTerminationError,
    MissingRequiredPredecessorError,
    StepValidationError,
    UnrecognizedStatementStartError,
)

from .dialects import Dialect, block_openers
from .statement_types import (
    BLOCK_STATEMENT_TYPES,
    SHOW_OBJECTS,
    ExecutionType,
    StatementType,
    execution_type_for,
)
from .tokenizer import Token, TokenType

TABLE_PREFIXES = frozenset({"FROM", "JOIN", "INTO"})

SQLITE_TRANSACTION_MODES = frozenset({"DEFERRED", "IMMEDIATE", "EXCLUSIVE"})

ALGORITHM_VALUES = frozenset({"UNDEFINED", "MERGE", "TEMPTABLE"})


class ClauseStep(IntEnum):
    """Progress through a ``KEYWORD <operator> value`` modifier clause"""

    KEYWORD = 0
    OPERATOR = 1
    VALUE = 2


@dataclass(slots=True)
class DefinerClause:
    """MySQL ``DEFINER = user``. The user may span adjacent tokens ('a'@'b')."""

    step: Optional[ClauseStep] = None

    def consume(self, token: Token, prev_token: Optional[Token], dialect: Dialect) -> bool:
        if dialect == Dialect.MYSQL and token.upper == "DEFINER":
            self.step = ClauseStep.KEYWORD
            return True

        if self.step == ClauseStep.KEYWORD and token.value == "=":
            self.step = ClauseStep.OPERATOR
            return True

        if self.step is not None and self.step > ClauseStep.KEYWORD:
            prev_is_whitespace = prev_token is not None and prev_token.type == TokenType.WHITESPACE
            if self.step == ClauseStep.OPERATOR and prev_is_whitespace:
                self.step = ClauseStep.VALUE
                return True
            if self.step == ClauseStep.VALUE and prev_token is not None and not prev_is_whitespace:
                return True
            self.step = None

        return False


@dataclass(slots=True)
class AlgorithmClause:
    """MySQL ``ALGORITHM = UNDEFINED | MERGE | TEMPTABLE``"""

    step: Optional[ClauseStep] = None

    def consume(self, token: Token, prev_token: Optional[Token], dialect: Dialect) -> bool:
        if dialect == Dialect.MYSQL and token.upper == "ALGORITHM":
            self.step = ClauseStep.KEYWORD
            return True

        if self.step == ClauseStep.KEYWORD and token.value == "=":
            self.step = ClauseStep.OPERATOR
            return True

        if self.step is not None and self.step > ClauseStep.KEYWORD:
            if (
                self.step == ClauseStep.OPERATOR
                and prev_token is not None
                and prev_token.type == TokenType.WHITESPACE
            ):
                self.step = ClauseStep.VALUE
                return True
            if (
                self.step == ClauseStep.VALUE
                and prev_token is not None
                and prev_token.upper in ALGORITHM_VALUES
            ):
                return True
            self.step = None

        return False


@dataclass(slots=True)
class SqlSecurityClause:
    """MySQL ``SQL SECURITY DEFINER | INVOKER``"""

    step: Optional[ClauseStep] = None

    def consume(self, token: Token, dialect: Dialect) -> bool:
        if dialect == Dialect.MYSQL and token.upper == "SQL":
            self.step = ClauseStep.KEYWORD
            return True

        if self.step is None:
            return False

        if (self.step == ClauseStep.KEYWORD and token.upper == "SECURITY") or (
            self.step == ClauseStep.OPERATOR and token.upper in ("DEFINER", "INVOKER")
        ):
            self.step = ClauseStep(self.step + 1)
            return True

        if self.step == ClauseStep.VALUE:
            self.step = None
        return False


@dataclass(slots=True)
class Statement:
    """A statement while it is being classified"""

    start: int = -1
    end: int = 0
    type: Optional[str] = None
    execution_type: Optional[ExecutionType] = None
    end_marker: Optional[str] = None
    can_end: bool = False
    is_cte: bool = False
    parameters: list[str] = field(default_factory=list)
    tables: list[str] = field(default_factory=list)
    definer: DefinerClause = field(default_factory=DefinerClause)
    algorithm: AlgorithmClause = field(default_factory=AlgorithmClause)
    sql_security: SqlSecurityClause = field(default_factory=SqlSecurityClause)

    def mark_start(self, offset: int) -> None:
        if self.start < 0:
            self.start = offset

    def add_parameter(self, value: str) -> None:
        # positional markers are kept once per occurrence
        if value == "?" or value not in self.parameters:
            self.parameters.append(value)

    def add_table(self, value: str) -> None:
        if value not in self.tables:
            self.tables.append(value)

    def finalize(self) -> "ParsedStatement":
        return ParsedStatement(
            start=self.start,
            end=self.end,
            type=self.type or StatementType.UNKNOWN,
            execution_type=self.execution_type or ExecutionType.UNKNOWN,
            end_marker=self.end_marker,
            parameters=tuple(self.parameters),
            tables=tuple(self.tables),
            is_cte=self.is_cte,
        )


@dataclass(frozen=True, slots=True)
class ParsedStatement:
    """A statement whose span is known"""

    start: int
    end: int
    type: str
    execution_type: ExecutionType
    end_marker: Optional[str] = None
    parameters: tuple[str, ...] = ()
    tables: tuple[str, ...] = ()
    is_cte: bool = False


AddEffect = Callable[[Statement, Token], None]


@dataclass(frozen=True, slots=True)
class AcceptToken:
    type: TokenType
    value: str

    def matches(self, token: Token) -> bool:
        return token.type == self.type and token.upper == self.value

    def describe(self) -> str:
        return f'(type="{self.type}" value="{self.value}")'


@dataclass(frozen=True, slots=True)
class Step:
    """One position in a classifier's step machine.

    ``accept`` of None means any token is accepted. ``require_before`` lists
    the token types allowed immediately before the token for this step.
    """

    add: AddEffect
    accept: Optional[tuple[AcceptToken, ...]] = None
    require_before: tuple[TokenType, ...] = ()

    def accepts(self, token: Token) -> bool:
        if self.accept is None:
            return True
        return any(accept_token.matches(token) for accept_token in self.accept)


@dataclass(frozen=True, slots=True)
class ClassifierOptions:
    dialect: Dialect = Dialect.GENERIC
    strict: bool = True
    identify_tables: bool = False


def _keywords(*values: str) -> tuple[AcceptToken, ...]:
    return tuple(AcceptToken(TokenType.KEYWORD, value) for value in values)


def _start_statement(statement_type: Optional[str] = None) -> AddEffect:
    def add(statement: Statement, token: Token) -> None:
        if statement_type is not None:
            statement.type = statement_type
        statement.mark_start(token.start)

    return add


def _name_statement(verb: str) -> AddEffect:
    def add(statement: Statement, token: Token) -> None:
        statement.type = f"{verb}_{token.upper.replace(' ', '_')}"

    return add


def _single_step(keyword: str, statement_type: str) -> list[Step]:
    return [Step(add=_start_statement(statement_type), accept=_keywords(keyword))]


def _verb_object_steps(verb: str, objects: tuple[str, ...]) -> list[Step]:
    return [
        Step(add=_start_statement(), accept=_keywords(verb)),
        Step(
            add=_name_statement(verb),
            accept=_keywords(*objects),
            require_before=(TokenType.WHITESPACE,),
        ),
    ]


def _create_or_drop_objects(dialect: Dialect) -> tuple[str, ...]:
    objects: tuple[str, ...] = ()
    if dialect != Dialect.SQLITE:
        objects += ("DATABASE", "SCHEMA", "PROCEDURE")
    return objects + ("TABLE", "VIEW", "TRIGGER", "FUNCTION", "INDEX")


def _alter_objects(dialect: Dialect) -> tuple[str, ...]:
    objects: tuple[str, ...] = ()
    if dialect != Dialect.SQLITE:
        objects += ("DATABASE", "SCHEMA", "TRIGGER", "FUNCTION", "INDEX")
        if dialect != Dialect.BIGQUERY:
            objects += ("PROCEDURE",)
    return objects + ("TABLE", "VIEW")


def _block_steps(dialect: Dialect) -> list[Step]:
    openers: tuple[str, ...] = ("DECLARE", "BEGIN") if dialect == Dialect.ORACLE else ("BEGIN",)
    return [Step(add=_start_statement(), accept=_keywords(*openers))]


def _unknown_steps() -> list[Step]:
    return [Step(add=_start_statement(StatementType.UNKNOWN))]


class StatementClassifier:
    """Step machine that decides a statement's type and where it ends."""

    def __init__(
        self,
        steps: list[Step],
        options: ClassifierOptions,
        statement: Optional[Statement] = None,
    ) -> None:
        self.statement = statement if statement is not None else Statement()
        self.steps = steps
        self.options = options
        self.current_step = 0
        self.prev_token: Optional[Token] = None
        self.prev_non_whitespace_token: Optional[Token] = None
        self.last_block_opener: Optional[Token] = None
        self.anon_block_started = False
        self.open_blocks = 0
        self.first_token: Optional[Token] = None

    @property
    def dialect(self) -> Dialect:
        return self.options.dialect

    @property
    def ended(self) -> bool:
        return self.statement.end_marker is not None

    def _set_prev_token(self, token: Token) -> None:
        self.prev_token = token
        if token.type != TokenType.WHITESPACE:
            self.prev_non_whitespace_token = token

    def add_token(self, token: Token, next_token: Optional[Token] = None) -> None:
        """Feed the next token of the statement.

        ``next_token`` is the following non-whitespace token, if any.
        """
        statement = self.statement
        if self.ended:
            raise DoubleTerminationError(
                "This statement has already got to the end.", "double_termination"
            )
        if self.first_token is None:
            self.first_token = token

        if token.type == TokenType.SEMICOLON and self._semicolon_ends_statement():
            statement.end_marker = ";"
            return

        if self.open_blocks > 0 and token.upper == "END":
            self.open_blocks -= 1
            if self.open_blocks == 0:
                statement.can_end = True
            self._set_prev_token(token)
            return

        if token.type == TokenType.WHITESPACE:
            self._set_prev_token(token)
            return

        if token.type == TokenType.KEYWORD and self._opens_block(token, next_token):
            if (
                self.dialect == Dialect.ORACLE
                and self.last_block_opener is not None
                and self.last_block_opener.upper == "DECLARE"
                and token.upper == "BEGIN"
            ):
                # DECLARE ... BEGIN ... END is a single block
                self._set_prev_token(token)
                self.last_block_opener = token
                return
            self.open_blocks += 1
            self.last_block_opener = token
            self._set_prev_token(token)
            if statement.type == StatementType.ANON_BLOCK and not self.anon_block_started:
                self.anon_block_started = True
            elif statement.type is not None:
                return

        if (
            self.options.identify_tables
            and token.upper in TABLE_PREFIXES
            and not statement.is_cte
            and statement.type in (StatementType.SELECT, StatementType.INSERT)
            and next_token is not None
        ):
            statement.add_table(next_token.value)

        if token.type == TokenType.PARAMETER:
            statement.add_parameter(token.value)

        # the rest of the body is opaque once the statement is identified
        if statement.type is not None and statement.start >= 0:
            self._set_prev_token(token)
            return

        if self._is_modifier(token):
            self._set_prev_token(token)
            return

        if statement.definer.consume(token, self.prev_token, self.dialect):
            self._set_prev_token(token)
            return
        if statement.algorithm.consume(token, self.prev_token, self.dialect):
            self._set_prev_token(token)
            return
        if statement.sql_security.consume(token, self.dialect):
            self._set_prev_token(token)
            return

        if self.current_step >= len(self.steps):
            self._set_prev_token(token)
            return

        self._apply_step(token)
        self._set_prev_token(token)

    def close(self, end: int) -> ParsedStatement:
        """Fix the statement's end offset and return the finished statement."""
        statement = self.statement
        statement.end = end
        # every token so far was a skipped modifier
        if statement.start < 0 and self.first_token is not None:
            statement.start = self.first_token.start
        return statement.finalize()

    def _semicolon_ends_statement(self) -> bool:
        statement_type = self.statement.type
        if statement_type not in BLOCK_STATEMENT_TYPES:
            return True
        return self.open_blocks == 0 and (
            statement_type == StatementType.UNKNOWN or self.statement.can_end
        )

    def _opens_block(self, token: Token, next_token: Optional[Token]) -> bool:
        if token.upper not in block_openers(self.dialect):
            return False
        prev = self.prev_non_whitespace_token
        if prev is not None and prev.upper == "END":
            return False
        if token.upper != "BEGIN":
            return True
        next_upper = next_token.upper if next_token is not None else ""
        if next_upper == "TRANSACTION":
            return False
        return not (self.dialect == Dialect.SQLITE and next_upper in SQLITE_TRANSACTION_MODES)

    def _is_modifier(self, token: Token) -> bool:
        upper = token.upper
        dialect = self.dialect

        if upper == "UNIQUE":
            return True
        if dialect == Dialect.MYSQL and upper in ("FULLTEXT", "SPATIAL"):
            return True
        if dialect == Dialect.MSSQL and upper in ("CLUSTERED", "NONCLUSTERED"):
            return True
        if dialect in (Dialect.PSQL, Dialect.MSSQL, Dialect.BIGQUERY) and upper == "MATERIALIZED":
            return True

        if dialect != Dialect.SQLITE:
            prev = self.prev_non_whitespace_token
            prev_is_or = prev is not None and prev.upper == "OR"
            or_follower = "ALTER" if dialect == Dialect.MSSQL else "REPLACE"
            if upper == "OR" or (prev_is_or and upper == or_follower):
                return True

        if dialect == Dialect.PSQL and upper in ("TEMP", "TEMPORARY"):
            return True
        return dialect == Dialect.SQLITE and upper in ("TEMP", "TEMPORARY", "VIRTUAL")

    def _apply_step(self, token: Token) -> None:
        step = self.steps[self.current_step]

        if (
            self.options.strict
            and self.prev_token is not None
            and step.require_before
            and self.prev_token.type not in step.require_before
        ):
            required = " or ".join(str(token_type) for token_type in step.require_before)
            raise MissingRequiredPredecessorError(
                f'Expected any of these tokens {required} before "{token.value}" '
                f"(currentStep={self.current_step}).",
                "missing_required_predecessor",
            )

        if self.options.strict and not step.accepts(token):
            expected = " or ".join(accept_token.describe() for accept_token in step.accept or ())
            raise StepValidationError(
                f'Expected any of these tokens {expected} instead of type="{token.type}" '
                f'value="{token.value}" (currentStep={self.current_step}).',
                "step_validation_failure",
            )

        step.add(self.statement, token)
        self.statement.execution_type = execution_type_for(self.statement.type)
        self.current_step += 1


def create_classifier(
    token: Token,
    next_token: Optional[Token],
    options: ClassifierOptions,
) -> StatementClassifier:
    """Pick the classifier for a statement starting with ``token``.

    Raises UnrecognizedStatementStartError in strict mode when no classifier
    matches; otherwise falls back to one that accepts anything as UNKNOWN.
    """
    selected = _select_steps(token, next_token, options.dialect)
    if selected is None:
        if options.strict:
            raise UnrecognizedStatementStartError(
                f'Invalid statement parser "{token.value}"', "unrecognized_statement_start"
            )
        selected = (_unknown_steps(), None)

    steps, initial_type = selected
    return StatementClassifier(steps, options, Statement(type=initial_type))


def _select_steps(
    token: Token, next_token: Optional[Token], dialect: Dialect
) -> Optional[tuple[list[Step], Optional[str]]]:
    if token.type != TokenType.KEYWORD:
        return None

    keyword = token.upper
    if keyword in ("SELECT", "INSERT", "UPDATE", "DELETE", "TRUNCATE"):
        return _single_step(keyword, StatementType(keyword)), None
    if keyword in ("CREATE", "DROP"):
        return _verb_object_steps(keyword, _create_or_drop_objects(dialect)), None
    if keyword == "ALTER":
        return _verb_object_steps(keyword, _alter_objects(dialect)), None
    if keyword == "SHOW" and dialect in (Dialect.MYSQL, Dialect.GENERIC):
        return _verb_object_steps(keyword, SHOW_OBJECTS), None

    # anonymous blocks are typed before their first token is read
    next_upper = next_token.upper if next_token is not None else ""
    if keyword == "BEGIN" and dialect in (Dialect.BIGQUERY, Dialect.ORACLE) and next_upper != "TRANSACTION":
        return _block_steps(dialect), StatementType.ANON_BLOCK
    if keyword == "DECLARE" and dialect == Dialect.ORACLE:
        return _block_steps(dialect), StatementType.ANON_BLOCK
    return None
