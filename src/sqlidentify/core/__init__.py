"""Tokenizer, statement classifier and statement splitter."""

from .classifier import ParsedStatement
from .dialects import DIALECTS, Dialect, default_param_types, is_dialect
from .parser import ParseResult, parse
from .statement_types import EXECUTION_TYPES, ExecutionType, StatementType
from .tokenizer import Token, TokenType, tokenize

__all__ = [
    "DIALECTS",
    "Dialect",
    "EXECUTION_TYPES",
    "ExecutionType",
    "ParseResult",
    "ParsedStatement",
    "StatementType",
    "Token",
    "TokenType",
    "default_param_types",
    "is_dialect",
    "parse",
    "tokenize",
]
