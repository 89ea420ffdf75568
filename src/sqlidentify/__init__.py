"""
sqlidentify

Identify the statements inside a SQL query: their type, execution type,
character span, bound parameters and referenced tables.
"""

__version__ = "0.1.0"

from .core.dialects import DIALECTS, Dialect
from .core.statement_types import ExecutionType, StatementType
from .domain.errors import (
    DoubleTerminationError,
    IdentifyError,
    InvalidDialectError,
    MissingRequiredPredecessorError,
    StepValidationError,
    UnrecognizedStatementStartError,
)
from .domain.results import IdentifyResult
from .identifier import get_execution_type, identify
from .models import IdentifyOptions, ParamTypes

__all__ = [
    "__version__",
    "identify",
    "get_execution_type",
    "IdentifyOptions",
    "ParamTypes",
    "IdentifyResult",
    "Dialect",
    "DIALECTS",
    "StatementType",
    "ExecutionType",
    "IdentifyError",
    "InvalidDialectError",
    "UnrecognizedStatementStartError",
    "StepValidationError",
    "MissingRequiredPredecessorError",
    "DoubleTerminationError",
]
