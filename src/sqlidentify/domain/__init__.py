"""Domain types shared by the identifier, its callers and the CLI."""

from .errors import (
    DoubleTerminationError,
    IdentifyError,
    InvalidDialectError,
    MissingRequiredPredecessorError,
    StepValidationError,
    UnrecognizedStatementStartError,
)
from .results import IdentifyResult

__all__ = [
    "IdentifyResult",
    "IdentifyError",
    "InvalidDialectError",
    "UnrecognizedStatementStartError",
    "StepValidationError",
    "MissingRequiredPredecessorError",
    "DoubleTerminationError",
]
