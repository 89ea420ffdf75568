"""Error taxonomy for statement identification."""

from dataclasses import dataclass


@dataclass(slots=True)
class IdentifyError(Exception):
    """Base class for identification failures."""

    message: str
    code: str

    def __str__(self) -> str:
        return self.message


class InvalidDialectError(IdentifyError):
    """Raised when the requested dialect is not supported."""


class UnrecognizedStatementStartError(IdentifyError):
    """Raised in strict mode when no classifier matches a statement's first token."""


class StepValidationError(IdentifyError):
    """Raised in strict mode when a token does not fit the classifier's current step."""


class MissingRequiredPredecessorError(IdentifyError):
    """Raised in strict mode when a step's required preceding token is absent."""


class DoubleTerminationError(IdentifyError):
    """Raised when a token is fed to a statement that has already ended."""
