"""Typed result envelopes returned by ``identify()``."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class IdentifyResult:
    """One identified statement."""

    start: int
    end: int
    text: str
    type: str
    execution_type: str
    parameters: list[str] = field(default_factory=list)
    tables: list[str] = field(default_factory=list)

    def as_json_dict(self) -> dict[str, Any]:
        """Return a stable machine-readable structure."""
        return {
            "start": self.start,
            "end": self.end,
            "text": self.text,
            "type": str(self.type),
            "executionType": str(self.execution_type),
            "parameters": list(self.parameters),
            "tables": list(self.tables),
        }
