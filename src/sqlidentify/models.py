"""
Pydantic models for sqlidentify configuration.

These are the options accepted by ``identify()``. Field names follow Python
conventions; the camelCase aliases used by JSON callers are accepted too.
"""

import re
from typing import Optional, Tuple

from pydantic import BaseModel, Field, field_validator


class ParamTypes(BaseModel):
    """Parameter syntaxes recognised by the tokenizer.

    - positional: bare ``?``
    - numbered: prefix followed by digits, e.g. ``$1``
    - named: prefix followed by an identifier, e.g. ``:name``
    - quoted: prefix followed by a quoted identifier, e.g. ``:"two words"``
    - custom: regular expressions matched at the current position
    """

    positional: Optional[bool] = None
    numbered: Tuple[str, ...] = ()  # '?' | ':' | '$'
    named: Tuple[str, ...] = ()  # ':' | '@' | '$'
    quoted: Tuple[str, ...] = ()  # ':' | '@' | '$'
    custom: Tuple[str, ...] = ()

    @field_validator("numbered", "named", "quoted")
    @classmethod
    def _single_characters(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        for prefix in value:
            if len(prefix) != 1:
                raise ValueError(f"Parameter prefix must be a single character, got {prefix!r}")
        return value

    @field_validator("custom")
    @classmethod
    def _compilable_patterns(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        for pattern in value:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid custom parameter pattern {pattern!r}: {e}") from e
        return value

    @property
    def is_positional(self) -> bool:
        return bool(self.positional)

    class Config:
        frozen = True


class IdentifyOptions(BaseModel):
    """Options for ``identify()``"""

    strict: bool = True
    dialect: str = "generic"
    identify_tables: bool = Field(False, alias="identifyTables")
    param_types: Optional[ParamTypes] = Field(None, alias="paramTypes")

    class Config:
        populate_by_name = True
