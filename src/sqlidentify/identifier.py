"""
Public entry points.

``identify()`` validates and defaults the options, runs the statement splitter
and turns every statement into an ``IdentifyResult``.
"""

import logging
from typing import Any, Optional, Union

from .core.dialects import DIALECTS, Dialect, default_param_types, is_dialect
from .core.parser import parse
from .core.statement_types import ExecutionType, execution_type_for
from .domain.errors import InvalidDialectError
from .domain.results import IdentifyResult
from .models import IdentifyOptions

logger = logging.getLogger(__name__)


def identify(
    query: str,
    options: Optional[Union[IdentifyOptions, dict[str, Any]]] = None,
    **overrides: Any,
) -> list[IdentifyResult]:
    """Identify every statement in ``query``.

    Args:
        query: Raw SQL text, possibly holding several statements
        options: ``IdentifyOptions`` or a mapping of its fields (snake_case or
            camelCase)
        **overrides: Individual option fields, applied on top of ``options``

    Returns:
        One result per statement, in input order

    Raises:
        InvalidDialectError: If the dialect is not supported
        IdentifyError: In strict mode, if a statement cannot be classified
        pydantic.ValidationError: If the options are malformed
    """
    resolved = resolve_options(options, **overrides)

    if not is_dialect(resolved.dialect):
        raise InvalidDialectError(
            f"Unknown dialect. Allowed values: [{', '.join(DIALECTS)}]", "invalid_dialect"
        )
    dialect = Dialect(resolved.dialect)
    param_types = resolved.param_types or default_param_types(dialect)

    result = parse(
        query,
        strict=resolved.strict,
        dialect=dialect,
        identify_tables=resolved.identify_tables,
        param_types=param_types,
    )

    # default psql params are returned sorted ($1 $2 $3); everything else keeps capture order
    sort_parameters = dialect == Dialect.PSQL and resolved.param_types is None

    results = []
    for statement in result.body:
        parameters = list(statement.parameters)
        if sort_parameters:
            parameters.sort()
        results.append(
            IdentifyResult(
                start=statement.start,
                end=statement.end,
                text=query[statement.start : statement.end + 1],
                type=statement.type,
                execution_type=statement.execution_type,
                parameters=parameters,
                tables=list(statement.tables),
            )
        )

    logger.debug("Identified %d statement(s) using dialect %s", len(results), dialect)
    return results


def resolve_options(
    options: Optional[Union[IdentifyOptions, dict[str, Any]]] = None,
    **overrides: Any,
) -> IdentifyOptions:
    """Merge ``options`` and keyword overrides into validated options."""
    if options is None:
        data: dict[str, Any] = {}
    elif isinstance(options, IdentifyOptions):
        data = options.model_dump(exclude_unset=True)
    else:
        data = dict(options)
    data.update(overrides)
    return IdentifyOptions.model_validate(data)


def get_execution_type(statement_type: str) -> ExecutionType:
    """Return the execution type of ``statement_type`` (UNKNOWN if unmapped)."""
    return execution_type_for(statement_type)
