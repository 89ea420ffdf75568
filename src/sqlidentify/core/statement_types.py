"""
Statement type vocabulary.

Statement types are open ended: ``VERB_OBJECT`` names such as ``CREATE_TABLE``
or ``SHOW_BINLOG`` are built from the tokens that were read, so types are
plain strings and the enum below lists the well-known ones only.
"""

from enum import StrEnum


class StatementType(StrEnum):
    """Well-known statement types"""

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    TRUNCATE = "TRUNCATE"
    CREATE_DATABASE = "CREATE_DATABASE"
    CREATE_SCHEMA = "CREATE_SCHEMA"
    CREATE_TABLE = "CREATE_TABLE"
    CREATE_VIEW = "CREATE_VIEW"
    CREATE_TRIGGER = "CREATE_TRIGGER"
    CREATE_FUNCTION = "CREATE_FUNCTION"
    CREATE_INDEX = "CREATE_INDEX"
    CREATE_PROCEDURE = "CREATE_PROCEDURE"
    DROP_DATABASE = "DROP_DATABASE"
    DROP_SCHEMA = "DROP_SCHEMA"
    DROP_TABLE = "DROP_TABLE"
    DROP_VIEW = "DROP_VIEW"
    DROP_TRIGGER = "DROP_TRIGGER"
    DROP_FUNCTION = "DROP_FUNCTION"
    DROP_INDEX = "DROP_INDEX"
    DROP_PROCEDURE = "DROP_PROCEDURE"
    ALTER_DATABASE = "ALTER_DATABASE"
    ALTER_SCHEMA = "ALTER_SCHEMA"
    ALTER_TABLE = "ALTER_TABLE"
    ALTER_VIEW = "ALTER_VIEW"
    ALTER_TRIGGER = "ALTER_TRIGGER"
    ALTER_FUNCTION = "ALTER_FUNCTION"
    ALTER_INDEX = "ALTER_INDEX"
    ALTER_PROCEDURE = "ALTER_PROCEDURE"
    ANON_BLOCK = "ANON_BLOCK"
    UNKNOWN = "UNKNOWN"


class ExecutionType(StrEnum):
    """How a statement is expected to behave when run"""

    LISTING = "LISTING"
    MODIFICATION = "MODIFICATION"
    INFORMATION = "INFORMATION"
    ANON_BLOCK = "ANON_BLOCK"
    UNKNOWN = "UNKNOWN"


SHOW_OBJECTS: tuple[str, ...] = (
    "DATABASES", "DATABASE", "KEYS", "INDEX", "COLUMNS", "TABLES", "TABLE",
    "BINARY", "BINLOG", "CHARACTER", "COLLATION", "CREATE", "ENGINE", "ENGINES",
    "ERRORS", "EVENTS", "FUNCTION", "GRANTS", "MASTER", "OPEN", "PLUGINS",
    "PRIVILEGES", "PROCEDURE", "PROCESSLIST", "PROFILE", "PROFILES", "RELAYLOG",
    "REPLICAS", "REPLICA", "SLAVE", "STATUS", "TRIGGERS", "VARIABLES", "WARNINGS",
)  # fmt: skip

# Statements that may contain semicolons in their body
BLOCK_STATEMENT_TYPES: frozenset[str] = frozenset(
    {
        StatementType.CREATE_TRIGGER,
        StatementType.CREATE_FUNCTION,
        StatementType.CREATE_PROCEDURE,
        StatementType.ANON_BLOCK,
        StatementType.UNKNOWN,
    }
)


def _build_execution_types() -> dict[str, ExecutionType]:
    mapping: dict[str, ExecutionType] = {
        StatementType.SELECT: ExecutionType.LISTING,
        StatementType.INSERT: ExecutionType.MODIFICATION,
        StatementType.UPDATE: ExecutionType.MODIFICATION,
        StatementType.DELETE: ExecutionType.MODIFICATION,
        StatementType.TRUNCATE: ExecutionType.MODIFICATION,
        StatementType.ANON_BLOCK: ExecutionType.ANON_BLOCK,
        StatementType.UNKNOWN: ExecutionType.UNKNOWN,
    }
    for member in StatementType:
        if member.value.startswith(("CREATE_", "DROP_", "ALTER_")):
            mapping[member] = ExecutionType.MODIFICATION
    # SHOW DATABASE is accepted but has no execution type of its own
    for show_object in SHOW_OBJECTS:
        if show_object != "DATABASE":
            mapping[f"SHOW_{show_object}"] = ExecutionType.LISTING
    return mapping


EXECUTION_TYPES: dict[str, ExecutionType] = _build_execution_types()


def execution_type_for(statement_type: str | None) -> ExecutionType:
    """Map a statement type to its execution type (UNKNOWN if unmapped)."""
    if statement_type is None:
        return ExecutionType.UNKNOWN
    return EXECUTION_TYPES.get(statement_type, ExecutionType.UNKNOWN)
