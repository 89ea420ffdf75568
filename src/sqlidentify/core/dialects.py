"""
Dialect configuration.

Static lookup tables consulted by the tokenizer (quoting and parameter rules)
and by the statement classifier (keyword and block opener sets). Nothing here
is mutated after import, so parses may share these tables freely.
"""

from enum import StrEnum

from sqlidentify.models import ParamTypes


class Dialect(StrEnum):
    """SQL dialects understood by the identifier"""

    MSSQL = "mssql"
    SQLITE = "sqlite"
    MYSQL = "mysql"
    ORACLE = "oracle"
    PSQL = "psql"
    BIGQUERY = "bigquery"
    GENERIC = "generic"


DIALECTS: tuple[Dialect, ...] = (
    Dialect.MSSQL,
    Dialect.SQLITE,
    Dialect.MYSQL,
    Dialect.ORACLE,
    Dialect.PSQL,
    Dialect.BIGQUERY,
    Dialect.GENERIC,
)

# Shared by every dialect. Words outside this set are scanned as unknown tokens.
KEYWORDS: frozenset[str] = frozenset(
    {
        "SELECT", "INSERT", "DELETE", "UPDATE", "CREATE", "DROP", "DATABASE",
        "SCHEMA", "TABLE", "VIEW", "TRIGGER", "FUNCTION", "INDEX", "ALTER",
        "TRUNCATE", "WITH", "AS", "MATERIALIZED", "BEGIN", "DECLARE", "CASE",
        "LOOP", "IF", "REPEAT", "WHILE", "FOR", "PROCEDURE", "SHOW", "DATABASES",
        "KEYS", "TABLES", "COLUMNS", "STATUS", "BINARY", "BINLOG", "CHARACTER",
        "COLLATION", "ENGINE", "ENGINES", "ERRORS", "EVENTS", "GRANTS", "MASTER",
        "OPEN", "PLUGINS", "PRIVILEGES", "PROCESSLIST", "PROFILE", "PROFILES",
        "RELAYLOG", "REPLICAS", "SLAVE", "REPLICA", "TRIGGERS", "VARIABLES", "WARNINGS",
    }
)  # fmt: skip

BLOCK_OPENERS: dict[Dialect, tuple[str, ...]] = {
    Dialect.GENERIC: ("BEGIN", "CASE"),
    Dialect.PSQL: ("BEGIN", "CASE", "LOOP", "IF"),
    Dialect.MYSQL: ("BEGIN", "CASE", "LOOP", "IF"),
    Dialect.MSSQL: ("BEGIN", "CASE"),
    Dialect.SQLITE: ("BEGIN", "CASE"),
    Dialect.ORACLE: ("DECLARE", "BEGIN", "CASE"),
    Dialect.BIGQUERY: ("BEGIN", "CASE", "IF", "LOOP", "REPEAT", "WHILE", "FOR"),
}

# Opening character -> closing character for strings and quoted identifiers
CLOSING_QUOTES: dict[str, str] = {
    '"': '"',
    "'": "'",
    "`": "`",
    "[": "]",
}

_DEFAULT_PARAM_TYPES: dict[Dialect, ParamTypes] = {
    Dialect.PSQL: ParamTypes(numbered=["$"]),
    Dialect.MSSQL: ParamTypes(named=[":"]),
    Dialect.BIGQUERY: ParamTypes(positional=True, named=["@"], quoted=["@"]),
    Dialect.SQLITE: ParamTypes(positional=True, numbered=["?"], named=[":", "@"]),
}


def is_dialect(value: str) -> bool:
    """Return True if ``value`` names a supported dialect."""
    return value in DIALECTS


def default_param_types(dialect: Dialect | str) -> ParamTypes:
    """Return the parameter syntax used by ``dialect`` when none is configured."""
    return _DEFAULT_PARAM_TYPES.get(Dialect(dialect), ParamTypes(positional=True))


def string_openers(dialect: Dialect) -> tuple[str, ...]:
    if dialect == Dialect.MYSQL:
        return ("'", '"')
    return ("'",)


def quoted_identifier_openers(dialect: Dialect) -> tuple[str, ...]:
    if dialect == Dialect.MSSQL:
        return ('"', "`", "[")
    return ('"', "`")


def block_openers(dialect: Dialect) -> tuple[str, ...]:
    return BLOCK_OPENERS[dialect]
