"""
Unit tests for sqlidentify.core.parser (statement splitting and CTE folding)
"""

import logging

import pytest

from sqlidentify.core.dialects import Dialect
from sqlidentify.core.parser import CteHeader, TokenStream, parse
from sqlidentify.core.statement_types import ExecutionType, StatementType
from sqlidentify.core.tokenizer import Token, TokenType, iter_tokens
from sqlidentify.domain.errors import UnrecognizedStatementStartError


MULTI_STATEMENT_QUERIES = [
    (Dialect.GENERIC, "SELECT * FROM a JOIN b ON a.id = b.id;\nINSERT INTO t VALUES (?, ?);  -- tail"),
    (Dialect.MYSQL, "SHOW TABLES;\nSELECT \"x;y\" FROM t WHERE a = ?;\nDROP VIEW v"),
    (Dialect.PSQL, "CREATE FUNCTION f() RETURNS int AS $$ SELECT 1; $$ LANGUAGE sql;\nSELECT $2, $1;"),
    (Dialect.MSSQL, "SELECT [a;b] FROM t WHERE x = :one;\n/* note; */ UPDATE t SET a = :two;"),
    (Dialect.SQLITE, "CREATE TEMP TABLE t (a);\nINSERT INTO t VALUES (?1, :name);\nDELETE FROM t;"),
    (Dialect.ORACLE, "DECLARE\n  n NUMBER;\nBEGIN\n  SELECT 1 INTO n FROM dual;\nEND;\nSELECT 2 FROM dual;"),
    (Dialect.BIGQUERY, "BEGIN\n  SELECT @p;\nEND;\nWITH x AS (SELECT 1) SELECT * FROM x;"),
]


def spans(text: str, **kwargs) -> list[tuple[str, int, int]]:
    return [(s.type, s.start, s.end) for s in parse(text, **kwargs).body]


class TestParseResult:
    """Shape of the top-level result"""

    def test_query_envelope(self) -> None:
        result = parse("SELECT 1")
        assert result.type == "QUERY"
        assert (result.start, result.end) == (0, 7)

    def test_empty_input(self) -> None:
        result = parse("")
        assert result.body == []
        assert result.tokens == []
        assert result.end == -1

    def test_comment_only_input(self) -> None:
        result = parse("-- comment ?")
        assert result.body == []
        assert (result.start, result.end) == (0, 11)

    def test_tokens_cover_whole_input(self) -> None:
        text = "  SELECT 1;\nWITH x AS (SELECT 2) SELECT * FROM x;  -- end"
        result = parse(text)
        assert "".join(t.value for t in result.tokens) == text

    def test_token_offsets_are_contiguous(self) -> None:
        for dialect, text in MULTI_STATEMENT_QUERIES:
            tokens = parse(text, strict=False, dialect=dialect).tokens
            assert tokens[0].start == 0, dialect
            assert tokens[-1].end == len(text) - 1, dialect
            for previous, token in zip(tokens, tokens[1:]):
                assert token.start == previous.end + 1, (dialect, token)
                assert token.end == token.start + len(token.value) - 1, (dialect, token)

    def test_parse_is_deterministic(self) -> None:
        for dialect, text in MULTI_STATEMENT_QUERIES:
            for strict in (True, False):
                first = parse(text, strict=strict, dialect=dialect, identify_tables=True)
                second = parse(text, strict=strict, dialect=dialect, identify_tables=True)
                assert first == second, (dialect, strict)
                assert first.body, dialect

    def test_string_parameters_are_ignored(self) -> None:
        result = parse("select '$1'", dialect=Dialect.PSQL)
        assert result.tokens == [
            Token(TokenType.KEYWORD, "select", 0, 5),
            Token(TokenType.WHITESPACE, " ", 6, 6),
            Token(TokenType.STRING, "'$1'", 7, 10),
        ]
        assert result.body[0].parameters == ()


class TestSingleStatements:
    """One statement per query"""

    def test_unrecognized_statement_in_strict_mode(self) -> None:
        with pytest.raises(UnrecognizedStatementStartError, match='Invalid statement parser "LIST"'):
            parse("LIST * FROM Persons")

    def test_unrecognized_statement_in_loose_mode(self) -> None:
        assert spans("LIST * FROM foo", strict=False) == [("UNKNOWN", 0, 14)]

    def test_keyword_that_starts_nothing(self) -> None:
        assert spans("AS bar LEFT JOIN foo", strict=False) == [("UNKNOWN", 0, 19)]

    def test_lowercase_select(self) -> None:
        statement = parse("select * from Persons").body[0]
        assert statement.type == StatementType.SELECT
        assert statement.execution_type == ExecutionType.LISTING
        assert statement.end_marker is None

    def test_terminated_statement(self) -> None:
        statement = parse("DROP TABLE Persons;").body[0]
        assert statement.type == StatementType.DROP_TABLE
        assert statement.end_marker == ";"
        assert statement.end == 18

    def test_leading_comment_is_not_part_of_statement(self) -> None:
        text = "\n        -- some comment\n        SELECT * FROM Persons\n      "
        assert spans(text) == [("SELECT", 33, 60)]

    def test_trailing_comment_is_part_of_statement(self) -> None:
        text = "SELECT * FROM Persons -- trailing\n"
        assert spans(text) == [("SELECT", 0, len(text) - 1)]

    def test_parameters(self) -> None:
        statement = parse("select x from a where x = :foo and y = :bar", dialect=Dialect.MSSQL).body[0]
        assert statement.parameters == (":foo", ":bar")


class TestMultipleStatements:
    """Statement boundaries"""

    def test_single_line(self) -> None:
        text = "INSERT INTO Persons (PersonID, Name) VALUES (1, 'Jack');SELECT * FROM Persons"
        assert spans(text) == [("INSERT", 0, 55), ("SELECT", 56, 76)]

    def test_multiple_lines(self) -> None:
        text = (
            "\n        INSERT INTO Persons (PersonID, Name) VALUES (1, 'Jack');"
            "\n        SELECT * FROM Persons;\n      "
        )
        assert spans(text) == [("INSERT", 9, 64), ("SELECT", 74, 95)]

    def test_empty_statements_are_skipped(self) -> None:
        text = "\n        ;select 1;;select 2;;;\n        ;\n        select 3;\n      "
        assert spans(text) == [("SELECT", 10, 18), ("SELECT", 20, 28), ("SELECT", 50, 58)]

    def test_semicolon_in_quoted_identifier(self) -> None:
        text = '\n  SELECT "foo;bar";\n  SELECT * FROM t;\n'
        result = spans(text, dialect=Dialect.PSQL)
        assert [s[0] for s in result] == ["SELECT", "SELECT"]
        assert text[result[0][1] : result[0][2] + 1] == 'SELECT "foo;bar";'

    def test_spans_are_ordered_and_disjoint(self) -> None:
        text = "SELECT 1; INSERT INTO t VALUES (1); UPDATE t SET a = 2; DELETE FROM t"
        result = parse(text).body
        for first, second in zip(result, result[1:]):
            assert first.start <= first.end < second.start <= second.end

    def test_transactions(self) -> None:
        text = "BEGIN TRANSACTION;\nSELECT 1;\nCOMMIT;"
        assert spans(text, strict=False) == [
            ("UNKNOWN", 0, 17),
            ("SELECT", 19, 27),
            ("UNKNOWN", 29, 35),
        ]

    def test_sqlite_transaction_modes(self) -> None:
        for mode in ("DEFERRED", "IMMEDIATE", "EXCLUSIVE"):
            text = f"BEGIN {mode} TRANSACTION;\nSELECT 1;\nCOMMIT;"
            offset = len(mode)
            assert spans(text, strict=False, dialect=Dialect.SQLITE) == [
                ("UNKNOWN", 0, 18 + offset),
                ("SELECT", 20 + offset, 28 + offset),
                ("UNKNOWN", 30 + offset, 36 + offset),
            ]


class TestCommonTableExpressions:
    """WITH headers fold into the statement that follows"""

    def test_header_folds_into_select(self) -> None:
        text = "WITH cte_name (column1, column2) AS (\n  SELECT * FROM table\n)\nSELECT * FROM cte_name;"
        statement = parse(text).body[0]
        assert statement.type == StatementType.SELECT
        assert (statement.start, statement.end) == (0, len(text) - 1)
        assert statement.is_cte

    def test_lowercase_with(self) -> None:
        text = "with t AS (SELECT 1) select * from t"
        assert spans(text) == [("SELECT", 0, len(text) - 1)]

    def test_multiple_definitions(self) -> None:
        text = (
            "WITH\n  cte1 AS\n  (\n    SELECT 1 AS id\n  ),\n  cte2 AS\n  (\n    SELECT 2 AS id\n  )\n"
            "SELECT * FROM cte1\nUNION ALL\nSELECT * FROM cte2"
        )
        assert spans(text) == [("SELECT", 0, len(text) - 1)]

    def test_nested_with(self) -> None:
        text = (
            "with temp as (\n  with data as (\n    select * from city limit 10\n  )\n"
            "  select name from data\n)\nselect * from temp;"
        )
        assert spans(text) == [("SELECT", 0, len(text) - 1)]

    def test_cte_in_the_middle(self) -> None:
        first = "INSERT INTO Persons (PersonID, Name) VALUES (1, 'Jack');"
        second = "WITH employee AS (SELECT * FROM Employees)\nSELECT * FROM employee WHERE Sex = 'M';"
        third = "SELECT * FROM Persons;"
        text = f"\n{first}\n\n{second}\n\n{third}\n"
        result = parse(text, strict=False).body
        assert [s.type for s in result] == ["INSERT", "SELECT", "SELECT"]
        assert [text[s.start : s.end + 1] for s in result] == [first, second, third]

    def test_semicolon_after_header(self) -> None:
        text = "with temp as (\n  select * from foo\n);\nselect * from foo;"
        header_end = text.index(";")
        assert spans(text, strict=False) == [
            ("UNKNOWN", 0, header_end),
            ("SELECT", header_end + 2, len(text) - 1),
        ]

    def test_semicolon_after_with_keyword(self) -> None:
        text = "with;\n  select * from foo;"
        assert spans(text, strict=False) == [("UNKNOWN", 0, 4), ("SELECT", 8, 25)]

    def test_semicolon_inside_definition(self) -> None:
        text = "with temp as ( SELECT ;\n  select * from foo"
        assert spans(text, strict=False) == [("UNKNOWN", 0, 22), ("SELECT", 26, 42)]

    def test_header_parameters_are_kept(self) -> None:
        text = "WITH x AS (SELECT * FROM t WHERE a = $1) SELECT * FROM x WHERE b = $2"
        statement = parse(text, dialect=Dialect.PSQL).body[0]
        assert statement.parameters == ("$1", "$2")

    def test_tables_are_not_collected_for_cte_statements(self) -> None:
        text = "WITH x AS (SELECT * FROM t) SELECT * FROM x"
        statement = parse(text, identify_tables=True).body[0]
        assert statement.tables == ()

    def test_cte_header_tracking(self) -> None:
        header = CteHeader()
        header.open(Token(TokenType.KEYWORD, "WITH", 0, 3))
        for value in ["x", "AS", "(", "(", ")", ")"]:
            header.track(Token(TokenType.UNKNOWN, value, 0, 0))
        assert header.complete
        header.next_definition()
        assert not header.complete and not header.as_seen


class TestBigQuery:
    """Procedural control structures"""

    CONTROL_STRUCTURES = [
        "CASE\n  WHEN x THEN SELECT 'a';\n  ELSE SELECT 'b';\nEND CASE;",
        "IF EXISTS(SELECT 1 FROM t) THEN\n  SELECT 'found';\nELSE\n  SELECT 'missing';\nEND IF;",
        "LOOP\n  SET x = x + 1;\n  IF x >= 10 THEN\n    LEAVE;\n  END IF;\nEND LOOP;",
        "REPEAT\n  SET x = x + 1;\n  SELECT x;\n  UNTIL x >= 3\nEND REPEAT;",
        "WHILE x < 0 DO\n  SET x = x + 1;\n  SELECT x;\nEND WHILE;",
        "FOR record IN\n  (SELECT word FROM t LIMIT 5)\nDO\n  SELECT record.word;\nEND FOR;",
    ]

    def test_control_structures_are_single_statements(self) -> None:
        for sql in self.CONTROL_STRUCTURES:
            query = sql + "\nSELECT 1;"
            body = parse(query, strict=False, dialect=Dialect.BIGQUERY).body
            assert [s.type for s in body] == ["UNKNOWN", "SELECT"], sql
            assert query[body[0].start : body[0].end + 1] == sql

    def test_begin_block(self) -> None:
        body = parse("BEGIN SELECT 1; END; SELECT 1;", strict=False, dialect=Dialect.BIGQUERY).body
        assert [s.type for s in body] == ["ANON_BLOCK", "SELECT"]

    def test_begin_transaction(self) -> None:
        body = parse("BEGIN TRANSACTION; SELECT 1; COMMIT;", strict=False, dialect=Dialect.BIGQUERY).body
        assert [s.type for s in body] == ["UNKNOWN", "SELECT", "UNKNOWN"]

    def test_procedure_with_lowercase_if(self) -> None:
        text = (
            "CREATE OR REPLACE PROCEDURE foo.bar (col string)\nBEGIN\n"
            "if foo is not null then\n  SET foo = 'bar';\nend if;\n\nSELECT 1;\nEND;"
        )
        assert spans(text, strict=False, dialect=Dialect.BIGQUERY) == [
            ("CREATE_PROCEDURE", 0, len(text) - 1)
        ]


class TestOracle:
    """Anonymous blocks"""

    def test_case_expression_in_select(self) -> None:
        text = "SELECT CASE WHEN a = 'a' THEN 'foo' ELSE 'bar' END CASE from table;"
        assert len(parse(text, strict=False, dialect=Dialect.ORACLE).body) == 1

    def test_simple_block(self) -> None:
        text = (
            "BEGIN\n          SELECT\n            cols.column_name INTO :variable\n"
            "          FROM\n            example_table;\n        END"
        )
        assert spans(text, strict=False, dialect=Dialect.ORACLE) == [("ANON_BLOCK", 0, 119)]

    def test_two_blocks(self) -> None:
        block = (
            "BEGIN\n          SELECT\n            cols.column_name INTO :variable\n"
            "          FROM\n            example_table;\n        END"
        )
        text = block + ";\n\n        " + block + "\n        "
        assert spans(text, strict=False, dialect=Dialect.ORACLE) == [
            ("ANON_BLOCK", 0, 120),
            ("ANON_BLOCK", 131, 259),
        ]

    def test_declare_block_then_query(self) -> None:
        text = (
            "DECLARE\n          PK_NAME VARCHAR(200);\n        BEGIN\n          SELECT\n"
            "            cols.column_name INTO PK_NAME\n          FROM\n            example_table;\n"
            "        END;\n\n        select * from foo;\n      "
        )
        result = spans(text, strict=False, dialect=Dialect.ORACLE)
        assert [s[0] for s in result] == ["ANON_BLOCK", "SELECT"]
        assert result[0][1:] == (0, 166)
        assert result[1][1] == 177

    def test_nested_declare_blocks(self) -> None:
        text = (
            "DECLARE\n  n_emp_id NUMBER := 1;\nBEGIN\n  DECLARE\n    v_name VARCHAR2(20);\n"
            "  BEGIN\n    SELECT CASE foo WHEN 'a' THEN 1 ELSE 2 END CASE INTO v_name FROM employees;\n"
            "  EXCEPTION\n    WHEN no_data_found THEN\n      NULL;\n  END;\nEND;"
        )
        assert spans(text, strict=True, dialect=Dialect.ORACLE) == [
            ("ANON_BLOCK", 0, len(text) - 1)
        ]

    def test_create_table_then_block(self) -> None:
        text = (
            'create table\n  "t" (\n    "id" integer not null primary key\n  );\n\n'
            "DECLARE\n  PK_NAME VARCHAR(200);\nBEGIN\n  EXECUTE IMMEDIATE ('CREATE SEQUENCE s');\nEND;"
        )
        result = spans(text, strict=False, dialect=Dialect.ORACLE)
        assert [s[0] for s in result] == ["CREATE_TABLE", "ANON_BLOCK"]


class TestTokenStream:
    """Lookahead over the token iterator"""

    def test_peek_significant_skips_whitespace(self) -> None:
        stream = TokenStream(iter_tokens("BEGIN   TRANSACTION;"))
        assert stream.peek().value == "BEGIN"
        assert stream.peek_significant().value == "TRANSACTION"
        assert stream.pop().value == "BEGIN"
        assert stream.pop().type == TokenType.WHITESPACE

    def test_peek_significant_returns_comments(self) -> None:
        stream = TokenStream(iter_tokens("SELECT /* c */ 1"))
        assert stream.peek_significant().type == TokenType.COMMENT_BLOCK

    def test_peek_significant_at_end(self) -> None:
        stream = TokenStream(iter_tokens("SELECT  "))
        assert stream.peek_significant() is None


class TestLogging:
    def test_emitted_statements_are_logged(self, caplog) -> None:
        with caplog.at_level(logging.DEBUG, logger="sqlidentify.core.parser"):
            parse("SELECT 1; DROP TABLE t;")
        messages = [r.getMessage() for r in caplog.records]
        assert "Statement SELECT (LISTING) at 0..8" in messages
        assert "Statement DROP_TABLE (MODIFICATION) at 10..22" in messages
