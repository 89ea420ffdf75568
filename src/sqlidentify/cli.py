"""
Click-based CLI for sqlidentify.
"""

import json
import logging
import sys
from typing import IO

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from . import __version__
from .core.dialects import DIALECTS, Dialect
from .core.tokenizer import tokenize
from .domain.errors import IdentifyError
from .domain.results import IdentifyResult
from .identifier import identify

console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="sqlidentify")
def cli() -> None:
    """Identify the statements inside SQL scripts"""
    pass


@cli.command("identify")
@click.argument("source", type=click.File("r"), default="-")
@click.option(
    "--dialect",
    "-d",
    type=click.Choice([dialect.value for dialect in DIALECTS]),
    default=Dialect.GENERIC.value,
    show_default=True,
    help="SQL dialect of the input",
)
@click.option("--no-strict", is_flag=True, help="Report unrecognized statements as UNKNOWN")
@click.option("--tables", is_flag=True, help="Collect table names after FROM/JOIN/INTO")
@click.option("--json", "json_output", is_flag=True, help="Print results as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def identify_command(
    source: IO[str],
    dialect: str,
    no_strict: bool,
    tables: bool,
    json_output: bool,
    verbose: bool,
) -> None:
    """Identify statements in SOURCE (a file, or stdin when omitted)"""
    _configure_logging(verbose)

    try:
        results = identify(
            source.read(),
            dialect=dialect,
            strict=not no_strict,
            identify_tables=tables,
        )
    except IdentifyError as e:
        err_console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        sys.exit(1)

    if json_output:
        print(json.dumps([result.as_json_dict() for result in results], indent=2))
        return

    if not results:
        console.print("[yellow]No statements found[/yellow]")
        return

    _render_results_table(results, show_tables=tables)


@cli.command("tokens")
@click.argument("source", type=click.File("r"), default="-")
@click.option(
    "--dialect",
    "-d",
    type=click.Choice([dialect.value for dialect in DIALECTS]),
    default=Dialect.GENERIC.value,
    show_default=True,
    help="SQL dialect of the input",
)
@click.option("--json", "json_output", is_flag=True, help="Print tokens as JSON")
def tokens_command(source: IO[str], dialect: str, json_output: bool) -> None:
    """Print the token stream of SOURCE"""
    tokens = tokenize(source.read(), Dialect(dialect))

    if json_output:
        print(json.dumps([token.as_json_dict() for token in tokens], indent=2))
        return

    table = Table(title="Tokens", show_header=True, header_style="bold magenta")
    table.add_column("Type", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    for token in tokens:
        table.add_row(str(token.type), Text(repr(token.value)), str(token.start), str(token.end))
    console.print(table)


def _render_results_table(results: list[IdentifyResult], show_tables: bool) -> None:
    """Build and print the Rich table of identified statements."""
    table = Table(title="Statements", show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=4)
    table.add_column("Type", style="cyan")
    table.add_column("Execution", style="green")
    table.add_column("Span", justify="right")
    table.add_column("Parameters", style="yellow")
    if show_tables:
        table.add_column("Tables", style="blue")

    for i, result in enumerate(results, 1):
        row: list[str | Text] = [
            str(i),
            str(result.type),
            str(result.execution_type),
            f"{result.start}-{result.end}",
            Text(", ".join(result.parameters)),
        ]
        if show_tables:
            row.append(Text(", ".join(result.tables)))
        table.add_row(*row)

    console.print(table)


if __name__ == "__main__":
    cli()
