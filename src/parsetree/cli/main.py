"""CLI entry point for parsetree.

Invoked as::

    parsetree [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m parsetree.cli.main

Commands
--------
dump        Serialize the methods of a runtime document
kinds       List every node kind and its id
version     Show version information
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

if TYPE_CHECKING:
    from parsetree.config import ParseTreeConfig
    from parsetree.driver.runtime import Runtime
    from parsetree.serializer.diagnostics import DiagnosticCollection

console = Console()
err_console = Console(stderr=True)


def _configure_logging(level: int) -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_config_or_exit(path: str | None) -> "ParseTreeConfig":
    """Load the configuration, exiting on error."""
    from parsetree.config import load_config
    from parsetree.errors import ConfigError

    try:
        return load_config(Path(path) if path else None)
    except ConfigError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


def _load_document_or_exit(path: str) -> "Runtime":
    """Load a runtime document, exiting on error."""
    from parsetree.driver.runtime import load_document
    from parsetree.errors import DocumentError

    try:
        return load_document(path)
    except DocumentError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


def _severity_color(severity_name: str) -> str:
    """Map a DiagnosticSeverity name to a Rich color string."""
    colors = {
        "ERROR": "red",
        "WARNING": "yellow",
        "INFORMATION": "blue",
        "HINT": "dim",
    }
    return colors.get(severity_name, "white")


def _print_diagnostics(diagnostics: "DiagnosticCollection", source: str) -> None:
    table = Table(title=f"Diagnostics: {source}", show_lines=True)
    table.add_column("Severity", style="bold", min_width=10)
    table.add_column("Code", min_width=8)
    table.add_column("Method", min_width=10)
    table.add_column("Node", min_width=10)
    table.add_column("Message")

    for d in diagnostics:
        color = _severity_color(d.severity.name)
        table.add_row(
            f"[{color}]{d.severity.name}[/{color}]",
            d.code,
            f"{d.type_name or '?'}#{d.method_name or '?'}",
            f"{d.kind_name} ({d.raw_kind})\n[dim]{d.slot_summary}[/dim]",
            d.message,
        )

    err_console.print(table)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="parsetree")
def cli() -> None:
    """Serialize host syntax trees into S-expressions."""


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from parsetree import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]parsetree[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# kinds command
# ---------------------------------------------------------------------------


@cli.command(name="kinds")
def kinds_command() -> None:
    """List every node kind with its id and slot roles."""
    from parsetree.ast.nodes import NodeKind, layout_for
    from parsetree.serializer import UNHANDLED_KINDS

    table = Table(title="Node kinds")
    table.add_column("Id", justify="right")
    table.add_column("Kind", style="bold")
    table.add_column("u1")
    table.add_column("u2")
    table.add_column("u3")

    for kind in NodeKind:
        roles = [spec.role if spec else "" for spec in layout_for(kind)]
        name = kind.name.lower()
        if kind in UNHANDLED_KINDS:
            name = f"[dim]{name}[/dim]"
        table.add_row(str(kind.value), name, *roles)

    console.print(table)


# ---------------------------------------------------------------------------
# dump command
# ---------------------------------------------------------------------------


@cli.command(name="dump")
@click.argument("file", type=click.Path(exists=False))
@click.option("--type", "-t", "type_names", multiple=True, help="Type to dump (repeatable; defaults to all)")
@click.option("--method", "-m", "method_name", default=None, help="Dump a single method of --type")
@click.option(
    "--newlines/--no-newlines",
    default=None,
    help="Emit line markers (overrides the configuration)",
)
@click.option("--pretty", is_flag=True, default=False, help="Break long lists over several lines")
@click.option("--output", "-o", default=None, help="Output file path (defaults to stdout)")
@click.option("--config", "config_path", default=None, help="Path to parsetree.yaml")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Trace every visited node")
def dump_command(
    file: str,
    type_names: tuple[str, ...],
    method_name: str | None,
    newlines: bool | None,
    pretty: bool,
    output: str | None,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Serialize the methods of a runtime document.

    FILE is the path to a YAML or JSON runtime document.

    Examples:

    \b
        parsetree dump something.yaml
        parsetree dump something.yaml -t Something -m blah --newlines
    """
    from parsetree.driver import ParseTree
    from parsetree.errors import SerializationError
    from parsetree.serializer import DiagnosticCollection
    from parsetree.sexp import dumps

    config = _load_config_or_exit(config_path)
    _configure_logging(logging.DEBUG if verbose else config.log_level_number)
    if newlines is not None:
        config.include_line_markers = newlines

    runtime = _load_document_or_exit(file)

    try:
        types = [runtime.get_type(name) for name in type_names] or runtime.types
    except KeyError as exc:
        err_console.print(f"[red]Error:[/red] {exc.args[0]}")
        sys.exit(1)

    diagnostics = DiagnosticCollection()
    driver = ParseTree.from_config(runtime, config, sink=diagnostics)

    if method_name is not None:
        if len(types) != 1:
            err_console.print("[red]Error:[/red] --method needs exactly one --type")
            sys.exit(1)
        try:
            tree = driver.tree_for_method(types[0], method_name)
        except SerializationError as exc:
            err_console.print(f"[red]Serialization error[/red] in {file}: {exc}")
            sys.exit(1)
        failures = []
    else:
        result = driver.dump_types(types)
        tree = result.tree
        failures = result.failures

    text = dumps(tree, pretty=pretty)

    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
        console.print(f"[green]Tree written to[/green] {output}")
    elif console.is_terminal:
        console.print(Syntax(text, "scheme", word_wrap=True))
    else:
        click.echo(text)

    if diagnostics.has_diagnostics:
        _print_diagnostics(diagnostics, file)

    if failures:
        for error in failures:
            err_console.print(f"[red]Serialization error[/red] in {file}: {error}")
        err_console.print(
            f"\n[bold]Summary:[/bold] {len(failures)} type(s) skipped"
        )
        sys.exit(1)


if __name__ == "__main__":
    cli()
