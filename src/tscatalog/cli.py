"""Command-line interface for tscatalog."""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from tscatalog.checks import Severity, check_catalog
from tscatalog.coverage import compute_coverage, messages_frame
from tscatalog.errors import CatalogError, LookupMiss
from tscatalog.infrastructure.config import ConfigError, load_settings
from tscatalog.infrastructure.logging import LogConfig, configure_logging
from tscatalog.loader import load_file
from tscatalog.models import Catalog
from tscatalog.writer import dumps, write_file

app = typer.Typer(
    name="tscatalog",
    help="Inspect and query Qt Linguist translation catalogs",
    add_completion=False,
)


@app.callback()
def main(
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file (YAML, JSON or TOML)"),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Log level (debug, info, warning, error)"),
    ] = None,
    log_format: Annotated[
        Optional[str],
        typer.Option("--log-format", help="Log format (console, json)"),
    ] = None,
) -> None:
    """Load settings and set up logging before any command runs."""
    try:
        settings = load_settings(config, log_level=log_level, log_format=log_format)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    configure_logging(LogConfig(level=settings.log_level, format=settings.log_format))


def _load(file: Path) -> Catalog:
    if not file.exists():
        typer.echo(f"Error: File not found: {file}", err=True)
        raise typer.Exit(1)
    try:
        return load_file(file)
    except (CatalogError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _emit(text: str, output: Optional[Path]) -> None:
    if output:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Written to {output}")
    else:
        typer.echo(text)


@app.command(name="stats")
def stats_cmd(
    file: Annotated[Path, typer.Argument(help="Path to the .ts catalog")],
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (console, json, csv)"),
    ] = "console",
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path"),
    ] = None,
) -> None:
    """Show translation coverage per context."""
    report = compute_coverage(_load(file))

    if format == "json":
        _emit(json.dumps(report.to_dict(), indent=2, ensure_ascii=False), output)
    elif format == "csv":
        _emit(report.to_frame().write_csv(), output)
    elif format == "console":
        report.print_to_console()
    else:
        typer.echo(f"Error: Unknown format: {format}", err=True)
        raise typer.Exit(1)


@app.command(name="lookup")
def lookup_cmd(
    file: Annotated[Path, typer.Argument(help="Path to the .ts catalog")],
    context: Annotated[str, typer.Argument(help="Context name")],
    source: Annotated[str, typer.Argument(help="Source text")],
    comment: Annotated[
        str,
        typer.Option("--comment", help="Disambiguation comment"),
    ] = "",
    count: Annotated[
        Optional[int],
        typer.Option("--count", "-n", help="Count for plural messages"),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Exit with code 1 if the message does not exist"),
    ] = False,
) -> None:
    """Translate one message, falling back to the source text."""
    catalog = _load(file)
    try:
        typer.echo(catalog.lookup(context, source, comment, n=count))
    except LookupMiss as e:
        if strict:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)
        typer.echo(catalog.translate(context, source, comment, n=count))


@app.command(name="check")
def check_cmd(
    file: Annotated[Path, typer.Argument(help="Path to the .ts catalog")],
    min_severity: Annotated[
        str,
        typer.Option("--min-severity", "-s", help="Minimum severity level (low, medium, high)"),
    ] = "low",
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (console, json)"),
    ] = "console",
) -> None:
    """Check a catalog for problems.

    Exits with code 1 when the file does not parse or a high severity
    issue is found.
    """
    try:
        severity = Severity(min_severity.lower())
    except ValueError:
        typer.echo(f"Error: Unknown severity: {min_severity}", err=True)
        raise typer.Exit(1)

    catalog = _load(file)
    issues = check_catalog(catalog, min_severity=severity)

    if format == "json":
        typer.echo(json.dumps([i.to_dict() for i in issues], indent=2, ensure_ascii=False))
    elif not issues:
        typer.echo(f"No issues found in {file}")
    else:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Context", style="cyan")
        table.add_column("Source")
        table.add_column("Issue")
        table.add_column("Severity")
        table.add_column("Details", style="dim")
        for issue in issues:
            table.add_row(
                issue.context,
                issue.source,
                issue.issue_type,
                issue.severity.value,
                issue.details,
            )
        Console().print(table)

    if any(issue.severity == Severity.HIGH for issue in issues):
        raise typer.Exit(1)


@app.command(name="format")
def format_cmd(
    file: Annotated[Path, typer.Argument(help="Path to the .ts catalog")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path (default: stdout)"),
    ] = None,
    in_place: Annotated[
        bool,
        typer.Option("--in-place", "-i", help="Rewrite the input file"),
    ] = False,
) -> None:
    """Re-serialize a catalog with absolute locations."""
    catalog = _load(file)
    target = file if in_place else output
    if target:
        write_file(catalog, target)
        typer.echo(f"Written to {target}")
    else:
        typer.echo(dumps(catalog), nl=False)


@app.command(name="export")
def export_cmd(
    file: Annotated[Path, typer.Argument(help="Path to the .ts catalog")],
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Output file (.csv, .json or .parquet)"),
    ],
) -> None:
    """Export all messages as a table."""
    frame = messages_frame(_load(file))
    suffix = output.suffix.lower()

    if suffix == ".csv":
        # CSV has no list type
        frame = frame.with_columns(
            frame["numerus_forms"].list.join("|"),
            frame["locations"].list.join(" "),
        )
        frame.write_csv(output)
    elif suffix == ".json":
        output.write_text(
            json.dumps(frame.to_dicts(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
    elif suffix == ".parquet":
        frame.write_parquet(output)
    else:
        typer.echo(f"Error: Unsupported export format: {suffix}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Exported {len(frame)} messages to {output}")


if __name__ == "__main__":
    app()
