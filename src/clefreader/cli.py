"""clefreader CLI — entry point.

Commands:
    clef read     <file>   Decode and display events
    clef validate <file>   Report every line that isn't a valid event
    clef stats    <file>   Count events per level
"""
from __future__ import annotations

import json
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Iterator

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape as escape_markup
from rich.table import Table

from .config import settings
from .errors import InvalidDataError
from .events import LogEvent, LogEventLevel
from .reader import LogEventReader

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

_LEVEL_NAMES = [str(level) for level in LogEventLevel]

# ── Helpers ─────────────────────────────────────────────────────────────────


def _level_colour(level: LogEventLevel) -> str:
    return {
        LogEventLevel.VERBOSE: "dim",
        LogEventLevel.DEBUG: "dim",
        LogEventLevel.INFORMATION: "green",
        LogEventLevel.WARNING: "yellow",
        LogEventLevel.ERROR: "red",
        LogEventLevel.FATAL: "bold red",
    }.get(level, "white")


def _iter_events(file: Path, skip_invalid: bool) -> Iterator[LogEvent]:
    """Yield events from ``file``, optionally stepping over invalid lines."""
    with LogEventReader(file.open(encoding=settings.encoding, errors="replace")) as reader:
        while True:
            try:
                event = reader.try_read()
            except InvalidDataError as exc:
                if not skip_invalid:
                    raise
                logger.warning("Skipping line %d: %s", reader.line_number, exc)
                err_console.print(f"[yellow]Skipped:[/yellow] {escape_markup(str(exc))}")
                continue
            if event is None:
                return
            yield event


def _print_event(event: LogEvent) -> None:
    colour = _level_colour(event.level)
    console.print(
        f"[dim]{event.timestamp.isoformat()}[/dim] "
        f"[{colour}]{str(event.level):11}[/{colour}] "
        f"{escape_markup(event.render_message())}"
    )
    if event.exception is not None:
        console.print(f"[red]{escape_markup(event.exception.text)}[/red]")


# ── CLI root ─────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version="1.0.0", prog_name="clef")
@click.option("--verbose", "-v", is_flag=True, help="Log decoder diagnostics to stderr.")
def main(verbose: bool) -> None:
    """clef — read compact-JSON (CLEF) log event files."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
        )


# ── read ─────────────────────────────────────────────────────────────────────


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output", "-o", "output_fmt", default=settings.default_output,
    type=click.Choice(["stream", "table", "json"], case_sensitive=False),
    help="Output format.",
    show_default=True,
)
@click.option(
    "--level", "-l", "min_level", default=settings.min_level,
    type=click.Choice(_LEVEL_NAMES, case_sensitive=False),
    help="Minimum level to display.",
    show_default=True,
)
@click.option("--limit", "-n", default=0, type=int, help="Max events to display (0 = all).")
@click.option(
    "--skip-invalid", is_flag=True, default=settings.skip_invalid,
    help="Warn about invalid lines and keep reading.",
)
def read(
    file: Path,
    output_fmt: str,
    min_level: str,
    limit: int,
    skip_invalid: bool,
) -> None:
    """Decode a CLEF file and display its events.

    \b
    Examples:
      clef read app.clef
      clef read app.clef --level warning --output table
      clef read app.clef --output json --limit 100
    """
    threshold = LogEventLevel.parse(min_level)
    collected: list[LogEvent] = []
    count = 0

    try:
        for event in _iter_events(file, skip_invalid):
            if event.level < threshold:
                continue
            if limit and count >= limit:
                break
            count += 1
            if output_fmt == "json":
                click.echo(json.dumps(event.to_dict(), default=str))
            elif output_fmt == "table":
                collected.append(event)
            else:
                _print_event(event)
    except InvalidDataError as exc:
        err_console.print(f"[red]{escape_markup(str(exc))}[/red]")
        sys.exit(1)

    if output_fmt == "table":
        if not collected:
            err_console.print("[yellow]No events found.[/yellow]")
            return
        tbl = Table(title=file.name, box=box.ROUNDED, show_lines=False)
        tbl.add_column("Timestamp", style="dim", no_wrap=True)
        tbl.add_column("Level")
        tbl.add_column("Message", overflow="fold", max_width=80)
        for event in collected:
            tbl.add_row(
                event.timestamp.isoformat(),
                str(event.level),
                escape_markup(event.render_message()),
                style=_level_colour(event.level) if event.level >= LogEventLevel.WARNING else "",
            )
        console.print(tbl)

    err_console.print(f"[dim]Read {count} events from {file.name}[/dim]")


# ── validate ─────────────────────────────────────────────────────────────────


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate(file: Path) -> None:
    """Check every line of a CLEF file, reporting invalid ones by line number."""
    valid = 0
    problems: list[InvalidDataError] = []

    with LogEventReader(file.open(encoding=settings.encoding, errors="replace")) as reader:
        while True:
            try:
                event = reader.try_read()
            except InvalidDataError as exc:
                problems.append(exc)
                continue
            if event is None:
                break
            valid += 1

    for exc in problems:
        console.print(f"[red]line {exc.line_number}:[/red] {escape_markup(str(exc))}")

    if problems:
        console.print(f"\n[red]{len(problems)} invalid line(s)[/red], {valid} valid event(s) in {file.name}")
        sys.exit(1)
    console.print(f"[green]{valid} valid event(s)[/green] in {file.name}")


# ── stats ────────────────────────────────────────────────────────────────────


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--skip-invalid", is_flag=True, default=settings.skip_invalid,
    help="Warn about invalid lines and keep reading.",
)
def stats(file: Path, skip_invalid: bool) -> None:
    """Count the events in a CLEF file per level."""
    counts: Counter[LogEventLevel] = Counter()
    try:
        for event in _iter_events(file, skip_invalid):
            counts[event.level] += 1
    except InvalidDataError as exc:
        err_console.print(f"[red]{escape_markup(str(exc))}[/red]")
        sys.exit(1)

    tbl = Table(title=f"Events by level in {file.name}", box=box.SIMPLE_HEAVY)
    tbl.add_column("Level")
    tbl.add_column("Count", justify="right", style="cyan")
    for level in LogEventLevel:
        if counts[level]:
            tbl.add_row(f"[{_level_colour(level)}]{level}[/]", str(counts[level]))
    console.print(tbl)
    console.print(f"[bold]Total events:[/bold] {sum(counts.values())}")


if __name__ == "__main__":
    main()
