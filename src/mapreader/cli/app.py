"""mapreader CLI application entry point.

Provides commands for inspecting the mapping plan of annotated classes and
for loading a CSV file into instances of a class.

Usage:
    mapreader inspect <module>[:<Class>]
    mapreader load <module>:<Class> <csv-file>
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger
from rich.console import Console

app = typer.Typer(
    name="mapreader",
    help="Map forward-only tabular results onto annotated Python classes.",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            envvar="MAPREADER_LOG_LEVEL",
            help="Log level for diagnostics written to stderr",
        ),
    ] = "WARNING",
) -> None:
    """Configure logging for every command."""
    logger.remove()
    logger.add(sys.stderr, level=log_level.upper())


def _resolve_target(target: str) -> tuple[str, str | None]:
    module_name, _, class_name = target.partition(":")
    return module_name, class_name or None


def _load_class(module_name: str, class_name: str) -> type:
    from mapreader.mapping.marker import load_module

    module = load_module(module_name)
    cls = getattr(module, class_name, None)
    if not isinstance(cls, type):
        raise AttributeError(f"Module '{module_name}' has no class '{class_name}'")
    return cls


@app.command()
def version() -> None:
    """Show the current version."""
    from mapreader import __version__

    console.print(f"mapreader {__version__}")


@app.command()
def inspect(
    target: Annotated[
        str,
        typer.Argument(help="Module path, optionally with ':ClassName' (e.g. app.models:Person)"),
    ],
) -> None:
    """Show the resolved properties and coercion categories of mapping targets.

    With a bare module path, every class marked with @generate_mapper in
    that module is shown.
    """
    from mapreader.cli.display import display_mapping_unit
    from mapreader.mapping.marker import discover_targets
    from mapreader.mapping.planner import plan

    module_name, class_name = _resolve_target(target)
    try:
        if class_name is not None:
            classes = [_load_class(module_name, class_name)]
        else:
            classes = discover_targets(module_name)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    if not classes:
        console.print(
            f"[bold red]Error:[/bold red] No @generate_mapper classes found in {module_name}"
        )
        raise typer.Exit(code=1)

    for cls in classes:
        display_mapping_unit(plan(cls), console)
        console.print()

    console.print(f"[bold]{len(classes)}[/bold] mapping unit(s) planned")


@app.command()
def load(
    target: Annotated[
        str,
        typer.Argument(help="Target class as module:ClassName"),
    ],
    csv_file: Annotated[
        Path,
        typer.Argument(help="CSV file with a header row"),
    ],
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Show at most this many rows"),
    ] = 20,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the instances as JSON to this file"),
    ] = None,
) -> None:
    """Materialize the rows of a CSV file as instances of a class."""
    import pandas as pd

    from mapreader.cli.display import display_instances
    from mapreader.io.readers import DataFrameReader
    from mapreader.mapping.coercion import MapperError
    from mapreader.mapping.planner import plan

    module_name, class_name = _resolve_target(target)
    if class_name is None:
        console.print("[bold red]Error:[/bold red] Target must be given as module:ClassName")
        raise typer.Exit(code=1)

    if not csv_file.is_file():
        console.print(f"[bold red]Error:[/bold red] File not found: {csv_file}")
        raise typer.Exit(code=1)

    try:
        cls = _load_class(module_name, class_name)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    unit = plan(cls)
    try:
        df = pd.read_csv(csv_file)
        instances = unit.materialize(DataFrameReader(df))
    except (MapperError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    display_instances(instances, unit, console, limit=limit)

    if output is not None:
        names = [p.name for p in unit.descriptor.properties]
        records: list[dict[str, Any]] = [
            {name: getattr(item, name, None) for name in names} for item in instances
        ]
        output.write_text(json.dumps(records, indent=2, default=str))
        console.print(f"\n[green]Instances written to {output}[/green]")
