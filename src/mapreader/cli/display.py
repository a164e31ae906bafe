"""Rich display helpers for terminal output.

Tables for resolved mapping plans and for materialized instances.
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

from mapreader.mapping.planner import MappingUnit
from mapreader.models.descriptor import TypeCategory

_CATEGORY_STYLES: dict[TypeCategory, str] = {
    TypeCategory.REFERENCE: "cyan",
    TypeCategory.NULLABLE_VALUE: "magenta",
    TypeCategory.ENUM: "yellow",
    TypeCategory.PRIMITIVE_VALUE: "green",
}


def type_label(declared_type: Any) -> str:
    """Short human-readable name for an annotation."""
    if isinstance(declared_type, type):
        return declared_type.__name__
    return str(declared_type).replace("typing.", "")


def display_mapping_unit(unit: MappingUnit[Any], console: Console) -> None:
    """Print the resolved property table for one mapping unit.

    Columns: Key, Property, Type, Category, Declared On

    Args:
        unit: The planned MappingUnit.
        console: Rich Console for output.
    """
    descriptor = unit.descriptor
    table = Table(title=descriptor.full_name, show_lines=False)
    table.add_column("Key", style="bold", no_wrap=True)
    table.add_column("Property", no_wrap=True)
    table.add_column("Type")
    table.add_column("Category")
    table.add_column("Declared On", style="dim")

    for prop in descriptor.properties:
        table.add_row(
            prop.upper_name,
            prop.name,
            type_label(prop.declared_type),
            Text(prop.category.value, style=_CATEGORY_STYLES[prop.category]),
            prop.owner.__name__,
        )

    console.print(table)
    if unit.materializer_name is not None:
        console.print(
            f"  entry points: [bold]{unit.setter_name}[/bold], "
            f"[bold]{unit.materializer_name}[/bold]"
        )
    else:
        console.print(f"  entry points: [bold]{unit.setter_name}[/bold]")
        console.print("  [yellow]materializer not available[/yellow] (constructor needs arguments)")


def display_instances(
    instances: list[Any],
    unit: MappingUnit[Any],
    console: Console,
    limit: int | None = None,
) -> None:
    """Print materialized instances, one row per instance.

    Args:
        instances: Output of MappingUnit.materialize().
        unit: The unit that produced them (supplies the column order).
        console: Rich Console for output.
        limit: Show at most this many rows.
    """
    names = [p.name for p in unit.descriptor.properties]
    table = Table(title=f"{unit.target_type.__name__} ({len(instances)} rows)")
    for name in names:
        table.add_column(name)

    shown = instances if limit is None else instances[:limit]
    for item in shown:
        table.add_row(*(_cell(getattr(item, name, None)) for name in names))

    console.print(table)
    if len(shown) < len(instances):
        console.print(f"[dim]... {len(instances) - len(shown)} more row(s) not shown[/dim]")


def _cell(value: Any) -> Text:
    if value is None:
        return Text("None", style="dim")
    return Text(str(value))
