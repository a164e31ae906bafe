"""Per-class mapping units: name-directed setter plus bulk materializer.

plan() turns a class into a MappingUnit once and caches it. The unit holds
a table of (upper-cased name, assignment closure) pairs built from the
resolved properties, and exposes:

- set_property_by_name(target, name, value): case-insensitive assignment,
  silently ignoring unknown names.
- materialize(reader): one instance per reader row, only for classes that
  can be constructed without arguments.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from functools import lru_cache
from typing import Any, Generic, TypeVar

from loguru import logger

from mapreader.io.readers import DBNULL, DataReader
from mapreader.mapping.coercion import Assign, MapperError, build_assignment
from mapreader.mapping.resolver import describe_type
from mapreader.models.descriptor import TargetTypeDescriptor

T = TypeVar("T")

SETTER_NAME = "set_property_by_name"


class MaterializerUnavailableError(MapperError, TypeError):
    """Raised when materialize() is requested for a class that needs constructor arguments."""

    def __init__(self, full_name: str) -> None:
        self.full_name = full_name
        super().__init__(
            f"{full_name} cannot be constructed without arguments; "
            "only set_property_by_name is available"
        )


def _snake_case(identifier: str) -> str:
    """CamelCase -> snake_case (``OrderLine`` -> ``order_line``)."""
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])", "_", identifier).lower()


def materializer_name(cls: type) -> str:
    """Deterministic materializer name for a class (``Person`` -> ``to_person``)."""
    return f"to_{_snake_case(cls.__name__)}"


class MappingUnit(Generic[T]):
    """Setter table and optional materializer for one target class.

    Built by plan(); do not construct directly.
    """

    def __init__(self, descriptor: TargetTypeDescriptor) -> None:
        self.descriptor = descriptor
        self.target_type: type[T] = descriptor.target_type
        # Ordered: the first entry for a given upper-cased name wins.
        self._setters: list[tuple[str, Assign]] = [
            (prop.upper_name, build_assignment(prop)) for prop in descriptor.properties
        ]

    @property
    def full_name(self) -> str:
        return self.descriptor.full_name

    @property
    def has_materializer(self) -> bool:
        return self.descriptor.has_default_constructor

    @property
    def setter_name(self) -> str:
        return SETTER_NAME

    @property
    def materializer_name(self) -> str | None:
        return materializer_name(self.target_type) if self.has_materializer else None

    def __repr__(self) -> str:
        return (
            f"MappingUnit({self.full_name}, properties={len(self._setters)}, "
            f"materializer={self.materializer_name})"
        )

    def set_property_by_name(self, target: T, name: str, value: Any) -> None:
        """Assign ``value`` to the property of ``target`` named ``name``.

        Matching ignores case. Unknown names are ignored.

        Raises:
            ConversionError: If an enum or value-typed property cannot
                accept the value.
        """
        if value is DBNULL:
            value = None
        self._set_by_upper_name(target, name.upper(), value)

    def _set_by_upper_name(self, target: T, upper_name: str, value: Any) -> None:
        for key, assign in self._setters:
            if key == upper_name:
                assign(target, value)
                return

    def materialize(self, reader: DataReader) -> list[T]:
        """Build one instance per remaining row of ``reader``.

        Column names are read and upper-cased once, on the first row. The
        reader is always closed before this returns or raises.

        Args:
            reader: A fresh reader positioned before its first row.

        Returns:
            Instances in row order. Empty if the reader has no rows.

        Raises:
            MaterializerUnavailableError: If the class needs constructor arguments.
            ConversionError: If a cell cannot be converted to its property's type.
        """
        if not self.has_materializer:
            raise MaterializerUnavailableError(self.full_name)

        results: list[T] = []
        try:
            if reader.advance():
                column_names = [reader.name_at(i).upper() for i in range(reader.field_count)]
                while True:
                    item = self.target_type()
                    for i, column in enumerate(column_names):
                        value = reader.value_at(i)
                        if value is DBNULL:
                            value = None
                        self._set_by_upper_name(item, column, value)
                    results.append(item)
                    if not reader.advance():
                        break
        finally:
            reader.close()

        logger.debug("Materialized {} {} instance(s)", len(results), self.target_type.__name__)
        return results

    def functions(self) -> dict[str, Callable[..., Any]]:
        """Public entry points keyed by their deterministic names."""
        entry_points: dict[str, Callable[..., Any]] = {SETTER_NAME: self.set_property_by_name}
        if self.has_materializer:
            entry_points[materializer_name(self.target_type)] = self.materialize
        return entry_points


@lru_cache(maxsize=None)
def plan(cls: type[T]) -> MappingUnit[T]:
    """Build (once) and return the MappingUnit for ``cls``."""
    unit: MappingUnit[T] = MappingUnit(describe_type(cls))
    logger.debug("Planned {}", unit)
    return unit


def set_property_by_name(target: Any, name: str, value: Any) -> None:
    """Assign by name on any object, using the plan for its class."""
    plan(type(target)).set_property_by_name(target, name, value)


def materialize(cls: type[T], reader: DataReader) -> list[T]:
    """Materialize every row of ``reader`` as an instance of ``cls``."""
    return plan(cls).materialize(reader)


class MapperExtensions:
    """Namespace of entry points for a set of target classes.

    ``set_property_by_name`` dispatches on the target's class; each class
    with a default constructor adds its ``to_<name>`` materializer.

    Usage::

        ext = generate_extensions([Person, Order])
        people = ext.to_person(reader)
        ext.set_property_by_name(people[0], "name", "Ana")
    """

    def __init__(self, units: Iterable[MappingUnit[Any]]) -> None:
        self._units: dict[type, MappingUnit[Any]] = {}
        for unit in units:
            self._units[unit.target_type] = unit
            if unit.materializer_name is not None:
                existing = self.__dict__.get(unit.materializer_name)
                if existing is not None:
                    raise MapperError(
                        f"Materializer name '{unit.materializer_name}' is used by more than one class"
                    )
                setattr(self, unit.materializer_name, unit.materialize)

    @property
    def units(self) -> list[MappingUnit[Any]]:
        return list(self._units.values())

    def set_property_by_name(self, target: Any, name: str, value: Any) -> None:
        unit = self._units.get(type(target))
        if unit is None:
            raise MapperError(f"No mapper was generated for {type(target).__qualname__}")
        unit.set_property_by_name(target, name, value)


def generate_extensions(classes: Iterable[type]) -> MapperExtensions:
    """Plan every class and collect the entry points in one namespace."""
    return MapperExtensions(plan(cls) for cls in classes)
