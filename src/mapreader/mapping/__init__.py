"""Type-directed mapping engine.

Resolves the settable properties of a class, picks a coercion strategy per
property and builds the name-directed setter and bulk materializer.
"""

from mapreader.mapping.coercion import ConversionError, MapperError, change_type
from mapreader.mapping.marker import (
    discover_targets,
    generate_mapper,
    generate_module_extensions,
    is_mapper_target,
)
from mapreader.mapping.planner import (
    MapperExtensions,
    MappingUnit,
    MaterializerUnavailableError,
    generate_extensions,
    materialize,
    plan,
    set_property_by_name,
)
from mapreader.mapping.resolver import categorize, describe_type, resolve_properties

__all__ = [
    "ConversionError",
    "MapperError",
    "MaterializerUnavailableError",
    "MapperExtensions",
    "MappingUnit",
    "categorize",
    "change_type",
    "describe_type",
    "discover_targets",
    "generate_extensions",
    "generate_mapper",
    "generate_module_extensions",
    "is_mapper_target",
    "materialize",
    "plan",
    "resolve_properties",
    "set_property_by_name",
]
