"""Map forward-only tabular results onto annotated Python classes.

    from mapreader import generate_mapper, plan, RecordReader

    @generate_mapper
    @dataclass
    class Person:
        id: int = 0
        name: str = ""

    people = plan(Person).materialize(RecordReader(["ID", "NAME"], [(1, "Ana")]))
"""

from mapreader.io.readers import DBNULL, DataFrameReader, DataReader, DBAPIReader, RecordReader
from mapreader.mapping import (
    ConversionError,
    MapperError,
    MappingUnit,
    MaterializerUnavailableError,
    discover_targets,
    generate_extensions,
    generate_mapper,
    materialize,
    plan,
    set_property_by_name,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "DBNULL",
    "DataReader",
    "RecordReader",
    "DBAPIReader",
    "DataFrameReader",
    "ConversionError",
    "MapperError",
    "MaterializerUnavailableError",
    "MappingUnit",
    "discover_targets",
    "generate_extensions",
    "generate_mapper",
    "materialize",
    "plan",
    "set_property_by_name",
]
