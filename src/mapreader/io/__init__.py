"""Tabular readers consumed by the materializer."""

from mapreader.io.readers import (
    DBNULL,
    DataFrameReader,
    DataReader,
    DBAPIReader,
    DBNull,
    ReaderClosedError,
    RecordReader,
)

__all__ = [
    "DBNULL",
    "DBNull",
    "DataReader",
    "RecordReader",
    "DBAPIReader",
    "DataFrameReader",
    "ReaderClosedError",
]
