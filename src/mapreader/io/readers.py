"""Forward-only, read-once tabular readers consumed by the materializer.

The materializer only needs five things from a result source: the column
count, the column name at an index, the cell value at an index, a way to
advance to the next row, and a way to release the source. DataReader
captures that contract; the adapters below wrap the sources this package
is typically fed with (in-memory rows, DB-API cursors, pandas DataFrames).

Missing cells are reported as the DBNULL singleton, never as None, so the
materializer can tell "the source said NULL" apart from a real value.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import Any, Protocol, runtime_checkable

import pandas as pd
from loguru import logger


class DBNull:
    """Type of the DBNULL sentinel: a cell with no value."""

    _instance: DBNull | None = None

    def __new__(cls) -> DBNull:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DBNULL"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "DBNULL"


DBNULL = DBNull()


class ReaderClosedError(RuntimeError):
    """Raised when a closed reader is advanced or read."""


@runtime_checkable
class DataReader(Protocol):
    """Forward-only tabular cursor."""

    @property
    def field_count(self) -> int:
        """Number of columns in the current result."""
        ...

    def name_at(self, index: int) -> str:
        """Column name at ``index``."""
        ...

    def value_at(self, index: int) -> Any:
        """Cell value at ``index`` in the current row (DBNULL if missing)."""
        ...

    def advance(self) -> bool:
        """Move to the next row. Returns False when exhausted."""
        ...

    def close(self) -> None:
        """Release the underlying source."""
        ...


class _RowIteratorReader:
    """Shared cursor mechanics over an iterator of row sequences."""

    def __init__(self, columns: Sequence[str], rows: Iterator[Sequence[Any]]) -> None:
        self._columns = [str(c) for c in columns]
        self._rows = rows
        self._current: Sequence[Any] | None = None
        self._closed = False

    @property
    def field_count(self) -> int:
        return len(self._columns)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def name_at(self, index: int) -> str:
        return self._columns[index]

    def value_at(self, index: int) -> Any:
        if self._closed:
            raise ReaderClosedError("Reader is closed")
        if self._current is None:
            raise RuntimeError("No current row; call advance() first")
        return self._to_cell(self._current[index])

    def advance(self) -> bool:
        if self._closed:
            raise ReaderClosedError("Reader is closed")
        row = self._fetch()
        if row is None:
            self._current = None
            return False
        self._current = row
        return True

    def close(self) -> None:
        self._closed = True
        self._current = None

    def _fetch(self) -> Sequence[Any] | None:
        return next(self._rows, None)

    @staticmethod
    def _to_cell(value: Any) -> Any:
        return DBNULL if value is None else value


class RecordReader(_RowIteratorReader):
    """Reader over in-memory rows.

    Usage::

        reader = RecordReader(["ID", "NAME"], [(1, "Ana"), (2, None)])
    """

    def __init__(self, columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
        super().__init__(columns, iter(rows))


class DBAPIReader(_RowIteratorReader):
    """Reader over a DB-API 2.0 cursor that has already executed a query.

    Column names come from ``cursor.description``; SQL NULL is reported as
    DBNULL. Closing the reader closes the cursor.
    """

    def __init__(self, cursor: Any) -> None:
        description = cursor.description or []
        super().__init__([d[0] for d in description], iter(()))
        self._cursor = cursor

    def _fetch(self) -> Sequence[Any] | None:
        return self._cursor.fetchone()

    def close(self) -> None:
        if not self._closed:
            self._cursor.close()
            logger.debug("Closed DB-API cursor")
        super().close()


class DataFrameReader(_RowIteratorReader):
    """Reader over the rows of a pandas DataFrame.

    Cells for which ``pd.isna`` is true (NaN, None, NaT, pd.NA) are
    reported as DBNULL. Other cells are returned as stored, so numeric
    columns yield numpy scalars (``numpy.int16`` for an int16 column) and
    datetime columns yield ``pd.Timestamp``.
    """

    def __init__(self, df: pd.DataFrame) -> None:
        # Positional arrays, not itertuples: iteration unboxes numpy scalars.
        arrays = [df.iloc[:, j].array for j in range(df.shape[1])]
        rows = (tuple(array[i] for array in arrays) for i in range(len(df)))
        super().__init__([str(c) for c in df.columns], rows)

    @staticmethod
    def _to_cell(value: Any) -> Any:
        if pd.api.types.is_scalar(value) and pd.isna(value):
            return DBNULL
        return value
