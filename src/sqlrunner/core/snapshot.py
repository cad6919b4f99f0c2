"""
Result snapshots - in-memory copies of query results that outlive the connection.

``materialize`` drains a cursor once, right after its statement executed, and
converts driver-specific values into portable Python types. The snapshot keeps
no reference to the cursor, the statement or the connection.
"""

import datetime
import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from sqlrunner.backends.base import ResultCursor
from sqlrunner.domain.errors import MaterializationError

LOG = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResultSnapshot:
    """Immutable, ordered copy of the rows produced by one statement.

    Attributes:
        columns: Column labels in cursor order
        rows: Read-only row mappings (column label -> normalized value) in cursor order
    """

    columns: tuple[str, ...]
    rows: tuple[Mapping[str, Any], ...]

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[dict[str, Any]]:
        """Iterate over copies of the rows; changing them does not affect the snapshot."""
        return iter(self.to_list())

    def to_list(self) -> list[dict[str, Any]]:
        """Return the rows as a list of plain dictionaries."""
        return [dict(row) for row in self.rows]

    def first(self) -> dict[str, Any] | None:
        """Return a copy of the first row, or None for an empty result."""
        return dict(self.rows[0]) if self.rows else None

    def scalar(self) -> Any:
        """Return the first column of the first row, or None for an empty result."""
        if not self.rows or not self.columns:
            return None
        return self.rows[0][self.columns[0]]


def _read_blob(value: Any) -> bytes:
    return bytes(value.read())


def _plain_datetime(value: datetime.datetime) -> datetime.datetime:
    return datetime.datetime(
        value.year,
        value.month,
        value.day,
        value.hour,
        value.minute,
        value.second,
        value.microsecond,
        tzinfo=value.tzinfo,
        fold=value.fold,
    )


def _plain_date(value: datetime.date) -> datetime.date:
    return datetime.date(value.year, value.month, value.day)


def _plain_time(value: datetime.time) -> datetime.time:
    return datetime.time(
        value.hour,
        value.minute,
        value.second,
        value.microsecond,
        tzinfo=value.tzinfo,
        fold=value.fold,
    )


# Looked up along the value's MRO, so datetime is matched before its base class date
_NORMALIZERS: dict[type, Callable[[Any], Any]] = {
    bytes: bytes,
    bytearray: bytes,
    memoryview: bytes,
    datetime.datetime: _plain_datetime,
    datetime.date: _plain_date,
    datetime.time: _plain_time,
}

# Values passed through without inspection
_PORTABLE = (str, int, float, bool, type(None))


def normalize_value(value: Any) -> Any:
    """Convert a driver value into a portable, connection-independent value.

    Binary values (including blob handles exposing ``read()``) become ``bytes``;
    driver subclasses of ``datetime``/``date``/``time`` become the plain
    standard-library type; everything else is returned unchanged.
    """
    if type(value) in _PORTABLE:
        return value
    for cls in type(value).__mro__:
        normalizer = _NORMALIZERS.get(cls)
        if normalizer is not None:
            return normalizer(value)
    if callable(getattr(value, "read", None)):
        return _read_blob(value)
    return value


def materialize(cursor: ResultCursor, *, statement_index: int | None = None) -> ResultSnapshot:
    """Copy every row of an executed cursor into a ResultSnapshot.

    Column metadata is read once; rows keep the cursor's order. The cursor is
    closed afterwards whether or not reading succeeded.

    Args:
        cursor: Cursor positioned before the first row of a row set
        statement_index: Index of the statement that produced the cursor, for error reporting

    Returns:
        Detached snapshot of the result

    Raises:
        MaterializationError: If reading metadata or any row fails
    """
    try:
        columns = tuple(str(description[0]) for description in cursor.description or ())
        rows = tuple(
            MappingProxyType(
                {column: normalize_value(value) for column, value in zip(columns, raw_row)}
            )
            for raw_row in cursor
        )
    except Exception as e:
        raise MaterializationError(
            message=f"Could not read the results of statement {statement_index}: {e}",
            code="materialization_failed",
            statement_index=statement_index,
        ) from e
    finally:
        cursor.close()

    LOG.debug(f"Materialized {len(rows)} row(s) with columns {list(columns)}")
    return ResultSnapshot(columns=columns, rows=rows)
