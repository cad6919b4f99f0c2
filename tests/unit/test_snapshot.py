"""
Unit tests for sqlrunner.core.snapshot (result materialization).
"""

import datetime
import io
from decimal import Decimal

import pytest

from sqlrunner.core.snapshot import ResultSnapshot, materialize, normalize_value
from sqlrunner.domain.errors import MaterializationError, StatementExecutionError


class FakeCursor:
    """Minimal DB-API cursor over fixed rows."""

    def __init__(self, columns, rows, fail_after=None):
        self.description = [(column, None, None, None, None, None, None) for column in columns]
        self.rowcount = -1
        self.closed = False
        self._rows = rows
        self._fail_after = fail_after

    def __iter__(self):
        for position, row in enumerate(self._rows):
            if self._fail_after is not None and position >= self._fail_after:
                raise RuntimeError("connection reset while fetching")
            yield row

    def close(self):
        self.closed = True


class DriverDateTime(datetime.datetime):
    pass


class DriverDate(datetime.date):
    pass


class TestMaterialize:
    """Tests for materialize."""

    def test_columns_and_rows_in_cursor_order(self) -> None:
        cursor = FakeCursor(["id", "username"], [(1, "Bob"), (2, "Charlie")])

        snapshot = materialize(cursor)

        assert snapshot.columns == ("id", "username")
        assert snapshot.to_list() == [
            {"id": 1, "username": "Bob"},
            {"id": 2, "username": "Charlie"},
        ]
        assert len(snapshot) == 2

    def test_cursor_closed_after_reading(self) -> None:
        cursor = FakeCursor(["id"], [(1,)])
        materialize(cursor)
        assert cursor.closed

    def test_empty_result(self) -> None:
        snapshot = materialize(FakeCursor(["id"], []))

        assert snapshot.columns == ("id",)
        assert len(snapshot) == 0
        assert snapshot.to_list() == []
        assert snapshot.first() is None
        assert snapshot.scalar() is None

    def test_rows_are_read_only(self) -> None:
        snapshot = materialize(FakeCursor(["id"], [(1,)]))

        with pytest.raises(TypeError):
            snapshot.rows[0]["id"] = 2

    def test_iteration_hands_out_copies(self) -> None:
        snapshot = materialize(FakeCursor(["id"], [(1,)]))

        for row in snapshot:
            row["id"] = 99

        assert snapshot.first() == {"id": 1}
        assert snapshot.scalar() == 1

    def test_values_normalized(self) -> None:
        cursor = FakeCursor(
            ["data", "created"], [(memoryview(b"\x00\x01"), DriverDate(2024, 5, 1))]
        )

        row = materialize(cursor).first()

        assert row == {"data": b"\x00\x01", "created": datetime.date(2024, 5, 1)}
        assert type(row["data"]) is bytes
        assert type(row["created"]) is datetime.date

    def test_read_failure_raises_materialization_error(self) -> None:
        cursor = FakeCursor(["id"], [(1,), (2,)], fail_after=1)

        with pytest.raises(MaterializationError) as exc_info:
            materialize(cursor, statement_index=3)

        error = exc_info.value
        assert isinstance(error, StatementExecutionError)
        assert error.code == "materialization_failed"
        assert error.statement_index == 3
        assert isinstance(error.__cause__, RuntimeError)
        assert cursor.closed


class TestNormalizeValue:
    """Tests for normalize_value."""

    @pytest.mark.parametrize("value", ["text", 42, 1.5, True, None, Decimal("1.10")])
    def test_portable_values_unchanged(self, value) -> None:
        assert normalize_value(value) is value

    def test_binary_values_become_bytes(self) -> None:
        assert normalize_value(bytearray(b"ab")) == b"ab"
        assert type(normalize_value(bytearray(b"ab"))) is bytes
        assert normalize_value(memoryview(b"cd")) == b"cd"

    def test_blob_handles_are_read(self) -> None:
        assert normalize_value(io.BytesIO(b"blob")) == b"blob"

    def test_driver_datetime_becomes_plain_datetime(self) -> None:
        value = DriverDateTime(2024, 1, 2, 3, 4, 5, 600, tzinfo=datetime.timezone.utc)

        normalized = normalize_value(value)

        assert type(normalized) is datetime.datetime
        assert normalized == datetime.datetime(
            2024, 1, 2, 3, 4, 5, 600, tzinfo=datetime.timezone.utc
        )

    def test_plain_time_kept_equal(self) -> None:
        value = datetime.time(12, 30, 15)
        assert normalize_value(value) == value


def test_snapshot_is_frozen() -> None:
    snapshot = ResultSnapshot(columns=("a",), rows=())
    with pytest.raises(AttributeError):
        snapshot.columns = ("b",)
