"""Tests for the per-category coercion strategies and generic conversion."""

from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from enum import IntEnum
from typing import Any

import numpy as np
import pandas as pd
import pytest

from mapreader.mapping.coercion import (
    ConversionError,
    MapperError,
    build_assignment,
    change_type,
    empty_value,
    to_int32,
)
from mapreader.mapping.resolver import resolve_properties


class Status(IntEnum):
    NEW = 0
    OPEN = 1
    CLOSED = 2


class Tag:
    pass


class SpecialTag(Tag):
    pass


class Record:
    count: int = 5
    ratio: float = 0.5
    active: bool = False
    amount: Decimal = Decimal("0")
    when: datetime.datetime | None = None
    day: datetime.date = datetime.date(2000, 1, 1)
    maybe_count: int | None = 9
    maybe_ratio: float | None = None
    status: Status = Status.NEW
    title: str = "untitled"
    notes: str | None = "n/a"
    items: list[str] = []
    tag: Tag | None = None
    payload: Any = None


def _assign(name: str):
    prop = next(p for p in resolve_properties(Record) if p.name == name)
    return build_assignment(prop)


@pytest.fixture
def record() -> Record:
    return Record()


class TestReferenceRule:
    def test_matching_value_assigned(self, record: Record) -> None:
        _assign("title")(record, "Report")
        assert record.title == "Report"

    def test_none_becomes_empty_string(self, record: Record) -> None:
        _assign("title")(record, None)
        assert record.title == ""

    def test_incompatible_value_becomes_empty_without_error(self, record: Record) -> None:
        _assign("title")(record, 123)
        assert record.title == ""

    def test_optional_reference_empty_is_none(self, record: Record) -> None:
        _assign("notes")(record, 3.5)
        assert record.notes is None

    def test_subclass_instance_accepted(self, record: Record) -> None:
        tag = SpecialTag()
        _assign("tag")(record, tag)
        assert record.tag is tag

    def test_generic_container_checked_by_origin(self, record: Record) -> None:
        _assign("items")(record, ["a"])
        assert record.items == ["a"]
        _assign("items")(record, "not a list")
        assert record.items == []

    def test_empty_container_is_fresh_each_time(self) -> None:
        first, second = Record(), Record()
        _assign("items")(first, None)
        _assign("items")(second, None)
        assert first.items is not second.items

    def test_any_accepts_everything(self, record: Record) -> None:
        _assign("payload")(record, {"k": 1})
        assert record.payload == {"k": 1}
        _assign("payload")(record, None)
        assert record.payload is None


class TestNullableValueRule:
    def test_exact_type_assigned(self, record: Record) -> None:
        _assign("maybe_count")(record, 4)
        assert record.maybe_count == 4

    def test_none_assigns_none(self, record: Record) -> None:
        _assign("maybe_count")(record, None)
        assert record.maybe_count is None

    def test_other_numeric_type_becomes_none(self, record: Record) -> None:
        """No conversion on the nullable path: numpy ints are not ints."""
        _assign("maybe_count")(record, np.int16(4))
        assert record.maybe_count is None

    def test_float_subclass_assigned(self, record: Record) -> None:
        _assign("maybe_ratio")(record, np.float64(2.5))
        assert record.maybe_ratio == 2.5

    def test_timestamp_is_a_datetime(self, record: Record) -> None:
        _assign("when")(record, pd.Timestamp("2024-01-02"))
        assert record.when == datetime.datetime(2024, 1, 2)

    def test_enum_member_for_int(self, record: Record) -> None:
        _assign("maybe_count")(record, Status.OPEN)
        assert record.maybe_count == 1

    def test_bool_is_not_an_int(self, record: Record) -> None:
        _assign("maybe_count")(record, True)
        assert record.maybe_count is None

    def test_nullable_datetime(self, record: Record) -> None:
        stamp = datetime.datetime(2024, 5, 1, 12, 30)
        _assign("when")(record, stamp)
        assert record.when == stamp


class TestEnumRule:
    def test_int_value(self, record: Record) -> None:
        _assign("status")(record, 2)
        assert record.status is Status.CLOSED

    def test_narrow_int_goes_through_conversion(self, record: Record) -> None:
        _assign("status")(record, np.int16(1))
        assert record.status is Status.OPEN

    def test_string_number(self, record: Record) -> None:
        _assign("status")(record, "2")
        assert record.status is Status.CLOSED

    def test_none_skips_assignment(self, record: Record) -> None:
        record.status = Status.OPEN
        _assign("status")(record, None)
        assert record.status is Status.OPEN

    def test_undefined_member_raises(self, record: Record) -> None:
        with pytest.raises(ConversionError):
            _assign("status")(record, 7)

    def test_non_numeric_raises(self, record: Record) -> None:
        with pytest.raises(ConversionError):
            _assign("status")(record, "closed")


class TestPrimitiveRule:
    def test_exact_type_assigned_unchanged(self, record: Record) -> None:
        _assign("count")(record, 12)
        assert record.count == 12
        assert type(record.count) is int

    def test_narrow_int_converted(self, record: Record) -> None:
        _assign("count")(record, np.int16(7))
        assert record.count == 7
        assert type(record.count) is int

    def test_none_skips_assignment(self, record: Record) -> None:
        _assign("count")(record, None)
        assert record.count == 5

    def test_int_to_float(self, record: Record) -> None:
        _assign("ratio")(record, 2)
        assert record.ratio == 2.0
        assert type(record.ratio) is float

    def test_numpy_float_to_float(self, record: Record) -> None:
        _assign("ratio")(record, np.float32(0.25))
        assert type(record.ratio) is float

    def test_int_to_bool(self, record: Record) -> None:
        _assign("active")(record, 1)
        assert record.active is True

    def test_float_to_decimal(self, record: Record) -> None:
        _assign("amount")(record, 1.1)
        assert record.amount == Decimal("1.1")

    def test_datetime_to_date(self, record: Record) -> None:
        _assign("day")(record, datetime.datetime(2024, 2, 29, 8, 0))
        assert record.day == datetime.date(2024, 2, 29)

    def test_unconvertible_value_raises(self, record: Record) -> None:
        with pytest.raises(ConversionError) as exc_info:
            _assign("count")(record, "seven")
        assert exc_info.value.value == "seven"
        assert exc_info.value.target is int


class TestChangeType:
    def test_float_to_int_rounds_half_to_even(self) -> None:
        assert change_type(2.5, int) == 2
        assert change_type(3.5, int) == 4

    def test_string_to_int(self) -> None:
        assert change_type(" 42 ", int) == 42

    def test_nan_to_int_raises(self) -> None:
        with pytest.raises(ConversionError):
            change_type(float("nan"), int)

    @pytest.mark.parametrize("text,expected", [("true", True), ("FALSE", False), (" True ", True)])
    def test_string_to_bool(self, text: str, expected: bool) -> None:
        assert change_type(text, bool) is expected

    def test_invalid_bool_string_raises(self) -> None:
        with pytest.raises(ConversionError):
            change_type("yes", bool)

    def test_iso_string_to_datetime(self) -> None:
        assert change_type("2024-01-02T03:04:05", datetime.datetime) == datetime.datetime(
            2024, 1, 2, 3, 4, 5
        )

    def test_timestamp_to_datetime(self) -> None:
        result = change_type(pd.Timestamp("2024-01-02 03:04:05"), datetime.datetime)
        assert type(result) is datetime.datetime

    def test_datetime64_to_date(self) -> None:
        assert change_type(np.datetime64("2024-03-01"), datetime.date) == datetime.date(2024, 3, 1)

    def test_string_to_timedelta(self) -> None:
        assert change_type("1 days", datetime.timedelta) == datetime.timedelta(days=1)

    def test_string_to_uuid(self) -> None:
        value = "12345678-1234-5678-1234-567812345678"
        assert change_type(value, uuid.UUID) == uuid.UUID(value)

    def test_bytes_to_uuid(self) -> None:
        value = uuid.uuid4()
        assert change_type(value.bytes, uuid.UUID) == value

    def test_unregistered_target_uses_constructor(self) -> None:
        assert change_type("abc", list) == ["a", "b", "c"]

    def test_conversion_error_is_mapper_and_value_error(self) -> None:
        with pytest.raises(MapperError):
            change_type("x", float)
        with pytest.raises(ValueError):
            change_type("x", float)


class TestToInt32:
    def test_in_range(self) -> None:
        assert to_int32(np.int64(2**31 - 1)) == 2**31 - 1

    def test_out_of_range_raises(self) -> None:
        with pytest.raises(ConversionError):
            to_int32(2**31)


class TestEmptyValue:
    @pytest.mark.parametrize(
        "declared,expected",
        [(str, ""), (bytes, b""), (list[int], []), (dict, {}), (str | None, None), (Tag, None)],
    )
    def test_empty_values(self, declared: Any, expected: Any) -> None:
        assert empty_value(declared) == expected
