"""Tests for ``unmarshal:`` JSON literals and timestamp parsing."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from testfill import Filler, FieldError, Float32, Int8, TimestampError, UnmarshalError, Uint8, tag
from testfill.walker import parse_timestamp, unmarshal


@dataclass
class Address:
    street: str = ""
    zip_code: int = 0


@dataclass
class Document:
    payload: Any = field(default=None, metadata=tag('unmarshal:{"a": [1, 2], "b": null}'))
    address: Address = field(
        default_factory=Address, metadata=tag('unmarshal:{"street": "Main", "zip_code": 12345}'),
    )
    maybe: Address | None = field(default=None, metadata=tag('unmarshal:{"street": "Side"}'))
    cleared: Address | None = field(default=None, metadata=tag("unmarshal:null"))
    matrix: list[list[int]] = field(default_factory=list, metadata=tag("unmarshal:[[1, 2], [3]]"))


@dataclass
class BrokenJSON:
    value: dict[str, int] = field(default_factory=dict, metadata=tag("unmarshal:{not json"))


@dataclass
class WrongShape:
    value: list[int] = field(default_factory=list, metadata=tag('unmarshal:{"a": 1}'))


@dataclass
class Point:
    x: int
    y: int


@dataclass
class Route:
    name: str
    stops: list[Point]
    start: Point | None = None


@dataclass
class Holder:
    point: Point | None = field(default=None, metadata=tag('unmarshal:{"x": 1}'))
    origin: Point = field(default_factory=lambda: Point(0, 0), metadata=tag('unmarshal:{"y": 2}'))
    items: list[str] = field(default_factory=list, metadata=tag("unmarshal:null"))
    counts: dict[str, int] = field(default_factory=dict, metadata=tag("unmarshal:null"))
    total: int = field(default=0, metadata=tag("unmarshal:null"))


@dataclass
class StrIntoInt:
    n: int = field(default=0, metadata=tag('unmarshal:"42"'))


@dataclass
class WideJSON:
    n: Int8 = field(default=0, metadata=tag("unmarshal:300"))


@pytest.fixture
def filler() -> Filler:
    return Filler()


class TestUnmarshal:
    def test_dynamic_field(self, filler: Filler) -> None:
        assert filler.fill(Document()).payload == {"a": [1, 2], "b": None}

    def test_structure_field(self, filler: Filler) -> None:
        assert filler.fill(Document()).address == Address(street="Main", zip_code=12345)

    def test_pointer_field_is_allocated(self, filler: Filler) -> None:
        assert filler.fill(Document()).maybe == Address(street="Side", zip_code=0)

    def test_null_leaves_pointer_none(self, filler: Filler) -> None:
        assert filler.fill(Document()).cleared is None

    def test_nested_collections(self, filler: Filler) -> None:
        assert filler.fill(Document()).matrix == [[1, 2], [3]]

    def test_existing_value_kept(self, filler: Filler) -> None:
        doc = filler.fill(Document(payload="mine"))
        assert doc.payload == "mine"

    def test_invalid_json(self, filler: Filler) -> None:
        result = filler.try_fill(BrokenJSON())
        assert isinstance(result.error, FieldError)
        assert isinstance(result.error.inner, UnmarshalError)
        assert str(result.error).startswith(
            "testfill: failed to set field value: failed to unmarshal JSON: "
        )
        assert result.value == BrokenJSON()

    def test_wrong_shape(self) -> None:
        with pytest.raises(UnmarshalError, match="^failed to unmarshal JSON: "):
            unmarshal('{"a": 1}', list[int])

    def test_wrong_shape_through_fill(self, filler: Filler) -> None:
        with pytest.raises(FieldError, match="failed to unmarshal JSON"):
            filler.fill(WrongShape())


# ---------------------------------------------------------------------------
# Decoding into zero values
# ---------------------------------------------------------------------------


class TestPartialDecode:
    def test_absent_members_stay_zero(self, filler: Filler) -> None:
        holder = filler.fill(Holder())
        assert holder.point == Point(x=1, y=0)
        assert holder.origin == Point(x=0, y=2)

    def test_unknown_members_are_ignored(self) -> None:
        assert unmarshal('{"x": 3, "z": 9}', Point) == Point(x=3, y=0)

    def test_nested_structures(self) -> None:
        route = unmarshal('{"name": "loop", "stops": [{"x": 1}, {"y": 2}], "start": {}}', Route)
        assert route == Route(name="loop", stops=[Point(1, 0), Point(0, 2)], start=Point(0, 0))

    def test_null_member_keeps_zero(self) -> None:
        route = unmarshal('{"name": null, "stops": null, "start": null}', Route)
        assert route == Route(name="", stops=[], start=None)

    def test_object_expected(self) -> None:
        with pytest.raises(
            UnmarshalError,
            match="^failed to unmarshal JSON: cannot unmarshal array into value of type Point$",
        ):
            unmarshal("[1, 2]", Point)


class TestNullLiteral:
    def test_non_pointer_fields_are_left_zero(self, filler: Filler) -> None:
        result = filler.try_fill(Holder())
        assert result.ok
        assert result.value.items == []
        assert result.value.counts == {}
        assert result.value.total == 0

    @pytest.mark.parametrize(
        ("tp", "expected"),
        [(list[str], []), (dict[str, int], {}), (int, 0), (str, ""), (Point | None, None)],
    )
    def test_returns_zero_value(self, tp: object, expected: object) -> None:
        assert unmarshal(" null ", tp) == expected


class TestStrictScalars:
    def test_string_is_not_a_number(self, filler: Filler) -> None:
        result = filler.try_fill(StrIntoInt())
        assert not result.ok
        assert isinstance(result.error.inner, UnmarshalError)
        assert result.value == StrIntoInt()

    def test_bool_is_not_a_number(self) -> None:
        with pytest.raises(UnmarshalError):
            unmarshal("true", int)

    def test_number_is_not_a_string(self) -> None:
        with pytest.raises(UnmarshalError):
            unmarshal('{"name": 5, "stops": []}', Route)

    def test_width_marker_out_of_range(self, filler: Filler) -> None:
        result = filler.try_fill(WideJSON())
        assert str(result.error).startswith(
            "testfill: failed to set field n: failed to unmarshal JSON: "
        )
        assert 'cannot convert "300" to int8: value out of range' in str(result.error)

    def test_width_markers_inside_collections(self) -> None:
        assert unmarshal("[0, 255]", list[Uint8]) == [0, 255]
        with pytest.raises(UnmarshalError, match="value out of range"):
            unmarshal("[0, 256]", list[Uint8])
        with pytest.raises(UnmarshalError, match="value out of range"):
            unmarshal('{"a": -129}', dict[str, Int8 | None])

    def test_float32_is_rounded(self) -> None:
        assert unmarshal("0.1", Float32) == pytest.approx(0.1, rel=1e-7)
        assert unmarshal("0.1", Float32) != 0.1


class TestTimestamps:
    def test_utc_designator(self) -> None:
        assert parse_timestamp("2023-01-15T10:30:00Z") == datetime(
            2023, 1, 15, 10, 30, tzinfo=timezone.utc,
        )

    def test_numeric_offset(self) -> None:
        value = parse_timestamp("2023-01-15T10:30:00+02:00")
        assert value.utcoffset() == timedelta(hours=2)

    def test_fractional_seconds(self) -> None:
        assert parse_timestamp("2023-01-15T10:30:00.5Z").microsecond == 500000

    @pytest.mark.parametrize("text", ["2023-01-15", "2023-01-15T10:30:00", "yesterday"])
    def test_rejects_incomplete(self, text: str) -> None:
        with pytest.raises(TimestampError):
            parse_timestamp(text)
