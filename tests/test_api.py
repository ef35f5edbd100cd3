"""Tests for the module-level API and the process-wide factory registry."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

import testfill
from testfill import FieldError, FillResult, default_registry, register_factory, tag


@dataclass
class User:
    name: str = field(default="", metadata=tag("John Doe", admin="Admin", guest="Guest"))
    role: str = field(default="", metadata=tag("user", admin="admin"))
    age: int = field(default=0, metadata=tag("42"))
    tags: list[str] = field(default_factory=list, metadata=tag("tag1,tag2,tag3"))
    labels: dict[str, str] = field(default_factory=dict, metadata=tag("key1:value1,key2:value2"))


@dataclass
class TooManyArgs:
    value: str = field(default="", metadata=tag("factory:ApiNoArgsFactory:extra:arg"))


@dataclass
class Stamped:
    serial: str = field(default="", metadata=tag("factory:ApiSerial"))


@pytest.fixture(autouse=True)
def factories() -> None:
    register_factory("ApiNoArgsFactory", lambda: "value")
    register_factory("ApiSerial", lambda: "SN-001")


class TestFill:
    def test_returns_result(self) -> None:
        result = testfill.fill(User())
        assert isinstance(result, FillResult)
        assert result.ok
        assert result.value == User(
            name="John Doe",
            role="user",
            age=42,
            tags=["tag1", "tag2", "tag3"],
            labels={"key1": "value1", "key2": "value2"},
        )

    def test_keeps_set_values(self) -> None:
        assert testfill.fill(User(age=7)).value.age == 7

    def test_error_result_holds_zero_value(self) -> None:
        result = testfill.fill(TooManyArgs())
        assert not result.ok
        assert str(result.error) == (
            "testfill: failed to set field value: factory function ApiNoArgsFactory "
            "expects 0 arguments, got 2"
        )
        assert result.value == TooManyArgs()

    def test_process_wide_factory(self) -> None:
        assert "ApiSerial" in default_registry
        assert testfill.must_fill(Stamped()).serial == "SN-001"


class TestVariants:
    def test_variant_overrides(self) -> None:
        admin = testfill.fill_with_variant(User(), "admin").value
        assert (admin.name, admin.role, admin.age) == ("Admin", "admin", 42)

    def test_partial_variant_falls_back(self) -> None:
        guest = testfill.must_fill_with_variant(User(), "guest")
        assert (guest.name, guest.role) == ("Guest", "user")

    def test_unknown_variant_equals_default(self) -> None:
        assert testfill.must_fill_with_variant(User(), "nobody") == testfill.must_fill(User())

    def test_empty_variant_is_default(self) -> None:
        assert testfill.fill_with_variant(User(), "").value == testfill.fill(User()).value


class TestMustFill:
    def test_raises(self) -> None:
        with pytest.raises(FieldError, match="expects 0 arguments, got 2"):
            testfill.must_fill(TooManyArgs())

    def test_rejects_non_struct(self) -> None:
        with pytest.raises(TypeError, match="expected struct, got list"):
            testfill.must_fill([1, 2])
