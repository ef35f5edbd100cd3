"""Structure descriptors, annotation sets and zero values.

A *structure type* is a :func:`dataclasses.dataclass` or a
:class:`pydantic.BaseModel` subclass.  Directives live in the field's
annotation set::

    @dataclass
    class User:
        name: str = field(default="", metadata=tag("John Doe", admin="Root"))

    class Account(BaseModel):
        balance: int = Field(default=0, json_schema_extra=tag("100"))

Each structure type is described once (:func:`describe`) and the descriptor is
cached for the life of the process.
"""

from __future__ import annotations

import dataclasses
import functools
import types
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any, Mapping, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from testfill.config import TAG_NAME, VARIANT_SEPARATOR

ZERO_TIME = datetime.min


@dataclass(frozen=True)
class FieldSpec:
    """One field of a structure type."""

    name: str
    type: Any
    tags: Mapping[str, str]
    public: bool = True


@dataclass(frozen=True)
class StructSpec:
    """Ordered field descriptors of a structure type."""

    cls: type
    fields: tuple[FieldSpec, ...]

    def public_fields(self) -> tuple[FieldSpec, ...]:
        return tuple(f for f in self.fields if f.public)


def tag(default: str | None = None, /, **variants: str) -> dict[str, str]:
    """Build an annotation set.

    ``tag("42", admin="100")`` returns
    ``{"testfill": "42", "testfill_admin": "100"}``.  Pass it as dataclass
    field ``metadata`` or as pydantic ``json_schema_extra``.
    """
    tags: dict[str, str] = {}
    if default is not None:
        tags[TAG_NAME] = default
    for variant, directive in variants.items():
        tags[f"{TAG_NAME}{VARIANT_SEPARATOR}{variant}"] = directive
    return tags


# ---------------------------------------------------------------------------
# Type inspection
# ---------------------------------------------------------------------------


def is_struct_type(tp: Any) -> bool:
    """Return *True* for dataclass and pydantic model classes."""
    if not isinstance(tp, type):
        return False
    return dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)


def is_struct(value: Any) -> bool:
    """Return *True* for dataclass and pydantic model instances."""
    return not isinstance(value, type) and is_struct_type(type(value))


def unwrap_annotated(tp: Any) -> Any:
    """Strip ``Annotated`` metadata, leaving the underlying type."""
    while get_origin(tp) is Annotated:
        tp = get_args(tp)[0]
    return tp


def is_union(tp: Any) -> bool:
    origin = get_origin(unwrap_annotated(tp))
    return origin is Union or origin is types.UnionType


def optional_inner(tp: Any) -> Any | None:
    """Return ``X`` for ``Optional[X]`` / ``X | None``, else *None*."""
    tp = unwrap_annotated(tp)
    if not is_union(tp):
        return None
    args = [arg for arg in get_args(tp) if arg is not type(None)]
    if len(args) != 1 or len(args) == len(get_args(tp)):
        return None
    return args[0]


def is_dynamic(tp: Any) -> bool:
    """Fields typed ``Any`` or ``object`` have no concrete target type."""
    tp = unwrap_annotated(tp)
    return tp is Any or tp is object


def sequence_item(tp: Any) -> Any | None:
    """Element type of ``list[X]`` (``Any`` for a bare ``list``), else *None*."""
    tp = unwrap_annotated(tp)
    if tp is list:
        return Any
    if get_origin(tp) is list:
        args = get_args(tp)
        return args[0] if args else Any
    return None


def mapping_items(tp: Any) -> tuple[Any, Any] | None:
    """Key and value types of ``dict[K, V]``, else *None*."""
    tp = unwrap_annotated(tp)
    if tp is dict:
        return Any, Any
    if get_origin(tp) is dict:
        args = get_args(tp)
        return (args[0], args[1]) if len(args) == 2 else (Any, Any)
    return None


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------


@functools.cache
def describe(cls: type) -> StructSpec:
    """Build (once) the field descriptors for a structure type."""
    if issubclass(cls, BaseModel):
        fields = tuple(
            FieldSpec(
                name=name,
                type=info.rebuild_annotation(),
                tags=_string_tags(info.json_schema_extra),
                public=not name.startswith("_"),
            )
            for name, info in cls.model_fields.items()
        )
        return StructSpec(cls=cls, fields=fields)

    if dataclasses.is_dataclass(cls):
        hints = get_type_hints(cls, include_extras=True)
        fields = tuple(
            FieldSpec(
                name=f.name,
                type=hints.get(f.name, Any),
                tags=_string_tags(f.metadata),
                public=not f.name.startswith("_"),
            )
            for f in dataclasses.fields(cls)
        )
        return StructSpec(cls=cls, fields=fields)

    raise TypeError(f"{cls!r} is not a dataclass or pydantic model")


def _string_tags(extra: Any) -> dict[str, str]:
    if not isinstance(extra, Mapping):
        return {}
    return {key: value for key, value in extra.items() if isinstance(value, str)}


# ---------------------------------------------------------------------------
# Zero values
# ---------------------------------------------------------------------------


def zero_value(tp: Any) -> Any:
    """Return the zero value of a declared type.

    Structure types get a fresh instance in which required fields hold their
    own zero value and defaulted fields hold their declared default.
    """
    tp = unwrap_annotated(tp)
    if is_union(tp) or is_dynamic(tp):
        return None
    if sequence_item(tp) is not None:
        return []
    if mapping_items(tp) is not None:
        return {}
    if tp is bool:
        return False
    if tp is int:
        return 0
    if tp is float:
        return 0.0
    if tp is str:
        return ""
    if tp is bytes:
        return b""
    if tp is datetime:
        return ZERO_TIME
    if is_struct_type(tp):
        return new_struct(tp)
    return None


def new_struct(cls: type) -> Any:
    """Allocate an instance of *cls* without running validation."""
    spec = describe(cls)
    if issubclass(cls, BaseModel):
        required = {
            f.name: zero_value(f.type)
            for f in spec.fields
            if cls.model_fields[f.name].is_required()
        }
        return cls.model_construct(_fields_set=set(), **required)

    missing = dataclasses.MISSING
    kwargs: dict[str, Any] = {}
    deferred: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        if f.default is not missing or f.default_factory is not missing:
            continue
        if f.init:
            kwargs[f.name] = zero_value(_hint(spec, f.name))
        else:
            deferred[f.name] = zero_value(_hint(spec, f.name))
    instance = cls(**kwargs)
    for name, value in deferred.items():
        set_field(instance, name, value)
    return instance


def _hint(spec: StructSpec, name: str) -> Any:
    for f in spec.fields:
        if f.name == name:
            return f.type
    return Any


def is_zero(value: Any) -> bool:
    """Return *True* if *value* is its type's zero value."""
    if value is None:
        return True
    if isinstance(value, bool):
        return value is False
    if isinstance(value, (int, float, complex)):
        return value == 0
    if isinstance(value, (str, bytes, list, dict, set, frozenset, tuple)):
        return len(value) == 0
    if isinstance(value, datetime):
        return value.replace(tzinfo=None) == ZERO_TIME
    if is_struct(value):
        return all(
            is_zero(getattr(value, f.name, None)) for f in describe(type(value)).fields
        )
    return False


def set_field(obj: Any, name: str, value: Any) -> None:
    """Write a field, bypassing frozen checks and assignment validation."""
    if isinstance(obj, BaseModel):
        obj.__dict__[name] = value
        obj.__pydantic_fields_set__.add(name)
    else:
        object.__setattr__(obj, name, value)
