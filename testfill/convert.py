"""Type Converter — turns directive text into typed scalar values.

Python has a single ``int`` and a single ``float`` type, so fixed widths are
declared with :data:`typing.Annotated` markers::

    from testfill import Int8, Uint16, Float32

    @dataclass
    class Packet:
        ttl: Int8 = field(default=0, metadata=tag("64"))

Plain ``int`` is the platform word (64 bits), plain ``float`` is ``float64``.
"""

from __future__ import annotations

import math
import re
import struct
import types
from enum import StrEnum
from typing import Annotated, Any, Union, get_args, get_origin

from testfill.errors import ConversionError, UnsupportedTypeError


class Kind(StrEnum):
    """Scalar kinds understood by :func:`convert`."""

    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    BOOL = "bool"
    STRING = "string"


Int = Annotated[int, Kind.INT]
Int8 = Annotated[int, Kind.INT8]
Int16 = Annotated[int, Kind.INT16]
Int32 = Annotated[int, Kind.INT32]
Int64 = Annotated[int, Kind.INT64]
Uint = Annotated[int, Kind.UINT]
Uint8 = Annotated[int, Kind.UINT8]
Uint16 = Annotated[int, Kind.UINT16]
Uint32 = Annotated[int, Kind.UINT32]
Uint64 = Annotated[int, Kind.UINT64]
Float32 = Annotated[float, Kind.FLOAT32]
Float64 = Annotated[float, Kind.FLOAT64]

# kind -> (bits, signed)
_INT_KINDS: dict[Kind, tuple[int, bool]] = {
    Kind.INT: (64, True),
    Kind.INT8: (8, True),
    Kind.INT16: (16, True),
    Kind.INT32: (32, True),
    Kind.INT64: (64, True),
    Kind.UINT: (64, False),
    Kind.UINT8: (8, False),
    Kind.UINT16: (16, False),
    Kind.UINT32: (32, False),
    Kind.UINT64: (64, False),
}

_FLOAT_KINDS = {Kind.FLOAT32, Kind.FLOAT64}

_PLAIN_KINDS: dict[type, Kind] = {
    bool: Kind.BOOL,
    int: Kind.INT,
    float: Kind.FLOAT64,
    str: Kind.STRING,
}

_TRUE_LITERALS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_LITERALS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_SIGNED_RE = re.compile(r"[+-]?[0-9]+")
_UNSIGNED_RE = re.compile(r"[0-9]+")
_FLOAT32_MAX = 3.4028234663852886e38

_INVALID = "invalid syntax"
_RANGE = "value out of range"


# ---------------------------------------------------------------------------
# Kind resolution
# ---------------------------------------------------------------------------


def kind_marker(tp: Any) -> Kind | None:
    """Return the :class:`Kind` carried by an ``Annotated`` type, if any."""
    if get_origin(tp) is not Annotated:
        return None
    for meta in tp.__metadata__:
        if isinstance(meta, Kind):
            return meta
    return None


def kind_of(tp: Any) -> Kind | None:
    """Map a declared type to its scalar kind, or *None* if it is not scalar."""
    marker = kind_marker(tp)
    if marker is not None:
        return marker
    if get_origin(tp) is Annotated:
        return kind_of(get_args(tp)[0])
    if isinstance(tp, type):
        return _PLAIN_KINDS.get(tp)
    return None


def type_name(tp: Any) -> str:
    """Render a declared type the way it reads in source (``list[str]``)."""
    if tp is Any:
        return "Any"
    if tp is None or tp is type(None):
        return "None"
    origin = get_origin(tp)
    if origin is Annotated:
        marker = kind_marker(tp)
        return str(marker) if marker is not None else type_name(get_args(tp)[0])
    if origin is Union or origin is types.UnionType:
        return " | ".join(type_name(arg) for arg in get_args(tp))
    if origin is not None:
        name = getattr(origin, "__name__", repr(origin))
        args = get_args(tp)
        if not args:
            return name
        return f"{name}[{', '.join(type_name(arg) for arg in args)}]"
    if isinstance(tp, type):
        return tp.__name__
    return repr(tp)


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


def convert(text: str, kind: Kind) -> Any:
    """Convert *text* to a value of *kind*.

    Raises
    ------
    ConversionError
        If *text* is not a valid literal for *kind* or is out of range.
    UnsupportedTypeError
        If *kind* is not a scalar kind.
    """
    if kind == Kind.STRING:
        return text
    if kind == Kind.BOOL:
        return _parse_bool(text)
    if kind in _INT_KINDS:
        return _parse_int(text, kind)
    if kind in _FLOAT_KINDS:
        return _parse_float(text, kind)
    raise UnsupportedTypeError(
        f"unsupported parameter type {kind} for factory function arguments"
    )


def convert_to_type(text: str, tp: Any) -> Any:
    """Convert *text* for a declared type rather than a bare kind."""
    kind = kind_of(tp)
    if kind is None:
        raise UnsupportedTypeError(
            f"unsupported parameter type {type_name(tp)} for factory function arguments"
        )
    return convert(text, kind)


def check_width(value: Any, kind: Kind) -> Any:
    """Return *value* if it fits in *kind*, else raise :class:`ConversionError`.

    Only integer and ``float32`` kinds carry a width; ``float32`` values are
    rounded to single precision.  Values of another Python type pass through
    untouched so callers can run their own type check.
    """
    if kind in _INT_KINDS:
        if isinstance(value, int) and not isinstance(value, bool):
            low, high = _int_bounds(kind)
            if not low <= value <= high:
                raise ConversionError(str(value), kind, _RANGE)
    elif kind == Kind.FLOAT32 and isinstance(value, float):
        if math.isfinite(value) and abs(value) > _FLOAT32_MAX:
            raise ConversionError(repr(value), kind, _RANGE)
        value = struct.unpack("f", struct.pack("f", value))[0]
    return value


def _int_bounds(kind: Kind) -> tuple[int, int]:
    bits, signed = _INT_KINDS[kind]
    if signed:
        return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    return 0, (1 << bits) - 1


def _parse_bool(text: str) -> bool:
    if text in _TRUE_LITERALS:
        return True
    if text in _FALSE_LITERALS:
        return False
    raise ConversionError(text, Kind.BOOL, _INVALID)


def _parse_int(text: str, kind: Kind) -> int:
    pattern = _SIGNED_RE if _INT_KINDS[kind][1] else _UNSIGNED_RE
    if not pattern.fullmatch(text):
        raise ConversionError(text, kind, _INVALID)
    value = int(text, 10)
    low, high = _int_bounds(kind)
    if not low <= value <= high:
        raise ConversionError(text, kind, _RANGE)
    return value


def _parse_float(text: str, kind: Kind) -> float:
    if text != text.strip() or "_" in text:
        raise ConversionError(text, kind, _INVALID)
    try:
        value = float(text)
    except ValueError:
        raise ConversionError(text, kind, _INVALID) from None

    if math.isinf(value) and "inf" not in text.lower():
        raise ConversionError(text, kind, _RANGE)
    if kind == Kind.FLOAT32:
        if math.isfinite(value) and abs(value) > _FLOAT32_MAX:
            raise ConversionError(text, kind, _RANGE)
        value = struct.unpack("f", struct.pack("f", value))[0]
    return value
