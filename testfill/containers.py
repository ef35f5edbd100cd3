"""Collection Filler — build sequences and maps from directives.

Containers are built completely before they are handed back to the walker,
so a failing element never leaves a half-filled collection behind.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from testfill.config import TAG_FILL
from testfill.convert import Kind, convert, kind_of, type_name
from testfill.directives import (
    Directive,
    Literal,
    MapVariants,
    SliceFill,
    parse_map,
    parse_slice,
    split_list,
)
from testfill.errors import ConversionError, ElementError, TestfillError, UnsupportedTypeError
from testfill.schema import is_struct_type, mapping_items, new_struct, sequence_item, unwrap_annotated

if TYPE_CHECKING:
    from testfill.walker import Filler

logger = logging.getLogger(__name__)


def _label(tp: Any) -> str:
    if is_struct_type(unwrap_annotated(tp)):
        return "struct"
    kind = kind_of(tp)
    return str(kind) if kind is not None else type_name(tp)


# ---------------------------------------------------------------------------
# Sequences
# ---------------------------------------------------------------------------


def build_sequence(directive: Directive, tp: Any, filler: Filler) -> list[Any]:
    """Build the list for a ``list[X]`` field."""
    item = sequence_item(tp)
    if is_struct_type(unwrap_annotated(item)):
        return _struct_sequence(directive, unwrap_annotated(item), filler)

    kind = kind_of(item)
    if kind is None:
        raise UnsupportedTypeError(f"unsupported slice element type {type_name(item)}")

    values = []
    for part in split_list(directive.raw):
        try:
            values.append(convert(part, kind))
        except ConversionError as exc:
            raise UnsupportedTypeError(f"unsupported slice element type {kind}") from exc
    return values


def _struct_sequence(directive: Directive, cls: type, filler: Filler) -> list[Any]:
    shape = parse_slice(directive)
    if shape is None:
        raise UnsupportedTypeError("unsupported slice element type struct")

    items = []
    if isinstance(shape, SliceFill):
        logger.debug("Generating %d %s element(s)", shape.count, cls.__name__)
        for index in range(shape.count):
            item = new_struct(cls)
            try:
                filler.fill_struct(item)
            except TestfillError as exc:
                raise ElementError(f"failed to fill slice element {index}", exc) from exc
            items.append(item)
        return items

    for index, variant in enumerate(shape.names):
        item = new_struct(cls)
        try:
            filler.fill_struct(item, variant)
        except TestfillError as exc:
            raise ElementError(
                f"failed to fill slice element {index} with variant {variant}", exc
            ) from exc
        items.append(item)
    return items


# ---------------------------------------------------------------------------
# Maps
# ---------------------------------------------------------------------------


def build_mapping(directive: Directive, tp: Any, filler: Filler) -> dict[Any, Any]:
    """Build the dict for a ``dict[K, V]`` field."""
    key_tp, value_tp = mapping_items(tp)
    if is_struct_type(unwrap_annotated(value_tp)):
        return _struct_mapping(directive, key_tp, value_tp, filler)

    unsupported = f"unsupported map type {_label(key_tp)} -> {_label(value_tp)}"
    key_kind, value_kind = kind_of(key_tp), kind_of(value_tp)
    entries = parse_map(Literal(directive.raw))
    if key_kind is None or value_kind is None:
        raise UnsupportedTypeError(unsupported)

    result = {}
    for key_text, value_text in entries.pairs:
        try:
            key = convert(key_text, key_kind)
            value = convert(value_text, value_kind)
        except ConversionError as exc:
            raise UnsupportedTypeError(unsupported) from exc
        result[key] = value
    return result


def _struct_mapping(directive: Directive, key_tp: Any, value_tp: Any, filler: Filler) -> dict[str, Any]:
    if kind_of(key_tp) != Kind.STRING:
        raise UnsupportedTypeError(
            f"unsupported map type {_label(key_tp)} -> {_label(value_tp)}"
        )

    cls = unwrap_annotated(value_tp)
    shape = parse_map(directive)
    result = {}
    for key, token in shape.pairs:
        named = isinstance(shape, MapVariants) or token != TAG_FILL
        variant = token if named else ""
        item = new_struct(cls)
        try:
            filler.fill_struct(item, variant)
        except TestfillError as exc:
            if named:
                message = f"failed to fill map value for key {key} with variant {variant}"
            else:
                message = f"failed to fill map value for key {key}"
            raise ElementError(message, exc) from exc
        result[key] = item
    return result
