"""Filler — the structure walker that drives every setter.

Usage::

    from testfill import Filler, FactoryRegistry

    registry = FactoryRegistry()
    registry.register("uuid", lambda: "test-uuid-123")

    filler = Filler(registry=registry)
    user = filler.fill(User())

The walker visits public fields in declaration order.  A field is written
only while it holds its zero value; ``fill`` directives recurse into nested
structures regardless, so their own zero fields get completed.
"""

from __future__ import annotations

import copy
import functools
import logging
from datetime import datetime
from typing import Annotated, Any, Union, get_args, get_origin

from pydantic import AfterValidator, BaseModel, ConfigDict, PydanticSchemaGenerationError, TypeAdapter

from testfill.config import JSON_NULL, TAG_FILL, TAG_NAME
from testfill.containers import build_mapping, build_sequence
from testfill.convert import Kind, check_width, convert, kind_marker, kind_of, type_name
from testfill.directives import Directive, Factory, JSONLiteral, parse
from testfill.errors import (
    FieldError,
    NestedFillError,
    NotStructError,
    TestfillError,
    TimestampError,
    UnmarshalError,
    UnsupportedTypeError,
)
from testfill.registry import FactoryRegistry, default_registry
from testfill.schema import (
    FieldSpec,
    describe,
    is_dynamic,
    is_struct,
    is_struct_type,
    is_union,
    is_zero,
    mapping_items,
    new_struct,
    optional_inner,
    sequence_item,
    set_field,
    unwrap_annotated,
    zero_value,
)
from testfill.variants import resolve

logger = logging.getLogger(__name__)


class FillResult(BaseModel):
    """Outcome of a non-raising fill.

    On failure ``value`` is the zero value of the input's type, never a
    partially filled copy.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    value: Any = None
    error: TestfillError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Filler:
    """Populate zero-valued fields from their ``testfill`` annotations.

    Parameters
    ----------
    registry:
        Factory registry used by ``factory:`` directives.  Defaults to the
        process-wide :data:`~testfill.registry.default_registry`.
    tag_name:
        Annotation key holding the default directive.  Variant annotations
        are looked up as ``<tag_name>_<variant>``.
    """

    def __init__(
        self,
        registry: FactoryRegistry | None = None,
        tag_name: str = TAG_NAME,
    ) -> None:
        self.registry = registry if registry is not None else default_registry
        self.tag_name = tag_name

    # -- Entry points ---------------------------------------------------------

    def fill(self, value: Any, variant: str = "") -> Any:
        """Return a filled copy of *value*; raise :class:`TestfillError` on failure.

        *value* may also be a structure class, in which case a fresh instance
        is filled.  The input itself is never modified.
        """
        if is_struct_type(value):
            target = new_struct(value)
        elif is_struct(value):
            target = copy.deepcopy(value)
        else:
            raise NotStructError(value)

        logger.debug(
            "Filling %s (variant=%r)", type(target).__name__, variant or "default",
        )
        self.fill_struct(target, variant)
        return target

    def try_fill(self, value: Any, variant: str = "") -> FillResult:
        """Like :meth:`fill` but report failures in a :class:`FillResult`."""
        try:
            return FillResult(value=self.fill(value, variant))
        except TestfillError as exc:
            logger.debug("Fill failed: %s", exc)
            zero_type = value if isinstance(value, type) else type(value)
            return FillResult(value=zero_value(zero_type), error=exc)

    # -- Walker ---------------------------------------------------------------

    def fill_struct(self, obj: Any, variant: str = "") -> None:
        """Fill the zero fields of *obj* in place."""
        for field in describe(type(obj)).public_fields():
            raw = resolve(field.tags, variant, self.tag_name)

            if raw == TAG_FILL:
                self._fill_nested(obj, field, variant)
                continue

            if not raw:
                continue

            current = getattr(obj, field.name, None)
            # an optional field is a reference: only None counts as unset
            if optional_inner(field.type) is not None:
                unset = current is None
            else:
                unset = is_zero(current)
            if not unset:
                logger.debug("Keeping %s.%s: already set", type(obj).__name__, field.name)
                continue

            try:
                value = self.build_value(field.type, parse(raw))
            except TestfillError as exc:
                raise FieldError(field.name, exc) from exc
            set_field(obj, field.name, value)

    def _fill_nested(self, obj: Any, field: FieldSpec, variant: str) -> None:
        inner = optional_inner(field.type)
        if inner is not None and is_struct_type(unwrap_annotated(inner)):
            cls, pointer = unwrap_annotated(inner), True
        elif is_struct_type(unwrap_annotated(field.type)):
            cls, pointer = unwrap_annotated(field.type), False
        else:
            logger.debug("Ignoring fill on non-structure field %s", field.name)
            return

        nested = getattr(obj, field.name, None)
        if nested is None:
            nested = new_struct(cls)
            set_field(obj, field.name, nested)

        try:
            self.fill_struct(nested, variant)
        except TestfillError as exc:
            raise NestedFillError(field.name, exc, pointer=pointer) from exc

    # -- Setters --------------------------------------------------------------

    def build_value(self, tp: Any, directive: Directive) -> Any:
        """Produce the value *directive* describes for a field of type *tp*."""
        if isinstance(directive, JSONLiteral):
            return unmarshal(directive.text, tp)
        # no concrete target type: only JSON can build a value
        if is_dynamic(tp):
            raise UnsupportedTypeError(f"unsupported field type {type_name(tp)}")
        if isinstance(directive, Factory):
            return self.registry.invoke(directive.name, directive.args, tp)

        inner = optional_inner(tp)
        if inner is not None:
            return self.build_value(inner, directive)

        base = unwrap_annotated(tp)
        if is_union(base):
            raise UnsupportedTypeError(f"unsupported field type {type_name(tp)}")

        kind = kind_of(tp)
        if kind is not None:
            return convert(directive.raw, kind)
        if sequence_item(base) is not None:
            return build_sequence(directive, tp, self)
        if mapping_items(base) is not None:
            return build_mapping(directive, tp, self)
        if base is datetime:
            return parse_timestamp(directive.raw)
        if is_struct_type(base):
            raise UnsupportedTypeError(f"unsupported struct type {type_name(base)}")
        raise UnsupportedTypeError(f"unsupported field type {type_name(tp)}")


def parse_timestamp(text: str) -> datetime:
    """Parse an extended ISO 8601 timestamp with date, time and UTC offset."""
    try:
        value = datetime.fromisoformat(text)
    except ValueError as exc:
        raise TimestampError(str(exc)) from exc
    if value.tzinfo is None:
        raise TimestampError(f"Invalid isoformat string: {text!r} has no UTC offset")
    return value


# parses any JSON document into plain Python values
_JSON_VALUE = TypeAdapter(Any)

_JSON_TYPES = {
    dict: "object",
    list: "array",
    str: "string",
    bool: "bool",
    int: "number",
    float: "number",
}


def unmarshal(text: str, tp: Any) -> Any:
    """Decode JSON *text* into a zero value of type *tp*.

    Decoding mirrors writing into an existing zero value: ``null`` leaves the
    zero value in place (``None`` for optional fields, without allocating),
    structure members absent from a JSON object keep their zero value, and
    unknown members are ignored.  Leaf values are validated strictly, so a JSON
    string never becomes a number, and width markers are range checked.
    """
    if text.strip() == JSON_NULL:
        return zero_value(tp)
    try:
        return _decode(_JSON_VALUE.validate_json(text), tp)
    except (ValueError, PydanticSchemaGenerationError) as exc:
        raise UnmarshalError(exc) from exc


def _decode(data: Any, tp: Any) -> Any:
    if data is None:
        return zero_value(tp)

    inner = optional_inner(tp)
    if inner is not None:
        return _decode(data, inner)

    base = unwrap_annotated(tp)
    if is_struct_type(base):
        _expect(data, dict, tp)
        obj = new_struct(base)
        for field in describe(base).public_fields():
            if field.name not in data:
                continue
            value = data[field.name]
            # null only clears references
            reference = optional_inner(field.type) is not None or is_dynamic(field.type)
            if value is None and not reference:
                continue
            set_field(obj, field.name, _decode(value, field.type))
        return obj

    item = sequence_item(base)
    if item is not None and _contains_struct(item):
        _expect(data, list, tp)
        return [_decode(element, item) for element in data]

    items = mapping_items(base)
    if items is not None and _contains_struct(items[1]) and kind_of(items[0]) == Kind.STRING:
        _expect(data, dict, tp)
        return {key: _decode(value, items[1]) for key, value in data.items()}

    return TypeAdapter(_with_widths(tp)).validate_json(_JSON_VALUE.dump_json(data), strict=True)


def _expect(data: Any, json_type: type, tp: Any) -> None:
    if not isinstance(data, json_type):
        found = _JSON_TYPES.get(type(data), type(data).__name__)
        raise ValueError(f"cannot unmarshal {found} into value of type {type_name(tp)}")


def _contains_struct(tp: Any) -> bool:
    base = unwrap_annotated(optional_inner(tp) or tp)
    if is_struct_type(base):
        return True
    item = sequence_item(base)
    if item is not None:
        return _contains_struct(item)
    items = mapping_items(base)
    return items is not None and _contains_struct(items[1])


def _with_widths(tp: Any) -> Any:
    """Attach a range check to every width-marked scalar inside *tp*."""
    marker = kind_marker(tp)
    if marker is not None:
        return Annotated[tp, AfterValidator(functools.partial(check_width, kind=marker))]
    origin, args = get_origin(tp), get_args(tp)
    if is_union(tp):
        return Union[tuple(_with_widths(arg) for arg in args)]
    if origin is list and args:
        return list[_with_widths(args[0])]
    if origin is dict and len(args) == 2:
        return dict[_with_widths(args[0]), _with_widths(args[1])]
    return tp
