"""Tag Parser — decode the annotation mini-language into directives.

=====================================  ==========================================
``"<literal>"``                         scalar literal, kind taken from the field
``"fill"``                              recurse into a nested structure
``"v1,v2,v3"``                          sequence literal
``"k1:v1,k2:v2"``                       map literal
``"fill:<N>"``                          N filled structure elements
``"variants:n1,n2"``                    one structure element per variant
``"variants:k1=v1,k2=v2"``              map of custom keys to named variants
``"factory:<name>[:<arg>...]"``         call a registered factory
``"unmarshal:<json>"``                  decode JSON into the field
=====================================  ==========================================

:func:`parse` is purely syntactic.  Sequence and map bodies are shaped by the
field type, so they are split later with :func:`parse_slice`,
:func:`parse_map` and :func:`split_list`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from testfill.config import (
    FACTORY_ARG_SEPARATOR,
    LIST_SEPARATOR,
    MAP_PAIR_SEPARATOR,
    TAG_FACTORY,
    TAG_FILL,
    TAG_FILL_COUNT,
    TAG_UNMARSHAL,
    TAG_VARIANTS,
    VARIANT_PAIR_SEPARATOR,
)
from testfill.errors import DirectiveFormatError

_COUNT_RE = re.compile(r"\+?[0-9]+")


@dataclass(frozen=True)
class Directive:
    """Base for every parsed directive; ``raw`` is the annotation text."""

    raw: str


@dataclass(frozen=True)
class Literal(Directive):
    """Scalar, sequence or map literal interpreted by the field's setter."""


@dataclass(frozen=True)
class FillNested(Directive):
    """Recurse into a nested structure or pointer to one."""


@dataclass(frozen=True)
class Factory(Directive):
    name: str
    args: tuple[str, ...]


@dataclass(frozen=True)
class JSONLiteral(Directive):
    text: str


@dataclass(frozen=True)
class Variants(Directive):
    """``variants:`` body; its shape depends on the field type."""

    text: str


@dataclass(frozen=True)
class SliceFill(Directive):
    count: int


@dataclass(frozen=True)
class SliceVariants(Directive):
    names: tuple[str, ...]


@dataclass(frozen=True)
class MapVariants(Directive):
    pairs: tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class MapEntries(Directive):
    pairs: tuple[tuple[str, str], ...]


def parse(raw: str) -> Directive:
    """Decode one annotation string."""
    if raw.startswith(TAG_UNMARSHAL):
        return JSONLiteral(raw, text=raw[len(TAG_UNMARSHAL):])
    if raw.startswith(TAG_FACTORY):
        name, *args = raw[len(TAG_FACTORY):].split(FACTORY_ARG_SEPARATOR)
        return Factory(raw, name=name, args=tuple(args))
    if raw == TAG_FILL:
        return FillNested(raw)
    if raw.startswith(TAG_VARIANTS):
        return Variants(raw, text=raw[len(TAG_VARIANTS):])
    return Literal(raw)


def split_list(text: str) -> list[str]:
    """Split a sequence literal into trimmed element literals."""
    return [part.strip() for part in text.split(LIST_SEPARATOR)]


def parse_slice(directive: Directive) -> SliceFill | SliceVariants | None:
    """Interpret a directive placed on a sequence of structures.

    Returns *None* when the directive is neither ``fill:<N>`` nor
    ``variants:``.
    """
    raw = directive.raw
    if raw.startswith(TAG_FILL_COUNT):
        count_text = raw[len(TAG_FILL_COUNT):]
        if not _COUNT_RE.fullmatch(count_text):
            raise DirectiveFormatError(f"invalid slice count format: {raw}")
        return SliceFill(raw, count=int(count_text))
    if isinstance(directive, Variants):
        if not directive.text.strip():
            return SliceVariants(raw, names=())
        return SliceVariants(raw, names=tuple(split_list(directive.text)))
    return None


def parse_map(directive: Directive) -> MapVariants | MapEntries:
    """Interpret a directive placed on a map field."""
    if isinstance(directive, Variants):
        pairs = []
        for item in split_list(directive.text):
            parts = item.split(VARIANT_PAIR_SEPARATOR)
            if len(parts) != 2:
                raise DirectiveFormatError(
                    f"invalid key=variant format: {item} (expected format: key=variant)"
                )
            pairs.append((parts[0].strip(), parts[1].strip()))
        return MapVariants(directive.raw, pairs=tuple(pairs))

    entries = []
    for pair in directive.raw.split(LIST_SEPARATOR):
        parts = pair.strip().split(MAP_PAIR_SEPARATOR)
        if len(parts) != 2:
            raise DirectiveFormatError(f"invalid map format: {pair}")
        entries.append((parts[0].strip(), parts[1].strip()))
    return MapEntries(directive.raw, pairs=tuple(entries))
