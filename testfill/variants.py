"""Variant Resolver — pick the directive a field uses for a named variant."""

from __future__ import annotations

from typing import Mapping

from testfill.config import TAG_NAME, VARIANT_SEPARATOR


def variant_key(variant: str, tag_name: str = TAG_NAME) -> str:
    """Annotation key for *variant* (``testfill_admin`` for ``admin``)."""
    return f"{tag_name}{VARIANT_SEPARATOR}{variant}"


def resolve(tags: Mapping[str, str], variant: str = "", tag_name: str = TAG_NAME) -> str:
    """Return the directive text for *variant*.

    The variant-specific annotation wins when present and non-empty;
    otherwise the default annotation is used.  An empty result means the
    field is not filled.
    """
    default = tags.get(tag_name, "")
    if not variant:
        return default
    return tags.get(variant_key(variant, tag_name)) or default
