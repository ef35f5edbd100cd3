"""Module-level API backed by a shared :class:`~testfill.walker.Filler`.

Usage::

    import testfill

    result = testfill.fill(User())
    if result.ok:
        user = result.value

    admin = testfill.must_fill_with_variant(User(), "admin")
"""

from __future__ import annotations

from typing import Any, TypeVar

from testfill.walker import FillResult, Filler

T = TypeVar("T")

_filler = Filler()


def fill(value: Any) -> FillResult:
    """Fill *value* with its default annotations without raising."""
    return _filler.try_fill(value)


def fill_with_variant(value: Any, variant: str) -> FillResult:
    """Fill *value* using ``testfill_<variant>`` annotations where present."""
    return _filler.try_fill(value, variant)


def must_fill(value: T) -> T:
    """Like :func:`fill` but return the copy directly and raise on error."""
    return _filler.fill(value)


def must_fill_with_variant(value: T, variant: str) -> T:
    """Like :func:`fill_with_variant` but raise on error."""
    return _filler.fill(value, variant)
