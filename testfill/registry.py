"""FactoryRegistry — named callables that produce field values.

Usage::

    from testfill import register_factory

    register_factory("uuid", lambda: "test-uuid-123")

    @dataclass
    class User:
        id: str = field(default="", metadata=tag("factory:uuid"))

Factories may take positional arguments; the directive
``factory:Name:arg1:arg2`` passes them as strings, converted to the
parameter types declared on the callable.  The signature is captured once at
registration time.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Sequence, get_args, get_origin, get_type_hints

from testfill.convert import check_width, convert_to_type, kind_marker, type_name
from testfill.errors import ConversionError, FactoryError, TestfillError
from testfill.schema import is_dynamic, is_union, optional_inner, unwrap_annotated

logger = logging.getLogger(__name__)

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)

_UNDECLARED = object()


@dataclass(frozen=True)
class FactoryEntry:
    """A registered factory and the signature captured for it."""

    name: str
    func: Callable[..., Any]
    params: tuple[Any, ...]
    returns: Any = _UNDECLARED


class FactoryRegistry:
    """Name -> factory table.

    The package keeps one process-wide instance (:data:`default_registry`);
    tests can build their own to stay isolated.  Registering an existing name
    replaces the previous entry.  Registration is not thread-safe: register
    everything before filling concurrently.
    """

    def __init__(self) -> None:
        self._entries: dict[str, FactoryEntry] = {}

    def register(self, name: str, func: Callable[..., Any]) -> None:
        """Add (or replace) the factory called *name*."""
        if name in self._entries:
            logger.debug("Replacing factory: %s", name)
        self._entries[name] = _describe_factory(name, func)
        logger.info("Registered factory: %s", name)

    def get(self, name: str) -> FactoryEntry | None:
        return self._entries.get(name)

    def names(self) -> list[str]:
        """Return the registered names in registration order."""
        return list(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def invoke(self, name: str, args: Sequence[str], target: Any) -> Any:
        """Call factory *name* with string *args* for a field of type *target*.

        Raises
        ------
        FactoryError
            If the factory is unknown, the arguments do not match its
            signature, it raises, or its result does not fit *target*.
        """
        entry = self._entries.get(name)
        if entry is None:
            raise FactoryError(f"factory function {name} not found")

        if len(args) != len(entry.params):
            raise FactoryError(
                f"factory function {name} expects {len(entry.params)} arguments, "
                f"got {len(args)}"
            )

        call_args = []
        for index, (arg, param) in enumerate(zip(args, entry.params)):
            try:
                call_args.append(convert_to_type(arg, param))
            except TestfillError as exc:
                raise FactoryError(
                    f"factory function {name} argument {index}: {exc}"
                ) from exc

        logger.debug("Calling factory %s with %d argument(s)", name, len(call_args))
        try:
            result = entry.func(*call_args)
        except Exception as exc:
            raise FactoryError(f"factory function panicked: {exc}") from exc

        if not _single_result(entry, result, target):
            raise FactoryError(f"factory function {name} must return exactly one value")

        if not is_assignable(result, target):
            raise FactoryError(
                f"factory function {name} returns {type_name(type(result))}, "
                f"but field expects {type_name(target)}"
            )
        return result


def _describe_factory(name: str, func: Callable[..., Any]) -> FactoryEntry:
    """Capture parameter and return types of *func*.

    Unannotated parameters take their argument as a plain string.
    """
    signature = inspect.signature(func)
    target = func.__init__ if isinstance(func, type) else func
    try:
        hints = get_type_hints(target, include_extras=True)
    except (NameError, TypeError):
        logger.debug("Could not resolve annotations of factory %s", name, exc_info=True)
        hints = {}

    params = tuple(
        hints.get(param.name, str)
        for param in signature.parameters.values()
        if param.kind in _POSITIONAL
    )
    if isinstance(func, type):
        returns = func
    else:
        returns = hints.get("return", _UNDECLARED)
    return FactoryEntry(name=name, func=func, params=params, returns=returns)


def _is_tuple_type(tp: Any) -> bool:
    tp = unwrap_annotated(tp)
    return tp is tuple or get_origin(tp) is tuple


def _single_result(entry: FactoryEntry, result: Any, target: Any) -> bool:
    """A factory yields one value: not ``None`` and not an unasked-for tuple."""
    if entry.returns is type(None):
        return False
    if result is None:
        return optional_inner(target) is not None or is_dynamic(target)
    if isinstance(result, tuple) and not _is_tuple_type(target) and not is_dynamic(target):
        return False
    return True


def is_assignable(value: Any, tp: Any) -> bool:
    """Return *True* if *value* may be stored in a field declared as *tp*."""
    marker = kind_marker(tp)
    if marker is not None:
        try:
            check_width(value, marker)
        except ConversionError:
            return False
    tp = unwrap_annotated(tp)
    if is_dynamic(tp):
        return True
    if tp is None or tp is type(None):
        return value is None
    if is_union(tp):
        return any(is_assignable(value, arg) for arg in get_args(tp))
    origin = get_origin(tp) or tp
    if not isinstance(origin, type):
        return False
    if origin in (int, float) and isinstance(value, bool):
        return False
    return isinstance(value, origin)


default_registry = FactoryRegistry()


def register_factory(name: str, func: Callable[..., Any]) -> None:
    """Register *func* under *name* in the process-wide registry."""
    default_registry.register(name, func)
