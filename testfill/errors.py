"""Exception hierarchy for the fill engine.

Error messages are part of the public contract: callers and test suites may
assert on the exact text.  Wrapping errors render the full text of the error
they wrap, so ``str(err)`` lists every frame from the outermost field down to
the underlying parser message.  The wrapped exception is also kept as
``__cause__`` and as the ``inner`` attribute.
"""

from __future__ import annotations


class TestfillError(Exception):
    """Base class for every error raised by the engine."""

    __test__ = False  # not a pytest test class


class NotStructError(TestfillError, TypeError):
    """Raised when the top-level value is not a structure instance."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"testfill: expected struct, got {type(value).__name__}")


class FieldError(TestfillError):
    """A setter failed for a single field."""

    def __init__(self, field: str, inner: BaseException) -> None:
        self.field = field
        self.inner = inner
        super().__init__(f"testfill: failed to set field {field}: {inner}")


class NestedFillError(TestfillError):
    """Recursion into a nested structure (or pointer to one) failed."""

    def __init__(self, field: str, inner: BaseException, *, pointer: bool = False) -> None:
        self.field = field
        self.inner = inner
        self.pointer = pointer
        what = "nested struct pointer" if pointer else "nested struct"
        super().__init__(f"testfill: failed to fill {what} {field}: {inner}")


class ConversionError(TestfillError, ValueError):
    """A string could not be converted to the requested kind."""

    def __init__(self, text: str, kind: str, reason: str) -> None:
        self.text = text
        self.kind = kind
        self.reason = reason
        super().__init__(f'cannot convert "{text}" to {kind}: {reason}')


class UnsupportedTypeError(TestfillError, TypeError):
    """The declared type cannot be produced by the requested directive."""


class DirectiveFormatError(TestfillError, ValueError):
    """A directive is syntactically malformed for the field it sits on."""


class ElementError(TestfillError):
    """Filling one element of a generated sequence or map failed."""

    def __init__(self, message: str, inner: BaseException) -> None:
        self.inner = inner
        super().__init__(f"{message}: {inner}")


class FactoryError(TestfillError):
    """A factory lookup, argument conversion, call or result check failed."""


class UnmarshalError(TestfillError):
    """A ``unmarshal:`` literal could not be decoded into the field type."""

    def __init__(self, inner: BaseException) -> None:
        self.inner = inner
        super().__init__(f"failed to unmarshal JSON: {inner}")


class TimestampError(TestfillError, ValueError):
    """A timestamp literal could not be parsed; the message is the parser's."""
