"""testfill — declarative default values for test fixtures."""

__version__ = "1.0.0"

from testfill.api import fill, fill_with_variant, must_fill, must_fill_with_variant
from testfill.convert import (
    Float32,
    Float64,
    Int,
    Int8,
    Int16,
    Int32,
    Int64,
    Kind,
    Uint,
    Uint8,
    Uint16,
    Uint32,
    Uint64,
)
from testfill.errors import (
    ConversionError,
    DirectiveFormatError,
    ElementError,
    FactoryError,
    FieldError,
    NestedFillError,
    NotStructError,
    TestfillError,
    TimestampError,
    UnmarshalError,
    UnsupportedTypeError,
)
from testfill.registry import FactoryRegistry, default_registry, register_factory
from testfill.schema import describe, tag, zero_value
from testfill.walker import FillResult, Filler

__all__ = [
    "__version__",
    # Fill operations
    "fill",
    "fill_with_variant",
    "must_fill",
    "must_fill_with_variant",
    "FillResult",
    "Filler",
    # Factories
    "FactoryRegistry",
    "default_registry",
    "register_factory",
    # Annotations and types
    "tag",
    "describe",
    "zero_value",
    "Kind",
    "Int",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Uint",
    "Uint8",
    "Uint16",
    "Uint32",
    "Uint64",
    "Float32",
    "Float64",
    # Errors
    "ConversionError",
    "DirectiveFormatError",
    "ElementError",
    "FactoryError",
    "FieldError",
    "NestedFillError",
    "NotStructError",
    "TestfillError",
    "TimestampError",
    "UnmarshalError",
    "UnsupportedTypeError",
]
