"""Global configuration: tag names, directive prefixes and separators."""

# Field annotation key holding the default directive.
TAG_NAME = "testfill"

# Variant-specific annotations are ``<TAG_NAME><VARIANT_SEPARATOR><variant>``
# (e.g. ``testfill_admin``).
VARIANT_SEPARATOR = "_"

# Directive markers and prefixes
TAG_FILL = "fill"
TAG_FACTORY = "factory:"
TAG_UNMARSHAL = "unmarshal:"
TAG_VARIANTS = "variants:"
TAG_FILL_COUNT = "fill:"

# Separators inside directive bodies
LIST_SEPARATOR = ","
MAP_PAIR_SEPARATOR = ":"
VARIANT_PAIR_SEPARATOR = "="
FACTORY_ARG_SEPARATOR = ":"

# JSON literal that clears a pointer (Optional) field
JSON_NULL = "null"
