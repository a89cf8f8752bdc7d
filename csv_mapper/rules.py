"""
Default mapping rules.

Anything a RowMap does not override falls back to these values.
"""

DEFAULT_DELIMITER = ","
FORBIDDEN_DELIMITERS = frozenset({'"', "\r", "\n"})

SOURCE_TYPES = ("file", "io")
DEFAULT_SOURCE_TYPE = "file"

PLACEHOLDER_PREFIX = "_field_"  # followed by the 1-based column position

SOURCE_ENCODING = "utf-8-sig"  # tried before charset detection

# Record attributes a field name would be shadowed by
RESERVED_FIELD_NAMES = frozenset({"get", "keys", "values", "items", "to_dict", "_values"})
