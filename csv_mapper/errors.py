from __future__ import annotations


class CsvMapperError(Exception):
    """Base class for every error raised by csv_mapper."""


class ConfigurationError(CsvMapperError, ValueError):
    """Invalid row bounds, delimiter, input type or header usage."""


class ResolutionError(CsvMapperError, IndexError):
    """A field name, alias or position has no matching column."""


class TransformInvocationError(CsvMapperError):
    """A transform referenced by name is not available in the caller context."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"cannot use transform {name!r}: {reason}")
        self.name = name


class AttributeAccessError(CsvMapperError, AttributeError):
    """A record was asked for a field it was not built with."""

    def __init__(self, name: str, available) -> None:
        super().__init__(
            f"record has no field {name!r} (fields: {', '.join(available) or 'none'})"
        )
        self.field_name = name
