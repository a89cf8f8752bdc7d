"""
Mapping configuration.

A mapping block is any callable taking a MappingBuilder. It declares row
bounds, the delimiter, header handling and the field bindings; the builder
collects them into one RowMap:

    def people(m):
        m.start_at_row(1)
        m.fields("first_name", "last_name", "age")
        m.field("age").map(lambda row, index: int(row[index]))
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator, model_validator

from .columns import NamedColumnIndex
from .errors import ConfigurationError, ResolutionError, TransformInvocationError
from .rules import DEFAULT_DELIMITER, FORBIDDEN_DELIMITERS, RESERVED_FIELD_NAMES

logger = logging.getLogger(__name__)

Transform = Callable[[Sequence[str], int], Any]
HeaderReader = Callable[[int, str], NamedColumnIndex]


class ResolvedBinding(NamedTuple):
    name: str
    column: int
    transform: Optional[Transform] = None

    def value(self, row: Sequence[str]) -> Any:
        if self.transform is None:
            return row[self.column]
        return self.transform(row, self.column)


class FieldBinding:
    """
    One declared field. Located either by column position or by header text;
    header locators are settled once the header row is known.
    """

    def __init__(
        self,
        name: str,
        column: Optional[int] = None,
        header: Optional[str] = None,
        aliased: bool = False,
        transform_lookup: Optional[Callable[[str], Transform]] = None,
    ) -> None:
        self.name = name
        self.column = column
        self.header = header
        self.aliased = aliased
        self.transform: Optional[Transform] = None
        self._transform_lookup = transform_lookup

    def __repr__(self) -> str:
        return f"FieldBinding({self.name!r}, column={self.column!r}, header={self.header!r})"

    def map(self, transform: Union[Transform, str]) -> "FieldBinding":
        """
        Attach a transform called as `transform(row, index)` for every row.

        A string names a function in the caller's context instead.
        """
        if isinstance(transform, str):
            if self._transform_lookup is None:
                raise TransformInvocationError(transform, "no caller context to look it up in")
            self.transform = self._transform_lookup(transform)
        elif callable(transform):
            self.transform = transform
        else:
            raise ConfigurationError(
                f"transform for {self.name!r} must be callable or a name, got {type(transform).__name__}"
            )
        return self

    def resolve(self, index: Optional[NamedColumnIndex]) -> ResolvedBinding:
        column = self.column
        if column is None:
            if index is None:
                raise ResolutionError(
                    f"field {self.name!r} refers to header {self.header!r} but there is no header row"
                )
            if self.aliased:
                column = index.position_of_text(self.header)
            else:
                column = index.lookup(self.header)
        return ResolvedBinding(self.name, column, self.transform)


class RowMap(BaseModel):
    """What to read from a source and how to turn each row into a record."""

    model_config = ConfigDict(validate_assignment=True)

    start_row: int = Field(default=0, ge=0)
    stop_row: Optional[int] = Field(default=None, ge=0)
    delimiter: str = DEFAULT_DELIMITER
    named_columns_enabled: bool = False

    _bindings: Dict[str, FieldBinding] = PrivateAttr(default_factory=dict)
    _next_column: int = PrivateAttr(default=0)

    @field_validator("delimiter")
    @classmethod
    def single_character(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError(f"delimiter must be a single character, got {value!r}")
        if value in FORBIDDEN_DELIMITERS:
            raise ValueError(f"{value!r} cannot be used as a delimiter")
        return value

    @model_validator(mode="after")
    def ordered_bounds(self) -> "RowMap":
        if self.stop_row is not None and self.stop_row < self.start_row:
            raise ValueError(
                f"stop row {self.stop_row} comes before start row {self.start_row}"
            )
        return self

    @property
    def bindings(self) -> Tuple[FieldBinding, ...]:
        return tuple(self._bindings.values())

    @property
    def field_names(self) -> List[str]:
        return list(self._bindings)

    def binding(self, name: str) -> Optional[FieldBinding]:
        return self._bindings.get(name)

    def declare(self, name: str, **options: Any) -> FieldBinding:
        """Register a binding, or return the one already registered under `name`."""
        existing = self._bindings.get(name)
        if existing is not None:
            return existing

        if name in RESERVED_FIELD_NAMES or name.startswith("__"):
            raise ConfigurationError(
                f"{name!r} cannot be a field name, it is taken by Record; alias the column instead"
            )
        binding = FieldBinding(name, **options)
        if binding.column is None and binding.header is None:
            binding.column = self._next_column
        if binding.column is not None and binding.header is None:
            self._next_column = max(self._next_column, binding.column + 1)
        self._bindings[name] = binding
        return binding

    def resolve(self, index: Optional[NamedColumnIndex] = None) -> Tuple[ResolvedBinding, ...]:
        """Settle every binding to a column; the RowMap itself is left untouched."""
        return tuple(binding.resolve(index) for binding in self._bindings.values())


def _describe(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        where = ".".join(str(part) for part in error["loc"])
        messages.append(f"{where}: {error['msg']}" if where else error["msg"])
    return "; ".join(messages)


class MappingBuilder:
    """
    Runs a mapping block against a fresh RowMap.

    `context` is the caller's own set of functions (an object or a mapping)
    that transforms may be referenced from by name. `header` reads the header
    row for a start row and delimiter; without it, header lookups are deferred
    to import time.
    """

    def __init__(self, context: Any = None, header: Optional[HeaderReader] = None) -> None:
        self.row_map = RowMap()
        self.context = context
        self._read_header = header
        self._header_key: Optional[Tuple[int, str]] = None
        self._index: Optional[NamedColumnIndex] = None

    def build(self, block: Callable[["MappingBuilder"], Any]) -> RowMap:
        block(self)
        return self.row_map

    # Row selection

    def start_at_row(self, row: int) -> "MappingBuilder":
        self._guard_header("start row", 0, row)
        self._assign(start_row=row)
        return self

    def stop_at_row(self, row: int) -> "MappingBuilder":
        self._assign(stop_row=row)
        return self

    def delimited_by(self, delimiter: str) -> "MappingBuilder":
        self._guard_header("delimiter", 1, delimiter)
        self._assign(delimiter=delimiter)
        return self

    def named_columns(self) -> "MappingBuilder":
        self._assign(named_columns_enabled=True)
        return self

    # Field declarations

    def field(self, name: str, alias: Union[str, int, None] = None) -> FieldBinding:
        """
        Declare a field, or get the one already declared under `name`.

        Without an alias the field takes the next column in positional mode, or
        the header matching its own name in named-column mode. A string alias
        names the header text explicitly; an integer pins the column.
        """
        if not isinstance(name, str) or not name:
            raise ConfigurationError(f"field name must be a non-empty string, got {name!r}")

        existing = self.row_map.binding(name)
        if existing is not None:
            return existing

        if isinstance(alias, bool) or not isinstance(alias, (str, int, type(None))):
            raise ConfigurationError(f"alias for {name!r} must be header text or a column number")
        if isinstance(alias, int):
            if alias < 0:
                raise ConfigurationError(f"column for {name!r} cannot be negative")
            return self._declare(name, column=alias)

        if alias is not None:
            if not self.row_map.named_columns_enabled:
                raise ConfigurationError(
                    f"header alias {alias!r} for {name!r} needs named_columns()"
                )
            index = self._header_index()
            column = index.position_of_text(alias) if index is not None else None
            return self._declare(name, column=column, header=alias, aliased=True)

        if self.row_map.named_columns_enabled:
            index = self._header_index()
            column = index.lookup(name) if index is not None else None
            return self._declare(name, column=column, header=name)

        return self._declare(name)

    def fields(self, *names: Union[str, Sequence[str]]) -> List[FieldBinding]:
        """Declare several fields left to right: `fields("a", "b")` or `fields(["a", "b"])`."""
        if len(names) == 1 and isinstance(names[0], (list, tuple)):
            names = tuple(names[0])
        return [self.field(name) for name in names]

    def read_attributes_from_file(self, alias_map: Optional[Mapping[str, str]] = None) -> List[FieldBinding]:
        """Declare a field for every header column, named after the header or its alias."""
        self.named_columns()
        index = self._require_header("read_attributes_from_file")
        aliases = {text.strip(): alias for text, alias in (alias_map or {}).items()}

        taken: Dict[str, int] = {}
        declared = []
        for position, text, attribute in index.columns():
            name = aliases.get(text, attribute)
            declared.append(self._declare_column(name, position, text, taken))
        return declared

    def add_attributes_by_name(self, *names: str) -> List[FieldBinding]:
        """Declare fields for the header columns whose text is exactly `names`."""
        self.named_columns()
        index = self._require_header("add_attributes_by_name")

        taken: Dict[str, int] = {}
        declared = []
        for text in names:
            position = index.position_of_text(text)
            declared.append(self._declare_column(index.attribute_names[position], position, text, taken))
        return declared

    # Internals

    def _declare(self, name: str, **options: Any) -> FieldBinding:
        binding = self.row_map.declare(name, transform_lookup=self._transform, **options)
        logger.debug("Declared %r", binding)
        return binding

    def _declare_column(self, name: str, position: int, text: str, taken: Dict[str, int]) -> FieldBinding:
        """Declare a header column, refusing a name another column already uses."""
        other = taken.get(name)
        if other is None:
            existing = self.row_map.binding(name)
            if existing is not None and existing.column not in (None, position):
                other = existing.column
        if other is not None:
            raise ConfigurationError(
                f"columns {other + 1} and {position + 1} would both be named {name!r}"
            )
        taken[name] = position
        return self._declare(name, column=position, header=text, aliased=True)

    def _assign(self, **changes: Any) -> None:
        try:
            for attribute, value in changes.items():
                setattr(self.row_map, attribute, value)
        except ValidationError as exc:
            raise ConfigurationError(_describe(exc)) from exc

    def _guard_header(self, what: str, slot: int, value: Any) -> None:
        if self._header_key is not None and self._header_key[slot] != value:
            raise ConfigurationError(
                f"cannot change the {what} after the header row has been read"
            )

    def _header_index(self) -> Optional[NamedColumnIndex]:
        if self._read_header is None:
            return None
        if self._index is None:
            self._header_key = (self.row_map.start_row, self.row_map.delimiter)
            self._index = self._read_header(*self._header_key)
        return self._index

    def _require_header(self, operation: str) -> NamedColumnIndex:
        index = self._header_index()
        if index is None:
            raise ConfigurationError(f"{operation} needs a source to read the header from")
        return index

    def _transform(self, name: str) -> Transform:
        context = self.context
        if context is None:
            raise TransformInvocationError(name, "no caller context to look it up in")
        if name.startswith("_"):
            raise TransformInvocationError(name, "private names cannot be used as transforms")
        if isinstance(context, Mapping):
            function = context.get(name)
        else:
            function = getattr(context, name, None)
        if function is None:
            raise TransformInvocationError(name, f"not defined by {type(context).__name__}")
        if not callable(function):
            raise TransformInvocationError(name, "not callable")
        return function
