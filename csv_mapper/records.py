from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Sequence, Tuple

from .errors import AttributeAccessError
from .mapping import ResolvedBinding


class Record:
    """
    One imported row. Fields read as attributes (`record.first_name`) or items
    (`record["first_name"]`); the values are fixed once built.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Dict[str, Any]) -> None:
        object.__setattr__(self, "_values", MappingProxyType(dict(values)))

    def __getattr__(self, name: str) -> Any:
        if name == "_values":
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            raise AttributeAccessError(name, list(self._values)) from None

    def __getitem__(self, name: str) -> Any:
        try:
            return self._values[name]
        except KeyError:
            raise AttributeAccessError(name, list(self._values)) from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"Record is read-only, cannot set {name!r}")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"Record is read-only, cannot delete {name!r}")

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Record):
            return list(self._values.items()) == list(other._values.items())
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={value!r}" for name, value in self._values.items())
        return f"Record({fields})"

    def __getstate__(self) -> Dict[str, Any]:
        return dict(self._values)

    def __setstate__(self, state: Dict[str, Any]) -> None:
        object.__setattr__(self, "_values", MappingProxyType(dict(state)))

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def keys(self) -> List[str]:
        return list(self._values)

    def values(self) -> List[Any]:
        return list(self._values.values())

    def items(self) -> List[Tuple[str, Any]]:
        return list(self._values.items())

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)


class RecordFactory:
    """Builds a Record from each row using a fixed set of resolved bindings."""

    def __init__(self, bindings: Sequence[ResolvedBinding]) -> None:
        self.bindings = tuple(bindings)

    @property
    def field_names(self) -> List[str]:
        return [binding.name for binding in self.bindings]

    @property
    def width(self) -> int:
        """Columns a row needs to satisfy every binding."""
        return max((binding.column + 1 for binding in self.bindings), default=0)

    def build(self, row: Sequence[str]) -> Record:
        row = tuple(row)
        return Record({binding.name: binding.value(row) for binding in self.bindings})
