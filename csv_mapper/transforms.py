"""Transforms the import service exposes by name."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence

_TRUE = {"true", "1", "yes", "y", "t"}
_FALSE = {"false", "0", "no", "n", "f", ""}


class BuiltinTransforms:
    """Each method is called as `transform(row, index)` for one cell."""

    def integer(self, row: Sequence[str], index: int) -> Optional[int]:
        cell = row[index].strip()
        if not cell:
            return None
        return int(cell)

    def decimal(self, row: Sequence[str], index: int) -> Optional[Decimal]:
        cell = row[index].strip()
        if not cell:
            return None
        try:
            return Decimal(cell)
        except InvalidOperation:
            raise ValueError(f"invalid decimal {cell!r}") from None

    def boolean(self, row: Sequence[str], index: int) -> bool:
        cell = row[index].strip().lower()
        if cell in _TRUE:
            return True
        if cell in _FALSE:
            return False
        raise ValueError(f"invalid boolean {row[index]!r}")

    def strip(self, row: Sequence[str], index: int) -> str:
        return row[index].strip()

    def upper(self, row: Sequence[str], index: int) -> str:
        return row[index].upper()

    def lower(self, row: Sequence[str], index: int) -> str:
        return row[index].lower()
