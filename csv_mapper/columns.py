"""Header row resolution: header text and normalized names to column positions."""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import ResolutionError
from .rules import PLACEHOLDER_PREFIX

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_NON_IDENTIFIER_RE = re.compile(r"\W+")


def normalize_header(text: str) -> str:
    """
    Turn header text into an attribute name.

    "First Name" -> "first_name", "Age (yrs)" -> "age_yrs", "2nd" -> "_2nd".
    Returns "" when nothing usable is left.
    """
    name = _WHITESPACE_RE.sub("_", text.strip().casefold())
    name = _NON_IDENTIFIER_RE.sub("", name)
    if name and name[0].isdigit():
        name = "_" + name
    return name


def placeholder_name(position: int) -> str:
    """Default name for a blank header at 0-based `position`."""
    return f"{PLACEHOLDER_PREFIX}{position + 1}"


class NamedColumnIndex:
    """
    Lookups built from one header row.

    `position_of_text` matches the literal (trimmed) header text, the way
    aliases and add_attributes_by_name refer to columns. `position_of_identifier`
    matches the normalized form. The first column wins on duplicates in both.
    """

    def __init__(self, header: Sequence[str]) -> None:
        self.header: Tuple[str, ...] = tuple(header)
        self._by_text: Dict[str, int] = {}
        self._by_identifier: Dict[str, int] = {}
        self.attribute_names: List[str] = []

        used = set()
        for position, cell in enumerate(self.header):
            text = cell.strip()
            identifier = normalize_header(cell)
            self._by_text.setdefault(text, position)
            if identifier:
                self._by_identifier.setdefault(identifier, position)

            name = identifier or placeholder_name(position)
            if name in used:
                name = f"{name}_{position + 1}"
            while name in used:
                name += "_"
            used.add(name)
            self.attribute_names.append(name)

        logger.debug("Indexed header %r as %r", self.header, self.attribute_names)

    def __len__(self) -> int:
        return len(self.header)

    def position_of_text(self, text: str) -> int:
        try:
            return self._by_text[text.strip()]
        except KeyError:
            raise ResolutionError(
                f"no column with header {text!r} (headers: {list(self.header)!r})"
            ) from None

    def position_of_identifier(self, identifier: str) -> int:
        try:
            return self._by_identifier[identifier]
        except KeyError:
            raise ResolutionError(
                f"no column named {identifier!r} (headers: {list(self.header)!r})"
            ) from None

    def lookup(self, name: str) -> int:
        """Literal header text first, then the normalized form of `name`."""
        position = self._by_text.get(name.strip())
        if position is None:
            position = self._by_identifier.get(normalize_header(name))
        if position is None:
            raise ResolutionError(
                f"no column matches field {name!r} (headers: {list(self.header)!r})"
            )
        return position

    def columns(self) -> List[Tuple[int, str, str]]:
        """(position, trimmed header text, attribute name) for every column."""
        return [
            (position, cell.strip(), name)
            for position, (cell, name) in enumerate(zip(self.header, self.attribute_names))
        ]


def resolve_header(row: Optional[Sequence[str]]) -> NamedColumnIndex:
    if row is None:
        raise ResolutionError("no header row: the input ends before the start row")
    return NamedColumnIndex(row)
