"""
Import orchestration.

One import call opens the source, runs the mapping block, picks the header
row, bounds the data rows and builds a Record for each of them. Every binding
is settled and every row width checked before the first Record is built, so a
failing import never hands back partial results.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .columns import NamedColumnIndex, resolve_header
from .errors import ResolutionError
from .mapping import MappingBuilder, RowMap
from .records import Record, RecordFactory
from .rules import DEFAULT_SOURCE_TYPE
from .source import DelimitedSource

logger = logging.getLogger(__name__)

MappingBlock = Callable[[MappingBuilder], Any]


class _HeaderRow:
    """The header row of one open source, indexed on first use.

    MappingBuilder refuses to move the start row or change the delimiter once
    the header has been read, so one index serves the whole import.
    """

    def __init__(self, source: DelimitedSource) -> None:
        self.source = source
        self._index: Optional[NamedColumnIndex] = None

    def index(self, start_row: int, delimiter: str) -> NamedColumnIndex:
        if self._index is None:
            self._index = resolve_header(self.source.row_at(start_row, delimiter))
        return self._index

    def find(self, start_row: int, delimiter: str) -> Optional[NamedColumnIndex]:
        if self._index is None and self.source.row_at(start_row, delimiter) is None:
            return None
        return self.index(start_row, delimiter)


class ImportEngine:
    def __init__(self, context: Any = None) -> None:
        self.context = context

    def run(self, data: Any, block: MappingBlock, source_type: str = DEFAULT_SOURCE_TYPE) -> List[Record]:
        with DelimitedSource(data, source_type) as source:
            headers = _HeaderRow(source)
            row_map = MappingBuilder(self.context, header=headers.index).build(block)
            rows = source.rows(row_map.delimiter)
            index = None
            if row_map.named_columns_enabled:
                index = headers.find(row_map.start_row, row_map.delimiter)
            description = source.description

        factory = RecordFactory(row_map.resolve(index))
        retained = self._select(rows, row_map)
        self._check_widths(retained, factory)

        records = []
        for position, row in retained:
            try:
                records.append(factory.build(row))
            except Exception:
                logger.error("Transform failed on row %d of %s", position, description)
                raise

        logger.info(
            "Imported %d records with fields %s from %s",
            len(records),
            factory.field_names,
            description,
        )
        return records

    @staticmethod
    def _select(rows: Sequence[Tuple[str, ...]], row_map: RowMap) -> List[Tuple[int, Tuple[str, ...]]]:
        """Physical rows from start_row to stop_row inclusive, minus the header row."""
        first = row_map.start_row
        if row_map.named_columns_enabled:
            first += 1
        last = len(rows) - 1 if row_map.stop_row is None else min(row_map.stop_row, len(rows) - 1)
        return [(position, rows[position]) for position in range(first, last + 1)]

    @staticmethod
    def _check_widths(retained: Sequence[Tuple[int, Tuple[str, ...]]], factory: RecordFactory) -> None:
        width = factory.width
        for position, row in retained:
            if len(row) < width:
                missing = [binding.name for binding in factory.bindings if binding.column >= len(row)]
                raise ResolutionError(
                    f"row {position} has {len(row)} columns, too few for field(s) {', '.join(missing)}"
                )


class CsvMapper:
    """
    Entry point for mapping and importing delimited text.

    `context` is where transforms referenced by name are looked up: usually the
    calling object itself, or a dict of functions.
    """

    def __init__(self, context: Any = None) -> None:
        self.context = context

    def map_csv(self, block: MappingBlock) -> RowMap:
        return MappingBuilder(self.context).build(block)

    def import_csv(self, data: Any, block: MappingBlock, type: str = DEFAULT_SOURCE_TYPE) -> List[Record]:
        return ImportEngine(self.context).run(data, block, type)


def map_csv(block: MappingBlock) -> RowMap:
    """Evaluate a mapping block without a source."""
    return CsvMapper().map_csv(block)


def import_csv(data: Any, block: MappingBlock, type: str = DEFAULT_SOURCE_TYPE) -> List[Record]:
    """
    Import `data` with the mapping declared in `block`.

    `type` is "file" for a path, or "io" for a readable stream, bytes or text.
    Transforms can only be attached as callables; use CsvMapper(context=...)
    to refer to them by name.
    """
    return CsvMapper().import_csv(data, block, type)
