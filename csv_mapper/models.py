from __future__ import annotations

from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field

from .mapping import MappingBuilder
from .rules import DEFAULT_DELIMITER


class FieldSpec(BaseModel):
    name: str = Field(min_length=1)
    # header text, or a column number
    column: Optional[Union[int, str]] = Field(default=None, examples=["Last Name", 2])
    transform: Optional[str] = Field(default=None, examples=["integer"])


class MappingSpec(BaseModel):
    start_row: int = Field(default=0, ge=0)
    stop_row: Optional[int] = Field(default=None, ge=0)
    delimiter: str = DEFAULT_DELIMITER
    named_columns: bool = False
    read_attributes: bool = False
    aliases: Dict[str, str] = Field(default_factory=dict)
    attributes_by_name: List[str] = Field(default_factory=list)
    fields: List[FieldSpec] = Field(default_factory=list)

    def apply(self, m: MappingBuilder) -> None:
        """Replay this mapping onto a builder, in the order a mapping block would."""
        m.start_at_row(self.start_row)
        if self.stop_row is not None:
            m.stop_at_row(self.stop_row)
        m.delimited_by(self.delimiter)
        if self.named_columns:
            m.named_columns()
        if self.read_attributes:
            m.read_attributes_from_file(self.aliases)
        if self.attributes_by_name:
            m.add_attributes_by_name(*self.attributes_by_name)
        for entry in self.fields:
            binding = m.field(entry.name, entry.column)
            if entry.transform:
                binding.map(entry.transform)


class ImportSummary(BaseModel):
    records: int = 0
    fields: List[str] = Field(default_factory=list)


class ImportResponse(BaseModel):
    records: List[Dict[str, Any]] = Field(default_factory=list)
    summary: ImportSummary


class HealthResponse(BaseModel):
    ok: bool = True
