from .engine import CsvMapper, ImportEngine, import_csv, map_csv
from .errors import (
    AttributeAccessError,
    ConfigurationError,
    CsvMapperError,
    ResolutionError,
    TransformInvocationError,
)
from .mapping import FieldBinding, MappingBuilder, RowMap
from .records import Record

__all__ = [
    "AttributeAccessError",
    "ConfigurationError",
    "CsvMapper",
    "CsvMapperError",
    "FieldBinding",
    "ImportEngine",
    "MappingBuilder",
    "Record",
    "ResolutionError",
    "RowMap",
    "TransformInvocationError",
    "import_csv",
    "map_csv",
]
