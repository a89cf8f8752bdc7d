"""
Delimited text sources.

Responsibilities:
- read raw input (a path, a readable stream, bytes or literal text)
- decode bytes, preferring UTF-8 and falling back to charset detection
- newline normalization
- split the text into rows of raw cells for a given delimiter

Quote handling and escaping are left to the csv module.
"""

from __future__ import annotations

import csv
import io
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from charset_normalizer import from_bytes

from .errors import ConfigurationError
from .rules import DEFAULT_DELIMITER, DEFAULT_SOURCE_TYPE, SOURCE_ENCODING, SOURCE_TYPES

logger = logging.getLogger(__name__)

Row = Tuple[str, ...]


def decode_bytes(raw: bytes) -> tuple[str, Dict[str, Any]]:
    """
    Decode input bytes to text.

    Rules:
    - UTF-8 (with or without BOM) is tried first.
    - Otherwise take charset-normalizer's best guess.
    - If that fails too, decode UTF-8 with replacement characters and report it.
    """
    detected = None
    decode_used = SOURCE_ENCODING
    decode_fallback = False

    try:
        text = raw.decode(SOURCE_ENCODING)
    except UnicodeDecodeError:
        match = from_bytes(raw).best()
        if match is not None:
            detected = match.encoding
            decode_used = detected
        try:
            text = raw.decode(decode_used)
        except (UnicodeDecodeError, LookupError):
            # Last resort: decode with replacement so the import stays deterministic
            text = raw.decode("utf-8", errors="replace")
            decode_used = "utf-8"
            decode_fallback = True

    report = {
        "detected": detected,
        "decode_used": decode_used,
        "decode_fallback": decode_fallback,
    }
    return text, report


def normalize_newlines(text: str) -> str:
    """CRLF/CR -> LF."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_rows(text: str, delimiter: str = DEFAULT_DELIMITER) -> List[Row]:
    """Split text into rows of raw cells. Blank lines become empty rows."""
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    return [tuple(row) for row in reader]


class DelimitedSource:
    """
    Scoped access to one delimited input.

    Used as a context manager: any file handle opened for a path is released
    on every exit path. Streams handed in by the caller are read but left open.
    """

    def __init__(self, data: Any, source_type: str = DEFAULT_SOURCE_TYPE) -> None:
        if source_type not in SOURCE_TYPES:
            raise ConfigurationError(
                f"unknown input type {source_type!r}, expected one of {', '.join(SOURCE_TYPES)}"
            )
        self.data = data
        self.source_type = source_type
        self.report: Dict[str, Any] = {}
        self._handle = None
        self._text: Optional[str] = None
        self._rows: Dict[str, List[Row]] = {}

    def __enter__(self) -> "DelimitedSource":
        if self.source_type == "file":
            if not isinstance(self.data, (str, bytes, os.PathLike)):
                raise ConfigurationError(
                    f"file input needs a path, got {type(self.data).__name__}"
                )
            self._handle = open(self.data, "rb")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    @property
    def description(self) -> str:
        if self.source_type == "file":
            return os.fsdecode(self.data)
        return f"<{type(self.data).__name__}>"

    def text(self) -> str:
        """The decoded, newline-normalized input. Read once, then cached."""
        if self._text is None:
            self._text = normalize_newlines(self._read())
        return self._text

    def rows(self, delimiter: str = DEFAULT_DELIMITER) -> List[Row]:
        """All physical rows split on `delimiter`, in input order."""
        if delimiter not in self._rows:
            self._rows[delimiter] = split_rows(self.text(), delimiter)
            logger.debug(
                "Split %s into %d rows on %r",
                self.description,
                len(self._rows[delimiter]),
                delimiter,
            )
        return self._rows[delimiter]

    def row_at(self, position: int, delimiter: str = DEFAULT_DELIMITER) -> Optional[Row]:
        rows = self.rows(delimiter)
        if position < len(rows):
            return rows[position]
        return None

    def _read(self) -> str:
        if self.source_type == "file":
            if self._handle is None:
                raise ConfigurationError("source must be opened before it is read")
            return self._decode(self._handle.read())

        data = self.data
        if hasattr(data, "read"):
            data = data.read()
        if isinstance(data, (bytes, bytearray)):
            return self._decode(bytes(data))
        if isinstance(data, str):
            return data
        raise ConfigurationError(
            f"io input needs a stream, bytes or text, got {type(data).__name__}"
        )

    def _decode(self, raw: bytes) -> str:
        text, self.report = decode_bytes(raw)
        if self.report["decode_fallback"]:
            logger.warning(
                "Could not decode %s cleanly, undecodable bytes were replaced",
                self.description,
            )
        else:
            logger.debug("Decoded %s as %s", self.description, self.report["decode_used"])
        return text
