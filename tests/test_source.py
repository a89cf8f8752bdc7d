import io

import pytest

from csv_mapper.errors import ConfigurationError
from csv_mapper.source import DelimitedSource, decode_bytes, normalize_newlines, split_rows


def test_split_rows_keeps_quoted_delimiters():
    rows = split_rows('a,"b,c",d\n"say ""hi""",e\n')

    assert rows == [("a", "b,c", "d"), ('say "hi"', "e")]


def test_split_rows_with_other_delimiter():
    assert split_rows("foo|bar|00|01", "|") == [("foo", "bar", "00", "01")]


def test_blank_lines_are_kept_as_empty_rows():
    assert split_rows("a\n\nb\n") == [("a",), (), ("b",)]


def test_normalize_newlines():
    assert normalize_newlines("a\r\nb\rc\n") == "a\nb\nc\n"


def test_decode_utf8_with_bom():
    text, report = decode_bytes("\ufeffname\nMontréal\n".encode("utf-8"))

    assert text == "name\nMontréal\n"
    assert report["decode_fallback"] is False
    assert report["detected"] is None


def test_decode_non_utf8_uses_detection():
    text, report = decode_bytes("name,city\nPaul,Montréal\n".encode("latin-1"))

    assert text.startswith("name,city\nPaul,Montr")
    assert report["decode_used"] != "utf-8-sig"


def test_file_source_closes_its_handle(tmp_path):
    path = tmp_path / "rows.csv"
    path.write_text("a,b\r\nc,d\r\n")

    with DelimitedSource(path) as source:
        rows = source.rows()
        handle = source._handle
        assert not handle.closed

    assert rows == [("a", "b"), ("c", "d")]
    assert handle.closed


def test_file_source_closes_on_error(tmp_path):
    path = tmp_path / "rows.csv"
    path.write_text("a,b\n")

    with pytest.raises(RuntimeError):
        with DelimitedSource(path) as source:
            handle = source._handle
            raise RuntimeError("boom")
    assert handle.closed


def test_io_source_accepts_text_bytes_and_streams():
    for data in ("a;b", b"a;b", io.StringIO("a;b"), io.BytesIO(b"a;b")):
        with DelimitedSource(data, "io") as source:
            assert source.rows(";") == [("a", "b")]


def test_row_at():
    with DelimitedSource("x\ny", "io") as source:
        assert source.row_at(1) == ("y",)
        assert source.row_at(2) is None


def test_unknown_source_type():
    with pytest.raises(ConfigurationError):
        DelimitedSource("a,b", "url")


def test_file_source_needs_a_path():
    with pytest.raises(ConfigurationError):
        with DelimitedSource(io.StringIO("a,b")):
            pass


def test_io_source_rejects_other_objects():
    with DelimitedSource(42, "io") as source:
        with pytest.raises(ConfigurationError):
            source.rows()
