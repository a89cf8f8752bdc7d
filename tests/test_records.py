import pickle

import pytest

from csv_mapper.errors import AttributeAccessError
from csv_mapper.mapping import ResolvedBinding
from csv_mapper.records import Record, RecordFactory
from csv_mapper.rules import RESERVED_FIELD_NAMES


def test_record_reads_as_attributes_and_items():
    record = Record({"first": "foo", "second": "bar"})

    assert record.first == "foo"
    assert record["second"] == "bar"
    assert record.get("third", "-") == "-"
    assert list(record) == ["first", "second"]
    assert len(record) == 2
    assert "first" in record


def test_undeclared_field_raises():
    record = Record({"first": "foo"})

    with pytest.raises(AttributeAccessError):
        record.second
    with pytest.raises(AttributeAccessError):
        record["second"]
    assert not hasattr(record, "second")


def test_record_is_read_only():
    record = Record({"first": "foo"})

    with pytest.raises(AttributeError):
        record.first = "changed"
    with pytest.raises(AttributeError):
        del record.first
    with pytest.raises(TypeError):
        record._values["first"] = "changed"
    assert record.first == "foo"


def test_record_does_not_share_input_dict():
    values = {"first": "foo"}
    record = Record(values)
    values["first"] = "changed"

    assert record.first == "foo"


def test_record_equality_follows_field_order():
    assert Record({"a": "1", "b": "2"}) == Record({"a": "1", "b": "2"})
    assert Record({"a": "1", "b": "2"}) != Record({"b": "2", "a": "1"})


def test_record_pickles():
    record = Record({"first": "foo", "age": 26})

    assert pickle.loads(pickle.dumps(record)) == record


def test_factory_applies_transforms():
    factory = RecordFactory(
        [
            ResolvedBinding("name", 0),
            ResolvedBinding("age", 2, lambda row, index: int(row[index])),
        ]
    )

    record = factory.build(["Jane", "Doe", "26"])

    assert record.to_dict() == {"name": "Jane", "age": 26}
    assert factory.field_names == ["name", "age"]
    assert factory.width == 3


def test_factory_passes_the_whole_row_to_transforms():
    factory = RecordFactory(
        [ResolvedBinding("full_name", 0, lambda row, index: f"{row[index]} {row[index + 1]}")]
    )

    assert factory.build(["Jane", "Doe"]).full_name == "Jane Doe"


def test_empty_factory():
    factory = RecordFactory([])

    assert factory.width == 0
    assert factory.build(["a"]).to_dict() == {}


def test_reserved_field_names_cover_record_methods():
    public = {name for name in vars(Record) if not name.startswith("__")}

    assert public <= RESERVED_FIELD_NAMES
