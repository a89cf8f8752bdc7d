import json

from fastapi.testclient import TestClient
from csv_mapper.main import app

client = TestClient(app)

PEOPLE = b"First Name,,Last Name,Age\nJohn,x,Doe,27\nJane,unnamed_value,Doe,26\n"


def post_import(raw, mapping=None, filename="people.csv"):
    files = {"file": (filename, raw, "text/csv")}
    data = {"mapping": json.dumps(mapping)} if mapping is not None else {}
    return client.post("/import", files=files, data=data)


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_import_positional_fields():
    r = post_import(b"foo|bar|00|01\n", {"delimiter": "|", "fields": [{"name": "first"}, {"name": "second"}]})
    assert r.status_code == 200

    data = r.json()
    assert data["records"] == [{"first": "foo", "second": "bar"}]
    assert data["summary"] == {"records": 1, "fields": ["first", "second"]}


def test_import_read_attributes_with_transform():
    mapping = {
        "read_attributes": True,
        "aliases": {"Age": "years"},
        "fields": [{"name": "years", "transform": "integer"}],
    }
    r = post_import(PEOPLE, mapping)
    assert r.status_code == 200

    records = r.json()["records"]
    assert records[1] == {"first_name": "Jane", "_field_2": "unnamed_value", "last_name": "Doe", "years": 26}


def test_import_named_columns_with_alias():
    mapping = {
        "named_columns": True,
        "fields": [{"name": "surname", "column": "Last Name", "transform": "upper"}],
    }
    r = post_import(PEOPLE, mapping)
    assert r.status_code == 200
    assert [rec["surname"] for rec in r.json()["records"]] == ["DOE", "DOE"]


def test_import_latin1_upload():
    # Include a Latin-1 character to force charset detection
    raw = "name,city\nPaul,Montréal\n".encode("latin-1")

    r = post_import(raw, {"read_attributes": True})
    assert r.status_code == 200
    assert r.json()["records"][0]["city"].startswith("Montr")


def test_rejects_non_csv_upload():
    r = post_import(b"a,b\n", filename="people.txt")
    assert r.status_code == 422


def test_unknown_header_is_unprocessable():
    r = post_import(PEOPLE, {"attributes_by_name": ["doesnt_exist"]})
    assert r.status_code == 422
    assert "doesnt_exist" in r.json()["detail"]


def test_unknown_transform_is_unprocessable():
    r = post_import(PEOPLE, {"fields": [{"name": "a", "transform": "reverse"}]})
    assert r.status_code == 422
    assert "reverse" in r.json()["detail"]


def test_bad_cell_is_unprocessable():
    r = post_import(PEOPLE, {"fields": [{"name": "a", "transform": "integer"}]})
    assert r.status_code == 422


def test_malformed_mapping_is_unprocessable():
    r = post_import(PEOPLE, {"start_row": -1})
    assert r.status_code == 422


def test_private_transform_name_is_unprocessable():
    r = post_import(PEOPLE, {"fields": [{"name": "a", "transform": "__init__"}]})
    assert r.status_code == 422
    assert "__init__" in r.json()["detail"]


def test_colliding_alias_is_unprocessable():
    r = post_import(PEOPLE, {"read_attributes": True, "aliases": {"Age": "first_name"}})
    assert r.status_code == 422
