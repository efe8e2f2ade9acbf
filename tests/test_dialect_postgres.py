import uuid
from datetime import datetime

import pytest

from sqlweave.dialect import ColumnField, Kind, get_dialect
from sqlweave.dialect_postgres import Jsonb, PostgresDialect, is_json, is_uuid


class _Cursor:
    def __init__(self, row):
        self._row = row

    def fetchone(self):
        return self._row


class FakeDB:
    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def execute(self, query, parameters=()):
        self.calls.append((query, tuple(parameters)))
        for prefix, row in self.responses.items():
            if query.startswith(prefix):
                return _Cursor(row)
        return _Cursor(None)


class Hstore(dict):
    pass


@pytest.fixture
def dialect():
    return PostgresDialect(FakeDB())


def test_registered():
    assert get_dialect("postgres") is PostgresDialect
    assert get_dialect("cloudsqlpostgres") is PostgresDialect


def test_name_and_bind_var(dialect):
    assert dialect.get_name() == "postgres"
    assert dialect.bind_var(3) == "$3"


def test_integers(dialect):
    field = ColumnField("id", int, is_primary_key=True)
    assert dialect.data_type_of(field) == "serial"
    assert field.tag_settings_get("AUTO_INCREMENT") == "AUTO_INCREMENT"
    assert dialect.data_type_of(ColumnField("n", int)) == "integer"
    assert dialect.data_type_of(ColumnField("n", Kind.UINT32)) == "bigint"
    assert dialect.data_type_of(ColumnField("n", Kind.INT64, is_primary_key=True)) == "bigserial"


def test_scalars(dialect):
    assert dialect.data_type_of(ColumnField("b", bool)) == "boolean"
    assert dialect.data_type_of(ColumnField("f", float)) == "numeric"
    assert dialect.data_type_of(ColumnField("t", datetime)) == "timestamp with time zone"


def test_strings(dialect):
    assert dialect.data_type_of(ColumnField("s", str)) == "text"
    assert dialect.data_type_of(ColumnField("s", str, tag_settings={"SIZE": "100"})) == f"varchar({100})"


def test_hstore_and_invalid_map(dialect):
    assert dialect.data_type_of(ColumnField("h", Hstore)) == "hstore"
    with pytest.raises(TypeError, match="for postgres"):
        dialect.data_type_of(ColumnField("m", dict))


def test_additional_type(dialect):
    field = ColumnField("s", str, tag_settings={"NOT NULL": "NOT NULL"})
    assert dialect.data_type_of(field) == "text NOT NULL"


def test_is_uuid_and_is_json():
    assert is_uuid(uuid.UUID) is True
    assert is_uuid(bytes) is False
    assert is_json(Jsonb().raw) is True
    assert is_json(b"{}") is False


def test_jsonb_value_and_scan():
    assert Jsonb().value() is None
    assert Jsonb(b'{"a":1}').value() == b'{"a":1}'
    stored = Jsonb()
    stored.scan(b'{"a": 1}')
    assert stored.value() == b'{"a": 1}'


def test_jsonb_scan_errors():
    with pytest.raises(TypeError, match="Failed to unmarshal JSONB value:"):
        Jsonb().scan("text")
    with pytest.raises(ValueError):
        Jsonb().scan(b"{bad")


def test_last_insert_id(dialect):
    assert dialect.last_insert_id_returning_suffix("users", "id") == "RETURNING users.id"
    assert dialect.last_insert_id_output_interstitial("users", "id", ["name"]) == ""
    assert dialect.support_last_insert_id() is False


def test_lookups():
    db = FakeDB({"SELECT count(*)": (1,), "SELECT count(con.conname)": (1,)})
    dialect = PostgresDialect(db)
    assert dialect.has_table("users") is True
    assert db.calls[-1][1] == ("users",)
    assert dialect.has_column("users", "name") is True
    assert db.calls[-1][1] == ("users", "name")
    assert dialect.has_index("users", "idx") is True
    assert dialect.has_foreign_key("users", "fk") is True
    empty = PostgresDialect(FakeDB({"SELECT count(*)": (0,)}))
    assert empty.has_table("users") is False
    assert empty.has_foreign_key("users", "fk") is False


def test_current_database():
    assert PostgresDialect(FakeDB({"SELECT CURRENT_DATABASE()": ("mydb",)})).current_database() == "mydb"
    assert PostgresDialect(FakeDB()).current_database() == ""