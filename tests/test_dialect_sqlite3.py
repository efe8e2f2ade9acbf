import sqlite3
from datetime import datetime

import pytest

from sqlweave.dialect import ColumnField, Kind, get_dialect, new_dialect
from sqlweave.dialect_sqlite3 import Sqlite3Dialect


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    connection.execute("CREATE TABLE users (id integer primary key, name text)")
    connection.execute("CREATE INDEX idx_users_name ON users(name)")
    yield connection
    connection.close()


def test_registered():
    assert get_dialect("sqlite3") is Sqlite3Dialect
    dialect = new_dialect("sqlite3", None)
    assert isinstance(dialect, Sqlite3Dialect)
    assert dialect.get_name() == "sqlite3"


def test_inherits_common_behaviour():
    dialect = Sqlite3Dialect()
    assert dialect.quote("users") == '"users"'
    assert dialect.bind_var(2) == "$$$"
    assert dialect.limit_and_offset_sql(3, 4) == " LIMIT 3 OFFSET 4"


@pytest.mark.parametrize(
    "tp, tags, primary, expected",
    [
        (bool, {}, False, "bool"),
        (int, {}, False, "integer"),
        (int, {}, True, "integer primary key autoincrement"),
        (Kind.INT64, {}, False, "bigint"),
        (Kind.UINT64, {}, True, "integer primary key autoincrement"),
        (float, {}, False, "real"),
        (str, {"SIZE": "40"}, False, "varchar(40)"),
        (str, {"SIZE": "70000"}, False, "text"),
        (datetime, {}, False, "datetime"),
        (bytes, {}, False, "blob"),
        (str, {"TYPE": "json"}, False, "json"),
        (str, {"SIZE": "40", "UNIQUE": "UNIQUE"}, False, "varchar(40) UNIQUE"),
    ],
)
def test_data_type_of(tp, tags, primary, expected):
    field = ColumnField(name="F", type=tp, is_primary_key=primary, tag_settings=tags)
    assert Sqlite3Dialect().data_type_of(field) == expected


def test_auto_increment_marks_field():
    field = ColumnField(name="ID", type=int, is_primary_key=True)
    Sqlite3Dialect().data_type_of(field)
    assert field.tag_settings_get("AUTO_INCREMENT") == "AUTO_INCREMENT"


def test_auto_increment_disabled_by_tag():
    field = ColumnField(name="ID", type=int, is_primary_key=True, tag_settings={"AUTO_INCREMENT": "false"})
    assert Sqlite3Dialect().data_type_of(field) == "integer"
    assert field.tag_settings_get("AUTO_INCREMENT") == "false"


def test_data_type_of_invalid():
    with pytest.raises(TypeError):
        Sqlite3Dialect().data_type_of(ColumnField(name="F", type=dict))


def test_has_table(conn):
    dialect = Sqlite3Dialect(conn)
    assert dialect.has_table("users") is True
    assert dialect.has_table("orders") is False


def test_has_column(conn):
    dialect = Sqlite3Dialect(conn)
    assert dialect.has_column("users", "name") is True
    assert dialect.has_column("users", "email") is False


def test_has_index_and_remove(conn):
    dialect = Sqlite3Dialect(conn)
    assert dialect.has_index("users", "idx_users_name") is True
    assert dialect.has_index("users", "idx_users_email") is False
    dialect.remove_index("users", "idx_users_name")
    assert dialect.has_index("users", "idx_users_name") is False


def test_current_database(conn):
    assert Sqlite3Dialect(conn).current_database() == "main"


def test_current_database_without_connection():
    assert Sqlite3Dialect().current_database() == ""