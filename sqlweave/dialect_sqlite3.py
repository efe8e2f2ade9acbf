"""The SQLite dialect."""

from __future__ import annotations

from typing import Any

from .dialect import (
    ColumnField,
    CommonDialect,
    Kind,
    _BIG_INTS,
    _FLOATS,
    _SMALL_INTS,
    _invalid_type,
    _with_additional,
    parse_field_struct,
    register_dialect,
)


class Sqlite3Dialect(CommonDialect):
    """Dialect for SQLite databases."""

    def get_name(self) -> str:
        return "sqlite3"

    def data_type_of(self, field: ColumnField) -> str:
        """Return the SQLite column type for ``field``."""
        column, sql_type, size, additional = parse_field_struct(field, self)

        if not sql_type:
            kind = column.kind
            if kind is Kind.BOOL:
                sql_type = "bool"
            elif kind in _SMALL_INTS:
                if self._field_can_auto_increment(field):
                    field.tag_settings_set("AUTO_INCREMENT", "AUTO_INCREMENT")
                    sql_type = "integer primary key autoincrement"
                else:
                    sql_type = "integer"
            elif kind in _BIG_INTS:
                if self._field_can_auto_increment(field):
                    field.tag_settings_set("AUTO_INCREMENT", "AUTO_INCREMENT")
                    sql_type = "integer primary key autoincrement"
                else:
                    sql_type = "bigint"
            elif kind in _FLOATS:
                sql_type = "real"
            elif kind is Kind.STRING:
                sql_type = f"varchar({size})" if 0 < size < 65532 else "text"
            elif kind is Kind.TIME:
                sql_type = "datetime"
            elif kind in (Kind.BYTES, Kind.BYTE_ARRAY):
                sql_type = "blob"

        if not sql_type:
            raise _invalid_type(column, "sqlite3")
        return _with_additional(sql_type, additional)

    def has_index(self, table_name: str, index_name: str) -> bool:
        return self._count(
            f"SELECT count(*) FROM sqlite_master WHERE tbl_name = ? AND sql LIKE '%INDEX {index_name} ON%'",
            table_name,
        ) > 0

    def has_table(self, table_name: str) -> bool:
        return self._count("SELECT count(*) FROM sqlite_master WHERE type='table' AND name=?", table_name) > 0

    def has_column(self, table_name: str, column_name: str) -> bool:
        return self._count(
            "SELECT count(*) FROM sqlite_master WHERE tbl_name = ? AND "
            f"(sql LIKE '%\"{column_name}\" %' OR sql LIKE '%{column_name} %')",
            table_name,
        ) > 0

    def current_database(self) -> str:
        try:
            row: Any = self.db.execute("PRAGMA database_list").fetchone()
        except Exception:
            return ""
        if row is None or len(row) != 3 or row[1] is None:
            return ""
        return str(row[1])


register_dialect("sqlite3", Sqlite3Dialect)