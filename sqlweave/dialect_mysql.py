"""The MySQL dialect."""

from __future__ import annotations

import hashlib
import re
from typing import Any, Tuple

from .dialect import (
    _FLOATS,
    _KEY_NAME_PATTERN,
    ColumnField,
    CommonDialect,
    Kind,
    _parse_int,
    _with_additional,
    build_key_name,
    current_database_and_table,
    parse_field_struct,
    register_dialect,
)

_INDEX_PREFIX_PATTERN = re.compile(r"^(.+)\((\d+)\)$")
_MAX_KEY_NAME_LENGTH = 64
_KEY_PREFIX_LENGTH = 24

_INT_TYPES = {
    Kind.INT8: "tinyint",
    Kind.INT: "int",
    Kind.INT16: "int",
    Kind.INT32: "int",
    Kind.UINT8: "tinyint unsigned",
    Kind.UINT: "int unsigned",
    Kind.UINT16: "int unsigned",
    Kind.UINT32: "int unsigned",
    Kind.UINTPTR: "int unsigned",
    Kind.INT64: "bigint",
    Kind.UINT64: "bigint unsigned",
}


class MysqlDialect(CommonDialect):
    """Dialect for MySQL databases."""

    def get_name(self) -> str:
        return "mysql"

    def quote(self, key: str) -> str:
        return f"`{key}`"

    def data_type_of(self, field: ColumnField) -> str:
        """Return the MySQL column type for ``field``."""
        column, sql_type, size, additional = parse_field_struct(field, self)

        # Only one auto increment column is allowed per table, and it must be a key.
        if field.tag_settings_get("AUTO_INCREMENT") is not None:
            if field.tag_settings_get("INDEX") is None and not field.is_primary_key:
                field.tag_settings_delete("AUTO_INCREMENT")

        if not sql_type:
            kind = column.kind
            if kind is Kind.BOOL:
                sql_type = "boolean"
            elif kind in _INT_TYPES:
                sql_type = _INT_TYPES[kind]
                if self._field_can_auto_increment(field):
                    field.tag_settings_set("AUTO_INCREMENT", "AUTO_INCREMENT")
                    sql_type += " AUTO_INCREMENT"
            elif kind in _FLOATS:
                sql_type = "double"
            elif kind is Kind.STRING:
                sql_type = f"varchar({size})" if 0 < size < 65532 else "longtext"
            elif kind is Kind.TIME:
                precision_value = field.tag_settings_get("PRECISION")
                precision = f"({precision_value})" if precision_value is not None else ""
                if field.tag_settings_get("NOT NULL") is not None or field.is_primary_key:
                    sql_type = f"DATETIME{precision}"
                else:
                    sql_type = f"DATETIME{precision} NULL"
            elif kind in (Kind.BYTES, Kind.BYTE_ARRAY):
                sql_type = f"varbinary({size})" if 0 < size < 65532 else "longblob"

        if not sql_type:
            raise TypeError(
                f"invalid sql type {column.name} ({column.kind.value}) in field {field.name} for mysql"
            )
        return _with_additional(sql_type, additional)

    def remove_index(self, table_name: str, index_name: str) -> None:
        self.db.execute(f"DROP INDEX {index_name} ON {self.quote(table_name)}")

    def modify_column(self, table_name: str, column_name: str, typ: str) -> None:
        self.db.execute(f"ALTER TABLE {table_name} MODIFY COLUMN {column_name} {typ}")

    def limit_and_offset_sql(self, limit: Any, offset: Any) -> str:
        """Return LIMIT/OFFSET clauses; an offset is only used together with a limit."""
        sql = ""
        if limit is not None:
            parsed_limit = _parse_int(limit)
            if parsed_limit is not None and parsed_limit >= 0:
                sql += f" LIMIT {parsed_limit}"
                if offset is not None:
                    parsed_offset = _parse_int(offset)
                    if parsed_offset is not None and parsed_offset >= 0:
                        sql += f" OFFSET {parsed_offset}"
        return sql

    def has_foreign_key(self, table_name: str, foreign_key_name: str) -> bool:
        database, table = current_database_and_table(self, table_name)
        return self._count(
            "SELECT count(*) FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS WHERE CONSTRAINT_SCHEMA=? "
            "AND TABLE_NAME=? AND CONSTRAINT_NAME=? AND CONSTRAINT_TYPE='FOREIGN KEY'",
            database,
            table,
            foreign_key_name,
        ) > 0

    def has_table(self, table_name: str) -> bool:
        """Tell whether the table exists; lookup failures are raised."""
        database, table = current_database_and_table(self, table_name)
        row = self.db.execute(
            f"SHOW TABLES FROM `{database}` WHERE `Tables_in_{database}` = ?", (table,)
        ).fetchone()
        return row is not None

    def has_index(self, table_name: str, index_name: str) -> bool:
        """Tell whether the index exists; lookup failures are raised."""
        database, table = current_database_and_table(self, table_name)
        row = self.db.execute(
            f"SHOW INDEXES FROM `{table}` FROM `{database}` WHERE Key_name = ?", (index_name,)
        ).fetchone()
        return row is not None

    def has_column(self, table_name: str, column_name: str) -> bool:
        """Tell whether the column exists; lookup failures are raised."""
        database, table = current_database_and_table(self, table_name)
        row = self.db.execute(
            f"SHOW COLUMNS FROM `{table}` FROM `{database}` WHERE Field = ?", (column_name,)
        ).fetchone()
        return row is not None

    def current_database(self) -> str:
        value = self._scalar("SELECT DATABASE()")
        return "" if value is None else str(value)

    def select_from_dummy_table(self) -> str:
        return "FROM DUAL"

    def build_key_name(self, kind: str, table_name: str, *args: str) -> str:
        """Build a key name, hashing names longer than MySQL allows."""
        key_name = build_key_name(kind, table_name, *args)
        if len(key_name) <= _MAX_KEY_NAME_LENGTH:
            return key_name
        digest = hashlib.sha1(key_name.encode("utf-8")).hexdigest()
        destination = _KEY_NAME_PATTERN.sub("_", args[0])[:_KEY_PREFIX_LENGTH]
        return f"{destination}{digest}"

    def normalize_index_and_column(self, index_name: str, column_name: str) -> Tuple[str, str]:
        """Move an index prefix length such as ``idx(10)`` onto the column."""
        match = _INDEX_PREFIX_PATTERN.match(index_name)
        if match is None:
            return index_name, column_name
        return match.group(1), f"{column_name}({match.group(2)})"

    def default_value_str(self) -> str:
        return "VALUES()"


register_dialect("mysql", MysqlDialect)