"""The Microsoft SQL Server dialect and its JSON value type."""

from __future__ import annotations

import dataclasses
import json
from typing import Any, Optional, Sequence, Tuple

from .dialect import (
    _BIG_INTS,
    _FLOATS,
    _SMALL_INTS,
    ColumnField,
    CommonDialect,
    Kind,
    _invalid_type,
    _parse_int,
    _with_additional,
    parse_field_struct,
    register_dialect,
)

_MAX_SIZED_LENGTH = 8000


def _database_and_table(dialect: "MssqlDialect", table_name: str) -> Tuple[str, str]:
    """Split ``db.table`` names; plain names get the dialect's current database."""
    if "." in table_name:
        database, table = table_name.split(".", 1)
        return database, table
    return dialect.current_database(), table_name


class MssqlDialect(CommonDialect):
    """Dialect for Microsoft SQL Server databases."""

    def get_name(self) -> str:
        return "mssql"

    def bind_var(self, i: int) -> str:
        return "$$$"

    def quote(self, key: str) -> str:
        return f"[{key}]"

    def _field_can_auto_increment(self, field: ColumnField) -> bool:
        value = field.tag_settings_get("AUTO_INCREMENT")
        if value is not None:
            return value != "FALSE"
        return field.is_primary_key

    def data_type_of(self, field: ColumnField) -> str:
        """Return the SQL Server column type for ``field``."""
        column, sql_type, size, additional = parse_field_struct(field, self)

        if not sql_type:
            kind = column.kind
            if kind is Kind.BOOL:
                sql_type = "bit"
            elif kind in _SMALL_INTS:
                if self._field_can_auto_increment(field):
                    field.tag_settings_set("AUTO_INCREMENT", "AUTO_INCREMENT")
                    sql_type = "int IDENTITY(1,1)"
                else:
                    sql_type = "int"
            elif kind in _BIG_INTS:
                if self._field_can_auto_increment(field):
                    field.tag_settings_set("AUTO_INCREMENT", "AUTO_INCREMENT")
                    sql_type = "bigint IDENTITY(1,1)"
                else:
                    sql_type = "bigint"
            elif kind in _FLOATS:
                sql_type = "float"
            elif kind is Kind.STRING:
                sql_type = f"nvarchar({size})" if 0 < size < _MAX_SIZED_LENGTH else "nvarchar(max)"
            elif kind is Kind.TIME:
                sql_type = "datetimeoffset"
            elif kind in (Kind.BYTES, Kind.BYTE_ARRAY):
                sql_type = f"varbinary({size})" if 0 < size < _MAX_SIZED_LENGTH else "varbinary(max)"

        if not sql_type:
            raise _invalid_type(column, "mssql")
        return _with_additional(sql_type, additional)

    def has_index(self, table_name: str, index_name: str) -> bool:
        return self._count(
            "SELECT count(*) FROM sys.indexes WHERE name=? AND object_id=OBJECT_ID(?)",
            index_name,
            table_name,
        ) > 0

    def remove_index(self, table_name: str, index_name: str) -> None:
        self.db.execute(f"DROP INDEX {index_name} ON {self.quote(table_name)}")

    def has_foreign_key(self, table_name: str, foreign_key_name: str) -> bool:
        database, table = _database_and_table(self, table_name)
        return self._count(
            "SELECT count(*) FROM sys.foreign_keys as F inner join sys.tables as T "
            "on F.parent_object_id=T.object_id "
            "inner join information_schema.tables as I on I.TABLE_NAME = T.name "
            "WHERE F.name = ? AND T.Name = ? AND I.TABLE_CATALOG = ?;",
            foreign_key_name,
            table,
            database,
        ) > 0

    def has_table(self, table_name: str) -> bool:
        database, table = _database_and_table(self, table_name)
        return self._count(
            "SELECT count(*) FROM INFORMATION_SCHEMA.tables WHERE table_name = ? AND table_catalog = ?",
            table,
            database,
        ) > 0

    def has_column(self, table_name: str, column_name: str) -> bool:
        database, table = _database_and_table(self, table_name)
        return self._count(
            "SELECT count(*) FROM information_schema.columns WHERE table_catalog = ? "
            "AND table_name = ? AND column_name = ?",
            database,
            table,
            column_name,
        ) > 0

    def modify_column(self, table_name: str, column_name: str, typ: str) -> None:
        self.db.execute(f"ALTER TABLE {table_name} ALTER COLUMN {column_name} {typ}")

    def current_database(self) -> str:
        value = self._scalar("SELECT DB_NAME() AS [Current Database]")
        return "" if value is None else str(value)

    def limit_and_offset_sql(self, limit: Any, offset: Any) -> str:
        """Return OFFSET/FETCH clauses; a limit alone gets a zero offset."""
        sql = ""
        if offset is not None:
            parsed_offset = _parse_int(offset)
            if parsed_offset is not None and parsed_offset >= 0:
                sql += f" OFFSET {parsed_offset} ROWS"
        if limit is not None:
            parsed_limit = _parse_int(limit)
            if parsed_limit is not None and parsed_limit >= 0:
                if not sql:
                    sql += " OFFSET 0 ROWS"
                sql += f" FETCH NEXT {parsed_limit} ROWS ONLY"
        return sql

    def select_from_dummy_table(self) -> str:
        return ""

    def last_insert_id_output_interstitial(
        self, table_name: str, column_name: str, columns: Sequence[str]
    ) -> str:
        if not columns:
            return ""
        return f"OUTPUT Inserted.{column_name}"

    def last_insert_id_returning_suffix(self, table_name: str, column_name: str) -> str:
        return ""

    def default_value_str(self) -> str:
        return "DEFAULT VALUES"

    def normalize_index_and_column(self, index_name: str, column_name: str) -> Tuple[str, str]:
        return index_name, column_name


@dataclasses.dataclass
class JSON:
    """JSON data stored in a character column, kept as raw JSON bytes."""

    raw: bytes = b""

    def __post_init__(self) -> None:
        self.raw = bytes(self.raw)

    def value(self) -> Optional[bytes]:
        """Return the raw JSON, or None when empty."""
        if not self.raw:
            return None
        return self.raw

    def scan(self, value: Any) -> None:
        """Load JSON text read from the database."""
        if not isinstance(value, str):
            raise TypeError(f"Failed to unmarshal JSONB value (strcast):{value}")
        data = value.encode("utf-8")
        try:
            json.loads(data)
        except ValueError as exc:
            raise ValueError(f"invalid JSON: {exc}") from exc
        self.raw = data


register_dialect("mssql", MssqlDialect)