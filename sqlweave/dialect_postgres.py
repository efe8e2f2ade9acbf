"""The PostgreSQL dialect and its JSONB value type."""

from __future__ import annotations

import dataclasses
import json
from typing import Any, Optional, Sequence

from .dialect import (
    _FLOATS,
    ColumnField,
    CommonDialect,
    Kind,
    _column_type_of,
    _invalid_type,
    _with_additional,
    parse_field_struct,
    register_dialect,
)

_SERIAL_KINDS = frozenset(
    {Kind.INT, Kind.INT8, Kind.INT16, Kind.INT32, Kind.UINT, Kind.UINT8, Kind.UINT16, Kind.UINTPTR}
)
_BIGSERIAL_KINDS = frozenset({Kind.INT64, Kind.UINT32, Kind.UINT64})


class _RawMessage(bytes):
    """Raw, already encoded JSON."""


def is_uuid(value: Any) -> bool:
    """Tell whether a value or type is a 16-byte array named UUID or GUID."""
    column = _column_type_of(value)
    return (
        column.kind is Kind.BYTE_ARRAY
        and column.length == 16
        and column.name.lower() in ("uuid", "guid")
    )


def is_json(value: Any) -> bool:
    """Tell whether a value or type holds raw JSON."""
    column = _column_type_of(value)
    return column.python_type is not None and issubclass(column.python_type, _RawMessage)


@dataclasses.dataclass
class Jsonb:
    """PostgreSQL's JSONB value, kept as raw JSON bytes."""

    raw: _RawMessage = _RawMessage()

    def __post_init__(self) -> None:
        self.raw = _RawMessage(self.raw)

    def value(self) -> Optional[bytes]:
        """Return the raw JSON, or None when empty."""
        if not self.raw:
            return None
        return bytes(self.raw)

    def scan(self, value: Any) -> None:
        """Load raw JSON bytes read from the database."""
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError(f"Failed to unmarshal JSONB value:{value}")
        data = bytes(value)
        try:
            json.loads(data)
        except ValueError as exc:
            raise ValueError(f"invalid JSON: {exc}") from exc
        self.raw = _RawMessage(data)


class PostgresDialect(CommonDialect):
    """Dialect for PostgreSQL databases."""

    def get_name(self) -> str:
        return "postgres"

    def bind_var(self, i: int) -> str:
        return f"${i}"

    def data_type_of(self, field: ColumnField) -> str:
        """Return the PostgreSQL column type for ``field``."""
        column, sql_type, size, additional = parse_field_struct(field, self)

        if not sql_type:
            kind = column.kind
            if kind is Kind.BOOL:
                sql_type = "boolean"
            elif kind in _SERIAL_KINDS:
                if self._field_can_auto_increment(field):
                    field.tag_settings_set("AUTO_INCREMENT", "AUTO_INCREMENT")
                    sql_type = "serial"
                else:
                    sql_type = "integer"
            elif kind in _BIGSERIAL_KINDS:
                if self._field_can_auto_increment(field):
                    field.tag_settings_set("AUTO_INCREMENT", "AUTO_INCREMENT")
                    sql_type = "bigserial"
                else:
                    sql_type = "bigint"
            elif kind in _FLOATS:
                sql_type = "numeric"
            elif kind is Kind.STRING:
                # Without an explicit size, text is used: it performs the same.
                if field.tag_settings_get("SIZE") is None:
                    size = 0
                sql_type = f"varchar({size})" if 0 < size < 65532 else "text"
            elif kind is Kind.TIME:
                sql_type = "timestamp with time zone"
            elif kind is Kind.MAP:
                if column.name == "Hstore":
                    sql_type = "hstore"
            elif kind in (Kind.BYTES, Kind.BYTE_ARRAY):
                sql_type = "bytea"
                if is_uuid(column):
                    sql_type = "uuid"
                if is_json(column):
                    sql_type = "jsonb"

        if not sql_type:
            raise _invalid_type(column, "postgres")
        return _with_additional(sql_type, additional)

    def has_index(self, table_name: str, index_name: str) -> bool:
        return self._count(
            "SELECT count(*) FROM pg_indexes WHERE tablename = $1 AND indexname = $2 "
            "AND schemaname = CURRENT_SCHEMA()",
            table_name,
            index_name,
        ) > 0

    def has_foreign_key(self, table_name: str, foreign_key_name: str) -> bool:
        return self._count(
            "SELECT count(con.conname) FROM pg_constraint con WHERE $1::regclass::oid = con.conrelid "
            "AND con.conname = $2 AND con.contype='f'",
            table_name,
            foreign_key_name,
        ) > 0

    def has_table(self, table_name: str) -> bool:
        return self._count(
            "SELECT count(*) FROM INFORMATION_SCHEMA.tables WHERE table_name = $1 "
            "AND table_type = 'BASE TABLE' AND table_schema = CURRENT_SCHEMA()",
            table_name,
        ) > 0

    def has_column(self, table_name: str, column_name: str) -> bool:
        return self._count(
            "SELECT count(*) FROM INFORMATION_SCHEMA.columns WHERE table_name = $1 "
            "AND column_name = $2 AND table_schema = CURRENT_SCHEMA()",
            table_name,
            column_name,
        ) > 0

    def current_database(self) -> str:
        value = self._scalar("SELECT CURRENT_DATABASE()")
        return "" if value is None else str(value)

    def last_insert_id_output_interstitial(self, table_name: str, key: str, columns: Sequence[str]) -> str:
        return ""

    def last_insert_id_returning_suffix(self, table_name: str, key: str) -> str:
        return f"RETURNING {table_name}.{key}"

    def support_last_insert_id(self) -> bool:
        return False


register_dialect("postgres", PostgresDialect)
register_dialect("cloudsqlpostgres", PostgresDialect)