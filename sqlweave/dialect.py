"""SQL dialect support: field type resolution, the dialect registry and the common dialect."""

from __future__ import annotations

import dataclasses
import re
import types
import typing
import uuid
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Protocol, Sequence, Tuple, Type

_KEY_NAME_PATTERN = re.compile(r"[^a-zA-Z0-9]+")
_DECIMAL_PATTERN = re.compile(r"[+-]?\d+")
_LEGACY_OCTAL_PATTERN = re.compile(r"[+-]?0[0-7_]+")
_OPTIONAL_PATTERN = re.compile(r"(?:typing\.)?Optional\[(.+)\]")
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1
_DEFAULT_SIZE = 255

_NAMED_TYPES: Dict[str, type] = {
    "bool": bool,
    "int": int,
    "float": float,
    "str": str,
    "bytes": bytes,
    "bytearray": bytearray,
    "memoryview": memoryview,
    "datetime": datetime,
    "datetime.datetime": datetime,
    "UUID": uuid.UUID,
    "uuid.UUID": uuid.UUID,
    "dict": dict,
}


class SQLCommon(Protocol):
    """The minimal connection behaviour the dialects need (a DB-API style ``execute``)."""

    def execute(self, query: str, parameters: Sequence[Any] = ...) -> Any:
        ...


class Kind(Enum):
    """The storage kind of a column's value, independent of any dialect."""

    BOOL = "bool"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    UINTPTR = "uintptr"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    BYTES = "bytes"
    BYTE_ARRAY = "byte_array"
    TIME = "time"
    MAP = "map"
    STRUCT = "struct"
    OTHER = "other"


@dataclasses.dataclass(frozen=True)
class ColumnType:
    """A resolved column value type: its kind, name and Python type if any."""

    kind: Kind
    name: str
    python_type: Optional[type] = None
    length: Optional[int] = None


class FieldSpec(NamedTuple):
    """What a dialect needs to know to pick a column's SQL type."""

    column_type: ColumnType
    sql_type: str
    size: int
    additional_type: str


@dataclasses.dataclass
class ColumnField:
    """A model field as seen by the dialects: its name, value type and tag settings."""

    name: str
    type: Any = str
    db_name: str = ""
    is_primary_key: bool = False
    tag_settings: Dict[str, str] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        self.tag_settings = {key.upper(): value for key, value in self.tag_settings.items()}
        if not self.db_name:
            self.db_name = self.name

    def tag_settings_get(self, key: str) -> Optional[str]:
        """Return the tag setting for ``key``, or None when it is not set."""
        return self.tag_settings.get(key.upper())

    def tag_settings_set(self, key: str, value: str) -> None:
        """Set the tag setting ``key`` to ``value``."""
        self.tag_settings[key.upper()] = value

    def tag_settings_delete(self, key: str) -> None:
        """Remove the tag setting ``key`` if it is present."""
        self.tag_settings.pop(key.upper(), None)


def _unwrap_optional(tp: Any) -> Any:
    while True:
        origin = typing.get_origin(tp)
        if origin is typing.Union or origin is types.UnionType:
            args = [arg for arg in typing.get_args(tp) if arg is not type(None)]
            if len(args) == 1:
                tp = args[0]
                continue
        return tp


def _resolve_annotation(annotation: Any) -> Any:
    """Resolve a string annotation naming a simple type; other values pass through."""
    if not isinstance(annotation, str):
        return annotation
    text = annotation.strip()
    match = _OPTIONAL_PATTERN.fullmatch(text)
    if match:
        text = match.group(1).strip()
    parts = [part.strip() for part in text.split("|")]
    parts = [part for part in parts if part != "None"]
    if len(parts) == 1:
        text = parts[0]
    return _NAMED_TYPES.get(text, object)


def _column_type_of(tp: Any) -> ColumnType:
    if isinstance(tp, ColumnType):
        return tp
    if isinstance(tp, Kind):
        return ColumnType(kind=tp, name=tp.value)
    tp = _unwrap_optional(tp)
    if not isinstance(tp, type):
        tp = type(tp)
    name = tp.__name__
    if issubclass(tp, bool):
        kind = Kind.BOOL
    elif issubclass(tp, int):
        kind = Kind.INT
    elif issubclass(tp, float):
        kind = Kind.FLOAT64
    elif issubclass(tp, str):
        kind = Kind.STRING
    elif issubclass(tp, (bytes, bytearray, memoryview)):
        kind = Kind.BYTES
    elif issubclass(tp, datetime):
        kind = Kind.TIME
    elif issubclass(tp, uuid.UUID):
        return ColumnType(kind=Kind.BYTE_ARRAY, name=name, python_type=tp, length=16)
    elif issubclass(tp, Mapping):
        kind = Kind.MAP
    elif dataclasses.is_dataclass(tp):
        kind = Kind.STRUCT
    else:
        kind = Kind.OTHER
    return ColumnType(kind=kind, name=name, python_type=tp)


def _scanner_underlying(column: ColumnType) -> ColumnType:
    """Follow scanner wrappers (dataclasses with a ``scan`` method) to their first field."""
    tp = column.python_type
    while tp is not None and dataclasses.is_dataclass(tp) and callable(getattr(tp, "scan", None)):
        fields = dataclasses.fields(tp)
        if not fields:
            break
        column = _column_type_of(_resolve_annotation(fields[0].type))
        tp = column.python_type
    return column


def _atoi(text: str) -> int:
    return int(text) if _DECIMAL_PATTERN.fullmatch(text) else 0


def _parse_int(value: Any) -> Optional[int]:
    """Parse ``value`` as an integer literal with base prefixes, or return None."""
    text = str(value)
    if not text or text != text.strip():
        return None
    try:
        number = int(text, 0)
    except ValueError:
        if not _LEGACY_OCTAL_PATTERN.fullmatch(text):
            return None
        number = int(text, 8)
    if not _INT64_MIN <= number <= _INT64_MAX:
        return None
    return number


def _with_additional(sql_type: str, additional_type: str) -> str:
    if not additional_type.strip():
        return sql_type
    return f"{sql_type} {additional_type}"


def _invalid_type(column: ColumnType, label: str) -> TypeError:
    return TypeError(f"invalid sql type {column.name} ({column.kind.value}) for {label}")


def parse_field_struct(field: ColumnField, dialect: Any) -> FieldSpec:
    """Resolve a field's value type, explicit SQL type, size and extra column options."""
    data_type = field.tag_settings_get("TYPE") or ""
    column = _column_type_of(field.type)

    custom = getattr(column.python_type, "gorm_data_type", None) if column.python_type else None
    if callable(custom):
        data_type = custom(dialect)

    if not data_type:
        column = _scanner_underlying(column)

    size_text = field.tag_settings_get("SIZE")
    size = _atoi(size_text) if size_text is not None else _DEFAULT_SIZE

    not_null = field.tag_settings_get("NOT NULL") or ""
    unique = field.tag_settings_get("UNIQUE") or ""
    additional = f"{not_null} {unique}"
    default = field.tag_settings_get("DEFAULT")
    if default is not None:
        additional += " DEFAULT " + default
    comment = field.tag_settings_get("COMMENT")
    if comment is not None:
        additional += " COMMENT " + comment

    return FieldSpec(column, data_type, size, additional.strip())


def current_database_and_table(dialect: Any, table_name: str) -> Tuple[str, str]:
    """Split ``db.table`` names; plain names get the dialect's current database."""
    if "." in table_name:
        database, table = table_name.split(".", 1)
        return database, table
    return dialect.current_database(), "ATF_" + table_name


def is_byte_array_or_slice(value: Any) -> bool:
    """Tell whether a value or type is a byte string or a fixed-length byte array."""
    return _column_type_of(value).kind in (Kind.BYTES, Kind.BYTE_ARRAY)


def build_key_name(kind: str, table_name: str, *args: str) -> str:
    """Build a foreign key or index name from a kind, a table and field names."""
    key_name = f"{kind}_{table_name}_{'_'.join(args)}"
    return _KEY_NAME_PATTERN.sub("_", key_name)


_SMALL_INTS = frozenset(
    {Kind.INT, Kind.INT8, Kind.INT16, Kind.INT32, Kind.UINT, Kind.UINT8, Kind.UINT16, Kind.UINT32, Kind.UINTPTR}
)
_BIG_INTS = frozenset({Kind.INT64, Kind.UINT64})
_FLOATS = frozenset({Kind.FLOAT32, Kind.FLOAT64})


class CommonDialect:
    """A dialect using standard SQL and INFORMATION_SCHEMA lookups."""

    def __init__(self, db: Optional[SQLCommon] = None) -> None:
        self.db = db

    def get_name(self) -> str:
        return "common"

    def set_db(self, db: SQLCommon) -> None:
        self.db = db

    def bind_var(self, i: int) -> str:
        return "$$$"

    def quote(self, key: str) -> str:
        return f'"{key}"'

    def _field_can_auto_increment(self, field: ColumnField) -> bool:
        value = field.tag_settings_get("AUTO_INCREMENT")
        if value is not None:
            return value.lower() != "false"
        return field.is_primary_key

    def data_type_of(self, field: ColumnField) -> str:
        """Return the SQL column type for ``field``."""
        column, sql_type, size, additional = parse_field_struct(field, self)

        if not sql_type:
            kind = column.kind
            if kind is Kind.BOOL:
                sql_type = "BOOLEAN"
            elif kind in _SMALL_INTS:
                sql_type = "INTEGER AUTO_INCREMENT" if self._field_can_auto_increment(field) else "INTEGER"
            elif kind in _BIG_INTS:
                sql_type = "BIGINT AUTO_INCREMENT" if self._field_can_auto_increment(field) else "BIGINT"
            elif kind in _FLOATS:
                sql_type = "FLOAT"
            elif kind is Kind.STRING:
                sql_type = f"VARCHAR({size})" if 0 < size < 65532 else "VARCHAR(65532)"
            elif kind is Kind.TIME:
                sql_type = "TIMESTAMP"
            elif kind is Kind.BYTES:
                sql_type = f"BINARY({size})" if 0 < size < 65532 else "BINARY(65532)"

        if not sql_type:
            raise _invalid_type(column, "commonDialect")
        return _with_additional(sql_type, additional)

    def _scalar(self, query: str, *args: Any) -> Any:
        try:
            row = self.db.execute(query, args).fetchone()
        except Exception:
            # A failed lookup reads as "nothing found".
            return None
        return None if row is None else row[0]

    def _count(self, query: str, *args: Any) -> int:
        value = self._scalar(query, *args)
        try:
            return int(value) if value is not None else 0
        except (TypeError, ValueError):
            return 0

    def has_index(self, table_name: str, index_name: str) -> bool:
        database, table = current_database_and_table(self, table_name)
        return self._count(
            "SELECT count(*) FROM INFORMATION_SCHEMA.STATISTICS WHERE table_schema = ? AND table_name = ? AND index_name = ?",
            database,
            table,
            index_name,
        ) > 0

    def remove_index(self, table_name: str, index_name: str) -> None:
        self.db.execute(f"DROP INDEX {index_name}")

    def has_foreign_key(self, table_name: str, foreign_key_name: str) -> bool:
        return False

    def has_table(self, table_name: str) -> bool:
        database, table = current_database_and_table(self, table_name)
        return self._count(
            "SELECT count(*) FROM INFORMATION_SCHEMA.TABLES WHERE table_schema = ? AND table_name = ?",
            database,
            table,
        ) > 0

    def has_column(self, table_name: str, column_name: str) -> bool:
        database, table = current_database_and_table(self, table_name)
        return self._count(
            "SELECT count(*) FROM INFORMATION_SCHEMA.COLUMNS WHERE table_schema = ? AND table_name = ? AND column_name = ?",
            database,
            table,
            column_name,
        ) > 0

    def modify_column(self, table_name: str, column_name: str, typ: str) -> None:
        self.db.execute(f"ALTER TABLE {table_name} ALTER COLUMN {column_name} TYPE {typ}")

    def current_database(self) -> str:
        value = self._scalar("SELECT DATABASE()")
        return "" if value is None else str(value)

    def limit_and_offset_sql(self, limit: Any, offset: Any) -> str:
        sql = ""
        if limit is not None:
            parsed = _parse_int(limit)
            if parsed is not None and parsed >= 0:
                sql += f" LIMIT {parsed}"
        if offset is not None:
            parsed = _parse_int(offset)
            if parsed is not None and parsed >= 0:
                sql += f" OFFSET {parsed}"
        return sql

    def select_from_dummy_table(self) -> str:
        return ""

    def last_insert_id_output_interstitial(self, table_name: str, column_name: str, columns: Sequence[str]) -> str:
        return ""

    def last_insert_id_returning_suffix(self, table_name: str, column_name: str) -> str:
        return ""

    def default_value_str(self) -> str:
        return "DEFAULT VALUES"

    def build_key_name(self, kind: str, table_name: str, *args: str) -> str:
        return build_key_name(kind, table_name, *args)

    def normalize_index_and_column(self, index_name: str, column_name: str) -> Tuple[str, str]:
        return index_name, column_name


_DIALECTS: Dict[str, Type[CommonDialect]] = {}


def register_dialect(name: str, dialect_class: type) -> None:
    """Register a dialect class under ``name``."""
    _DIALECTS[name] = dialect_class


def get_dialect(name: str) -> Optional[type]:
    """Return the dialect class registered under ``name``, or None."""
    return _DIALECTS.get(name)


def new_dialect(name: str, db: Optional[SQLCommon]) -> Any:
    """Create a dialect bound to ``db``; unknown names fall back to the common dialect."""
    dialect_class = _DIALECTS.get(name)
    if dialect_class is not None:
        dialect = dialect_class()
        dialect.set_db(db)
        return dialect
    print(f"`{name}` is not officially supported, running under compatibility mode.")
    return CommonDialect(db)


register_dialect("common", CommonDialect)