# sqlweave

Building blocks for an object-relational mapper: SQL dialect descriptions,
an ordered callback registry, error aggregation and a query log formatter.

## Installation

    pip install .

For running the tests:

    pip install ".[test]"
    pytest

## Dialects

Each dialect knows how its database quotes identifiers, writes bind
variables, maps field types to column types and writes `LIMIT`/`OFFSET`
clauses. A dialect class registers itself under its name when its module
is imported; `new_dialect` creates one bound to a connection and falls
back to `CommonDialect` (printing a notice) for names it does not know.

```python
import sqlite3

import sqlweave.dialect_sqlite3  # registers "sqlite3"
from sqlweave.dialect import ColumnField, new_dialect

connection = sqlite3.connect(":memory:")
dialect = new_dialect("sqlite3", connection)
dialect.quote("users")                          # '"users"'
dialect.limit_and_offset_sql(10, 20)            # ' LIMIT 10 OFFSET 20'
dialect.data_type_of(ColumnField("name", str))  # 'varchar(255)'
dialect.has_table("users")                      # False
```

| Module | Class | Registered names |
| --- | --- | --- |
| `sqlweave.dialect` | `CommonDialect` | `common` |
| `sqlweave.dialect_sqlite3` | `Sqlite3Dialect` | `sqlite3` |
| `sqlweave.dialect_mysql` | `MysqlDialect` | `mysql` |
| `sqlweave.dialect_postgres` | `PostgresDialect` | `postgres`, `cloudsqlpostgres` |
| `sqlweave.dialect_mssql` | `MssqlDialect` | `mssql` |

`register_dialect(name, dialect_class)` adds a class of your own and
`get_dialect(name)` returns the registered class or `None`.

A field handed to `data_type_of` is a `ColumnField`: a name, a Python
value type (`bool`, `int`, `float`, `str`, `bytes`, `datetime`,
`uuid.UUID`, a mapping, ...), whether it is a primary key, and tag
settings such as `SIZE`, `TYPE`, `NOT NULL`, `UNIQUE`, `DEFAULT`,
`COMMENT`, `AUTO_INCREMENT` and `PRECISION`. Keys are case-insensitive.
A type the dialect cannot map raises `TypeError`. `parse_field_struct`
exposes the shared part of this resolution.

The schema lookups (`has_table`, `has_column`, `has_index`,
`has_foreign_key`, `current_database`) only need a connection with a
DB-API style `execute(query, parameters)` returning a cursor with
`fetchone()`. For most dialects a failed lookup reads as "not found";
the `MysqlDialect` lookups let the error propagate. `remove_index` and
`modify_column` execute their statement directly.

Other helpers: `build_key_name` (MySQL hashes names longer than 64
characters), `normalize_index_and_column` (MySQL moves an `idx(10)`
prefix length onto the column), `current_database_and_table` and
`is_byte_array_or_slice`. `sqlweave.dialect_postgres` also offers
`is_uuid`, `is_json` and the `Jsonb` value type; `sqlweave.dialect_mssql`
offers the `JSON` value type. Both hold raw JSON bytes, return `None`
from `value()` when empty, and validate input in `scan()`.

## Callbacks

`Callback` holds named callbacks for create, update, delete, query and row
query operations. Their order follows `before` and `after` constraints and
the sorted handlers are kept in `creates`, `updates`, `deletes`, `queries`
and `row_queries`:

```python
from sqlweave.callbacks import Callback

callbacks = Callback(logger=None)
callbacks.create().register("create", do_create)
callbacks.create().before("create").register("validate", do_validate)
callbacks.create().replace("create", do_create_v2)
callbacks.create().remove("validate")
callbacks.create().get("create")       # do_create_v2
callbacks.creates                      # [do_create_v2]
```

A row query callback registered without an order is placed before
`gorm:row_query`. When a logger is given, registrations and duplicate
names are reported through its `print` method. `clone(logger)` returns
an independent copy; `sort_processors` is the ordering routine itself.

## Errors

`sqlweave.errors` defines `RecordNotFoundError`, `InvalidSQLError`,
`InvalidTransactionError`, `CantStartTransactionError` and
`UnaddressableError`. `Errors` gathers several exceptions into one:
`add()` returns a new collection, skipping `None` and duplicates and
flattening nested collections, and `str()` joins the messages with
`"; "`. `is_record_not_found_error` tells whether a `RecordNotFoundError`
is the error or is among them.

## Logging

`format_log(*args, now=None)` turns a log record into the pieces to
print. A record `("sql", source, duration, sql, variables, rows_affected)`
has its bound values inlined into the query text, for both `?` and `$n`
placeholders; other records are printed as given. `Logger(writer)`
writes each formatted record as one line to a text stream, standard
output by default.

## What this package does not do

It has no query builder, no model mapping, no database connection
management and no built-in create, update, delete or query callbacks:
`Callback` starts empty, and running callbacks against records is left
to the code that uses it. There is no command-line program.