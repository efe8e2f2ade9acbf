"""SQL dialects, ordered callback registries, error aggregation and query log formatting."""

__version__ = "0.1.0"
__all__ = [
    "callbacks",
    "dialect",
    "dialect_mssql",
    "dialect_mysql",
    "dialect_postgres",
    "dialect_sqlite3",
    "errors",
    "logger",
]