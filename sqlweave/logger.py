"""Formatting and printing of log records, including SQL statements."""

from __future__ import annotations

import re
import sys
from datetime import datetime, timedelta
from typing import Any, List, Optional, Sequence, TextIO

_NUMERIC_PLACEHOLDER = re.compile(r"\$\d+")
_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_ZERO_TIME_TEXT = "0000-00-00 00:00:00"
_LINE_PREFIX = "\r\n"


def is_printable(text: str) -> bool:
    """Tell whether every character of ``text`` is printable."""
    return text.isprintable()


def _format_value(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, datetime):
        if value.replace(tzinfo=None) == datetime.min:
            return f"'{_ZERO_TIME_TEXT}'"
        return f"'{value.strftime(_TIME_FORMAT)}'"
    if isinstance(value, (bytes, bytearray, memoryview)):
        text = bytes(value).decode("utf-8", errors="replace")
        return f"'{text}'" if is_printable(text) else "'<binary>'"
    valuer = getattr(value, "value", None)
    if callable(valuer):
        try:
            inner = valuer()
        except Exception:
            return "NULL"
        return "NULL" if inner is None else f"'{inner}'"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return f"'{value}'"


def _milliseconds(duration: Any) -> float:
    if isinstance(duration, timedelta):
        nanoseconds = (duration.days * 86400 + duration.seconds) * 10**9 + duration.microseconds * 1000
    else:
        nanoseconds = int(duration * 10**9)
    return int(nanoseconds / 10**4) / 100.0


def _interpolate(sql: str, formatted: Sequence[str]) -> str:
    if _NUMERIC_PLACEHOLDER.search(sql):
        for index, value in enumerate(formatted, start=1):
            sql = re.sub(
                rf"\${index}([^\d]|$)",
                lambda match, text=value: text + match.group(1),
                sql,
            )
        return sql

    pieces: List[str] = []
    for index, part in enumerate(sql.split("?")):
        pieces.append(part)
        if index < len(formatted):
            pieces.append(formatted[index])
    return "".join(pieces)


def format_log(*args: Any, now: Optional[datetime] = None) -> List[Any]:
    """Turn a log record into the list of pieces to print.

    A record is ``(level, source, ...)``; for level ``"sql"`` it is
    ``("sql", source, duration, sql, variables, rows_affected)``.
    """
    if len(args) <= 1:
        return []

    level, source = args[0], args[1]
    timestamp = (now or datetime.now()).strftime(_TIME_FORMAT)
    messages: List[Any] = [
        f"\033[35m({source})\033[0m",
        f"\n\033[33m[{timestamp}]\033[0m",
    ]

    if level == "sql":
        duration, sql, variables, rows_affected = args[2], args[3], args[4], args[5]
        messages.append(f" \033[36;1m[{_milliseconds(duration):.2f}ms]\033[0m ")
        formatted = [_format_value(value) for value in variables]
        messages.append(_interpolate(sql, formatted))
        messages.append(f" \n\033[36;31m[{int(rows_affected)} rows affected or returned ]\033[0m ")
    else:
        messages.append("\033[31;1m")
        messages.extend(args[2:])
        messages.append("\033[0m")

    return messages


class Logger:
    """Writes formatted log records to a text stream (standard output by default)."""

    def __init__(self, writer: Optional[TextIO] = None) -> None:
        self.writer = writer

    def print(self, *args: Any) -> None:
        """Format a log record and write it as one line."""
        stream = self.writer if self.writer is not None else sys.stdout
        messages = format_log(*args)
        stream.write(_LINE_PREFIX + " ".join(str(m) for m in messages) + "\n")