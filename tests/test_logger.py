import io
from datetime import datetime, timedelta

from sqlweave.logger import Logger, format_log, is_printable

NOW = datetime(2020, 1, 2, 3, 4, 5)


class NullValuer:
    def value(self):
        return None


class FailingValuer:
    def value(self):
        raise RuntimeError("boom")


def sql_record(sql, variables, rows=1, duration=timedelta(milliseconds=1)):
    return format_log("sql", "source.py:1", duration, sql, variables, rows, now=NOW)


def test_is_printable():
    assert is_printable("hello world")
    assert not is_printable("a\x00b")
    assert is_printable("")


def test_single_value_gives_nothing():
    assert format_log("info", now=NOW) == []


def test_sql_record_has_five_parts():
    messages = sql_record("SELECT 1", [])
    assert len(messages) == 5
    assert "source.py:1" in messages[0]
    assert NOW.strftime("%Y-%m-%d %H:%M:%S") in messages[1]


def test_duration_in_milliseconds():
    messages = sql_record("SELECT 1", [], duration=timedelta(microseconds=1500))
    assert "[1.50ms]" in messages[2]


def test_question_mark_placeholders_are_filled():
    messages = sql_record("SELECT * FROM users WHERE id = ? AND name = ?", [7, "bob"])
    sql = messages[3]
    assert "?" not in sql
    assert "'bob'" in sql
    assert sql.startswith("SELECT * FROM users WHERE id = 7")


def test_numeric_placeholders_are_filled():
    messages = sql_record("SELECT * FROM t WHERE a = $1 AND b = $2", ["x", 3])
    sql = messages[3]
    assert "$" not in sql
    assert "'x'" in sql


def test_null_and_booleans():
    messages = sql_record("? ? ?", [None, True, False])
    sql = messages[3]
    assert "NULL" in sql
    assert "true" in sql and "false" in sql


def test_binary_and_printable_bytes():
    messages = sql_record("? ?", [b"\x00\x01", b"abc"])
    sql = messages[3]
    assert "'<binary>'" in sql
    assert "'abc'" in sql


def test_zero_time_and_regular_time():
    messages = sql_record("? ?", [datetime.min, NOW])
    sql = messages[3]
    assert "'0000-00-00 00:00:00'" in sql
    assert NOW.strftime("'%Y-%m-%d %H:%M:%S'") in sql


def test_valuers_returning_none_or_failing_are_null():
    messages = sql_record("? ?", [NullValuer(), FailingValuer()])
    assert messages[3].count("NULL") == 2


def test_rows_affected_part():
    messages = sql_record("SELECT 1", [], rows=42)
    assert "42 rows affected or returned " in messages[4]


def test_non_sql_record_passes_values_through():
    messages = format_log("info", "message", "extra", 5, now=NOW)
    assert messages[2] == "\033[31;1m"
    assert messages[3:5] == ["extra", 5]
    assert messages[-1] == "\033[0m"


def test_logger_writes_line_to_stream():
    stream = io.StringIO()
    Logger(stream).print("info", "hello-marker")
    output = stream.getvalue()
    assert output.startswith("\r\n")
    assert output.endswith("\n")
    assert "hello-marker" in output


def test_logger_defaults_to_stdout(capsys):
    Logger().print("info", "stdout-marker")
    assert "stdout-marker" in capsys.readouterr().out