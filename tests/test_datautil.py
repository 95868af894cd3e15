# tests/test_datautil.py
from datetime import datetime

import pytest

from datautil import (
    canonicalize,
    format_interval_for_db,
    parse_duration_seconds,
    parse_instant,
    parse_interval,
    validify_value,
)
from schemas import ColumnRef, ColumnType

REF = datetime(2024, 1, 3, 8, 15)  # a Wednesday


def col(ctype):
    return ColumnRef(element_key="c", display_name="c", user_label="c", column_type=ctype)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("now", datetime(2024, 1, 3, 8, 15)),
        ("2024-01-05", datetime(2024, 1, 5)),
        ("2024-01-05T10:30", datetime(2024, 1, 5, 10, 30)),
        ("2024-01-05 10:30:15", datetime(2024, 1, 5, 10, 30, 15)),
        ("10:30", datetime(2024, 1, 3, 10, 30)),
        ("3pm", datetime(2024, 1, 3, 15, 0)),
        ("tomorrow", datetime(2024, 1, 4)),
        ("tomorrow 9am", datetime(2024, 1, 4, 9, 0)),
        ("Aug 29", datetime(2024, 8, 29)),
        ("29th August 2025 14:00", datetime(2025, 8, 29, 14, 0)),
    ],
)
def test_parse_instant(text, expected):
    assert parse_instant(text, REF) == expected


@pytest.mark.parametrize("text", ["", "soon", "25:00", "2024-13-01", "13pm"])
def test_parse_instant_rejects(text):
    assert parse_instant(text, REF) is None


def test_parse_interval_forms():
    expected = (datetime(2024, 1, 1, 10), datetime(2024, 1, 1, 11))
    assert parse_interval("2024-01-01T10:00/2024-01-01T11:00", REF) == expected
    assert parse_interval("2024-01-01T10:00 to 2024-01-01T11:00", REF) == expected
    assert parse_interval("2024-01-01 10:00 - 11:00", REF) == expected


def test_parse_interval_named_spans():
    assert parse_interval("today", REF) == (datetime(2024, 1, 3), datetime(2024, 1, 4))
    assert parse_interval("this week", REF) == (datetime(2024, 1, 1), datetime(2024, 1, 8))
    assert parse_interval("next week", REF) == (datetime(2024, 1, 8), datetime(2024, 1, 15))
    assert parse_interval("this month", REF) == (datetime(2024, 1, 1), datetime(2024, 2, 1))


def test_parse_interval_rejects_instants_and_backwards_ranges():
    assert parse_interval("2024-01-01", REF) is None
    assert parse_interval("2024-01-02/2024-01-01", REF) is None


@pytest.mark.parametrize(
    "text,seconds",
    [
        ("90", 5400),
        ("30m", 1800),
        ("1h", 3600),
        ("1h30m", 5400),
        ("1.5h", 5400),
        ("2 hours", 7200),
        ("1d", 86400),
        ("45s", 45),
        ("1:30", 5400),
    ],
)
def test_parse_duration_seconds(text, seconds):
    assert parse_duration_seconds(text) == seconds


@pytest.mark.parametrize("text", ["", "soon", "h", "1x", "30 m extra"])
def test_parse_duration_rejects(text):
    assert parse_duration_seconds(text) is None


def test_validify_value_by_type():
    assert validify_value(col(ColumnType.TEXT), " as typed ") == " as typed "
    assert validify_value(col(ColumnType.NUMBER), "5") == "5"
    assert validify_value(col(ColumnType.NUMBER), "2.50") == "2.5"
    assert validify_value(col(ColumnType.NUMBER), "five") is None
    assert validify_value(col(ColumnType.DATETIME), "2024-01-05 10:30", REF) == "2024-01-05T10:30:00"
    assert validify_value(col(ColumnType.DATE), "tomorrow 9am", REF) == "2024-01-04T00:00:00"
    assert validify_value(col(ColumnType.DATE_RANGE), "2024-01-05 10:00 to 11:00", REF) == (
        "2024-01-05T10:00:00/2024-01-05T11:00:00"
    )
    assert validify_value(col(ColumnType.DATE_RANGE), "2024-01-05", REF) is None


def test_canonical_strings_sort_chronologically():
    a = canonicalize("2024-01-05T09:00")
    b = canonicalize("2024-01-05T10:00:00")
    assert a == "2024-01-05T09:00:00"
    assert a < b
    assert format_interval_for_db(datetime(2024, 1, 1), datetime(2024, 1, 2)) == (
        "2024-01-01T00:00:00/2024-01-02T00:00:00"
    )


def test_time_values_do_not_depend_on_the_day():
    other_day = datetime(2024, 1, 2, 23, 0)
    assert validify_value(col(ColumnType.TIME), "10:30", REF) == "10:30:00"
    assert validify_value(col(ColumnType.TIME), "10:30", other_day) == "10:30:00"
    assert validify_value(col(ColumnType.TIME), "3pm", other_day) == "15:00:00"
    assert validify_value(col(ColumnType.TIME), "2024-01-05 09:15", REF) == "09:15:00"
