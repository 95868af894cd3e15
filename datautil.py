# datautil.py
"""
Value coercion and the compact date/time language used in text commands.

Every temporal value is stored and compared in one canonical form,
YYYY-MM-DDTHH:MM:SS, so that string order equals chronological order.
Date ranges are stored as "<start>/<end>" in that same form.
Time-of-day columns drop the date and use HH:MM:SS; date columns keep
midnight.

Parsers return None when the text is not understood; callers decide whether
that rejects the command.
"""

from __future__ import annotations

import math
import re
from datetime import date as _date, time as _time, datetime as _dt, timedelta
from typing import Optional, Tuple

from config import SHORT_DATETIME_FORMAT
from schemas import ColumnRef, ColumnType

CANONICAL_FORMAT = "%Y-%m-%dT%H:%M:%S"
TIME_FORMAT = "%H:%M:%S"
RANGE_SEPARATOR = "/"

Interval = Tuple[_dt, _dt]


# ---- canonical form ----
def format_datetime_for_db(dt: _dt) -> str:
    return dt.strftime(CANONICAL_FORMAT)


def format_interval_for_db(start: _dt, end: _dt) -> str:
    return f"{format_datetime_for_db(start)}{RANGE_SEPARATOR}{format_datetime_for_db(end)}"


def format_temporal_for_db(column_type: ColumnType, dt: _dt) -> str:
    """Canonical stored form of an instant for a date, datetime or time column."""
    if column_type == ColumnType.TIME:
        return dt.strftime(TIME_FORMAT)
    if column_type == ColumnType.DATE:
        dt = _dt.combine(dt.date(), _time(0, 0))
    return format_datetime_for_db(dt)


def parse_datetime_from_db(value: Optional[str]) -> Optional[_dt]:
    """Read a stored instant. Accepts anything ISO-shaped, not only the canonical form."""
    if not value:
        return None
    try:
        dt = _dt.fromisoformat(value.strip())
    except ValueError:
        return None
    return dt.replace(tzinfo=None)


def canonicalize(value: Optional[str]) -> Optional[str]:
    dt = parse_datetime_from_db(value)
    return format_datetime_for_db(dt) if dt else None


def format_short_datetime_for_user(dt: _dt) -> str:
    return dt.strftime(SHORT_DATETIME_FORMAT)


# ---- times ----
def _to_time(s: str) -> Optional[_time]:
    m = re.match(r"^(\d{1,2})(?::(\d{2}))?(?::(\d{2}))?\s*(am|pm)?$", s.strip().lower())
    if not m:
        return None
    hh = int(m.group(1))
    mm = int(m.group(2) or 0)
    ss = int(m.group(3) or 0)
    ampm = m.group(4)
    if ampm:
        if not 1 <= hh <= 12:
            return None
        if ampm == "pm" and hh != 12:
            hh += 12
        if ampm == "am" and hh == 12:
            hh = 0
    if hh > 23 or mm > 59 or ss > 59:
        return None
    return _time(hh, mm, ss)


# ---- dates ----
_month_map = {
    'jan': 1, 'january': 1, 'feb': 2, 'february': 2, 'mar': 3, 'march': 3,
    'apr': 4, 'april': 4, 'may': 5, 'jun': 6, 'june': 6, 'jul': 7, 'july': 7,
    'aug': 8, 'august': 8, 'sep': 9, 'sept': 9, 'september': 9, 'oct': 10,
    'october': 10, 'nov': 11, 'november': 11, 'dec': 12, 'december': 12,
}
_MON_PAT = r'(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|jun(?:e)?|jul(?:y)?|aug(?:ust)?|sep(?:t|tember)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)'

_DAY_WORDS = {"yesterday": -1, "today": 0, "tomorrow": 1}

_ISO_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)?$")


def _parse_human_date(text: str, *, reference: _date) -> Optional[_date]:
    """
    Parse spoken dates: "29th August", "Aug 29", "Aug 29, 2025", "29 Aug 2025".
    If year is missing, assume the reference year.
    """
    t = re.sub(r'\b(\d{1,2})(st|nd|rd|th)\b', r'\1', text.strip().lower())
    t = re.sub(r'\s+', ' ', t)

    day = mon = year = None
    m = re.fullmatch(rf'(\d{{1,2}}) (?:of )?{_MON_PAT}(?:,? (\d{{4}}))?', t)
    if m:
        day, mon, year = m.group(1), m.group(2), m.group(3)
    else:
        m = re.fullmatch(rf'{_MON_PAT} (\d{{1,2}})(?:,? (\d{{4}}))?', t)
        if m:
            mon, day, year = m.group(1), m.group(2), m.group(3)
    if not m:
        return None
    try:
        return _date(int(year) if year else reference.year, _month_map[mon], int(day))
    except (KeyError, ValueError):
        return None


def _parse_day(text: str, reference: _date) -> Optional[_date]:
    low = text.strip().lower()
    if low in _DAY_WORDS:
        return reference + timedelta(days=_DAY_WORDS[low])
    if re.fullmatch(r"\d{4}-\d{2}-\d{2}", low):
        try:
            return _date.fromisoformat(low)
        except ValueError:
            return None
    return _parse_human_date(low, reference=reference)


def _parse_iso(text: str) -> Optional[_dt]:
    if not _ISO_DATETIME.match(text):
        return None
    try:
        return _dt.fromisoformat(text.replace(" ", "T", 1))
    except ValueError:
        return None


# ---- instants and intervals ----
def parse_instant(text: Optional[str], reference: Optional[_dt] = None) -> Optional[_dt]:
    """
    A single point in time:
      now | 2024-01-05 | 2024-01-05T10:30 | 2024-01-05 10:30 | 10:30 | 3pm
      today | tomorrow 9am | Aug 29 | 29 August 2025 14:00
    Bare times are taken on the reference day.
    """
    if text is None:
        return None
    s = re.sub(r"\s+", " ", text.strip())
    if not s:
        return None
    ref = (reference or _dt.now()).replace(microsecond=0)
    low = s.lower()

    if low == "now":
        return ref

    dt = _parse_iso(s)
    if dt:
        return dt

    d = _parse_day(low, ref.date())
    if d:
        return _dt.combine(d, _time(0, 0))

    t = _to_time(low)
    if t:
        return _dt.combine(ref.date(), t)

    # "<day> <time>", e.g. "tomorrow 3 pm", "aug 29 14:00"
    m = re.fullmatch(r"(.+?) (\d{1,2}(?::\d{2}){0,2} ?(?:am|pm)?)", low)
    if m:
        d = _parse_day(m.group(1), ref.date())
        t = _to_time(m.group(2))
        if d and t:
            return _dt.combine(d, t)
    return None


_RANGE_SPLIT = re.compile(r"\s*/\s*|\s+to\s+|\s+-\s+|\s+–\s+", re.IGNORECASE)


def _named_span(low: str, ref: _dt) -> Optional[Interval]:
    today = _dt.combine(ref.date(), _time(0, 0))
    if low in _DAY_WORDS:
        start = today + timedelta(days=_DAY_WORDS[low])
        return start, start + timedelta(days=1)
    if low in ("this week", "next week", "last week"):
        monday = today - timedelta(days=today.weekday())
        offset = {"this week": 0, "next week": 1, "last week": -1}[low]
        start = monday + timedelta(weeks=offset)
        return start, start + timedelta(weeks=1)
    if low == "this month":
        start = today.replace(day=1)
        if start.month == 12:
            end = start.replace(year=start.year + 1, month=1)
        else:
            end = start.replace(month=start.month + 1)
        return start, end
    return None


def parse_interval(text: Optional[str], reference: Optional[_dt] = None) -> Optional[Interval]:
    """
    Two endpoints: "A/B", "A to B", "A - B" (B may be a bare time on A's day),
    or a named span: today, tomorrow, yesterday, this/next/last week, this month.
    Returns None if the text is not an interval or ends before it starts.
    """
    if text is None:
        return None
    s = re.sub(r"\s+", " ", text.strip())
    if not s:
        return None
    ref = (reference or _dt.now()).replace(microsecond=0)

    span = _named_span(s.lower(), ref)
    if span:
        return span

    parts = _RANGE_SPLIT.split(s, maxsplit=1)
    if len(parts) != 2:
        return None
    start = parse_instant(parts[0], ref)
    if start is None:
        return None
    end_t = _to_time(parts[1])
    end = _dt.combine(start.date(), end_t) if end_t else parse_instant(parts[1], ref)
    if end is None or end < start:
        return None
    return start, end


# ---- durations ----
_UNIT_SECONDS = {"d": 86400, "h": 3600, "m": 60, "s": 1}
_DURATION_PART = re.compile(
    r"(\d+(?:\.\d+)?)\s*(days?|d|hours?|hrs?|h|minutes?|mins?|m|seconds?|secs?|s)(?![a-z])"
)


def parse_duration_seconds(text: Optional[str]) -> Optional[int]:
    """
    "90" (minutes), "30m", "1h", "1h30m", "1.5h", "2 hours", "1d", "45s", "1:30".
    Returns whole seconds, or None if the text is not a duration.
    """
    if text is None:
        return None
    s = text.strip().lower()
    if not s:
        return None
    if s.isdigit():
        return int(s) * 60
    m = re.fullmatch(r"(\d+):(\d{2})", s)
    if m:
        return int(m.group(1)) * 3600 + int(m.group(2)) * 60

    total = 0.0
    pos = 0
    for m in _DURATION_PART.finditer(s):
        if s[pos:m.start()].strip():
            return None
        total += float(m.group(1)) * _UNIT_SECONDS[m.group(2)[0]]
        pos = m.end()
    if pos == 0 or s[pos:].strip():
        return None
    return int(round(total))


# ---- coercion ----
def validify_value(column: ColumnRef, value: Optional[str], reference: Optional[_dt] = None) -> Optional[str]:
    """
    Coerce a user-typed value to the column's stored form.
    Returns None if it cannot be coerced.
    """
    if value is None:
        return None
    ctype = column.column_type

    if ctype == ColumnType.TEXT:
        return value

    if ctype == ColumnType.NUMBER:
        s = value.strip()
        try:
            return str(int(s))
        except ValueError:
            pass
        try:
            f = float(s)
        except ValueError:
            return None
        return str(f) if math.isfinite(f) else None

    if ctype == ColumnType.DATE_RANGE:
        interval = parse_interval(value, reference)
        return format_interval_for_db(*interval) if interval else None

    dt = parse_instant(value, reference)
    return format_temporal_for_db(ctype, dt) if dt else None
