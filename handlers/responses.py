# handlers/responses.py
from typing import List, Optional, Sequence

from config import ROW_LIMIT
from datautil import format_short_datetime_for_user, parse_datetime_from_db
from schemas import ColumnRef, FreeInterval

NO_ROWS = "No rows found."
ANYTIME = "anytime"
NO_FREE_SLOTS = "No free slots found."

ROW_SEPARATOR = ";"
FIELD_SEPARATOR = ","


def format_rows(columns: Sequence[ColumnRef], rows: Sequence[tuple], limit: int = ROW_LIMIT) -> str:
    """label:value pairs per row, rows separated by ';', at most `limit` rows."""
    if not rows:
        return NO_ROWS
    out: List[str] = []
    for row in rows[:limit]:
        out.append(
            FIELD_SEPARATOR.join(
                f"{c.response_label}:{'' if v is None else v}" for c, v in zip(columns, row)
            )
        )
    return ROW_SEPARATOR.join(out)


def _short(value: str) -> str:
    dt = parse_datetime_from_db(value)
    return format_short_datetime_for_user(dt) if dt else value


def format_free_interval(interval: FreeInterval) -> str:
    if interval.start is None:
        return f"before {_short(interval.end)}"
    if interval.end is None:
        return f"after {_short(interval.start)}"
    return f"{_short(interval.start)}-{_short(interval.end)}"


def format_free_intervals(intervals: Optional[Sequence[FreeInterval]]) -> str:
    """None means nothing is booked at all."""
    if intervals is None:
        return ANYTIME
    if not intervals:
        return NO_FREE_SLOTS
    return ROW_SEPARATOR.join(format_free_interval(i) for i in intervals)
