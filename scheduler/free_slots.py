# scheduler/free_slots.py
"""
Free-slot search over a date-range column.

Occupied ranges come from the matching rows plus the free-slot column's own
constraints; bounds given with < and > close the search window. Ranges are
swept in start order and merged; the gaps between them are the free slots.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from datautil import RANGE_SEPARATOR, canonicalize, parse_datetime_from_db
from schemas import (
    AnyConstraint,
    Bound,
    Comparator,
    FreeInterval,
    OrConstraint,
    RawRange,
)

logger = logging.getLogger(__name__)


def _bound(value: Optional[str], unbounded: Bound) -> Optional[Bound]:
    """Canonical bound for a stored endpoint; '' is open, garbage is None."""
    if value is None or not value.strip():
        return unbounded
    canonical = canonicalize(value)
    return Bound.at(canonical) if canonical else None


def parse_raw_range(value: Optional[str]) -> Optional[RawRange]:
    """Read a stored "start/end" range."""
    if not value or RANGE_SEPARATOR not in value:
        return None
    left, right = value.split(RANGE_SEPARATOR, 1)
    start = _bound(left, Bound.low())
    end = _bound(right, Bound.high())
    if start is None or end is None:
        return None
    return RawRange(start=start, end=end)


def ranges_from_rows(values: Iterable[Optional[str]]) -> List[RawRange]:
    ranges: List[RawRange] = []
    for v in values:
        rr = parse_raw_range(v)
        if rr is None:
            logger.warning("skipping unreadable date range %r", v)
            continue
        ranges.append(rr)
    return ranges


def window_from_constraints(
    constraints: Sequence[AnyConstraint],
) -> Tuple[List[RawRange], Optional[str], Optional[str]]:
    """
    Interpret the free-slot column's own constraints.
    Returns (extra occupied ranges, early bound, late bound).
    """
    occupied: List[RawRange] = []
    early: Optional[str] = None
    late: Optional[str] = None

    def _later_of(a, b):
        return b if a is None or (b is not None and b > a) else a

    def _earlier_of(a, b):
        return b if a is None or (b is not None and b < a) else a

    for c in constraints:
        if isinstance(c, OrConstraint):
            if c.first.comparator == Comparator.LT:
                lo, hi = c.first.value, c.second.value
            else:
                lo, hi = c.second.value, c.first.value
            rr = parse_raw_range(f"{lo}{RANGE_SEPARATOR}{hi}")
            if rr is not None:
                occupied.append(rr)
            continue

        if RANGE_SEPARATOR in c.value:
            rr = parse_raw_range(c.value)
            if rr is None:
                continue
            if c.comparator == Comparator.NE:
                occupied.append(rr)
            elif c.comparator == Comparator.EQ:
                early = _later_of(early, rr.start.value)
                late = _earlier_of(late, rr.end.value)
            continue

        value = canonicalize(c.value)
        if c.comparator == Comparator.LT:
            late = _earlier_of(late, value)
        elif c.comparator in (Comparator.GT, Comparator.GTE):
            early = _later_of(early, value)
    return occupied, early, late


def _sort_key(r: RawRange):
    return r.start.sort_key(), r.end.sort_key()


def merge_ranges(ranges: Iterable[RawRange]) -> List[RawRange]:
    """
    Sort by start and merge overlapping or touching ranges. A range open
    towards the future ends the sweep: everything after it is occupied.
    """
    ordered = sorted(ranges, key=_sort_key)
    if not ordered:
        return []
    merged = [ordered[0]]
    for nxt in ordered[1:]:
        last = merged[-1]
        if not last.end.is_bounded:
            break
        if nxt.start.sort_key() > last.end.sort_key():
            merged.append(nxt)
        elif nxt.end.sort_key() > last.end.sort_key():
            merged[-1] = RawRange(start=last.start, end=nxt.end)
    return merged


def free_intervals(merged: Sequence[RawRange], min_duration_seconds: int) -> List[FreeInterval]:
    """Gaps between merged ranges. Open-ended gaps at either side are always kept."""
    if not merged:
        return []
    out: List[FreeInterval] = []
    if merged[0].start.is_bounded:
        out.append(FreeInterval(end=merged[0].start.value))
    for prev, cur in zip(merged, merged[1:]):
        start = parse_datetime_from_db(prev.end.value)
        end = parse_datetime_from_db(cur.start.value)
        if (end - start).total_seconds() >= min_duration_seconds:
            out.append(FreeInterval(start=prev.end.value, end=cur.start.value))
    if merged[-1].end.is_bounded:
        out.append(FreeInterval(start=merged[-1].end.value))
    return out


def resolve_free_slots(
    row_values: Iterable[Optional[str]],
    own_constraints: Sequence[AnyConstraint],
    min_duration_seconds: int,
) -> Optional[List[FreeInterval]]:
    """
    Free intervals of at least min_duration_seconds.
    None means nothing is occupied at all (free any time).
    """
    ranges = ranges_from_rows(row_values)
    occupied, early, late = window_from_constraints(own_constraints)
    ranges.extend(occupied)
    if early is not None:
        ranges.append(RawRange(start=Bound.low(), end=Bound.at(early)))
    if late is not None:
        ranges.append(RawRange(start=Bound.at(late), end=Bound.high()))
    if not ranges:
        return None
    return free_intervals(merge_ranges(ranges), min_duration_seconds)
