# constraints.py
"""
Turn (column, operator, operand) triples into store constraints.

Temporal operands are tried as an interval first, then as an instant:

    operand    =                      <            >             !
    instant    EQ t (not ranges)      LT t         GT t          NE t (not ranges)
    interval   GTE s AND LT e         LT s         GTE e         LT s OR GTE e
    (range col EQ "s/e")                                         (range col NE "s/e")
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from datautil import (
    format_interval_for_db,
    format_temporal_for_db,
    parse_instant,
    parse_interval,
    validify_value,
)
from errors import MalformedCommand
from schemas import (
    AnyConstraint,
    ColumnRef,
    ColumnType,
    Comparator,
    Comparison,
    Constraint,
    OrConstraint,
)

OPERATORS = {
    "=": Comparator.EQ,
    "<": Comparator.LT,
    ">": Comparator.GT,
    "!": Comparator.NE,
}


def _comparator(tag: str) -> Comparator:
    try:
        return OPERATORS[tag]
    except KeyError:
        raise MalformedCommand(f"unknown operator {tag!r}") from None


def compile_constraint(column: ColumnRef, tag: str, value: Optional[str]) -> List[AnyConstraint]:
    op = _comparator(tag)
    if value is None:
        raise MalformedCommand(f"missing value for {tag}{column.user_label}")
    if not column.persisted:
        raise MalformedCommand(f"{column.user_label!r} is not stored and cannot be filtered")

    if not column.column_type.is_temporal:
        coerced = validify_value(column, value)
        if coerced is None:
            raise MalformedCommand(f"{value!r} is not a valid {column.column_type.value}")
        return [Constraint(column=column, comparator=op, value=coerced)]

    is_range = column.column_type == ColumnType.DATE_RANGE
    interval = parse_interval(value)
    if interval is None:
        dt = parse_instant(value)
        if dt is None:
            raise MalformedCommand(f"{value!r} is not a date or time")
        if is_range and op in (Comparator.EQ, Comparator.NE):
            raise MalformedCommand("a date range can only be compared to another range")
        return [Constraint(column=column, comparator=op, value=format_temporal_for_db(column.column_type, dt))]

    if column.column_type == ColumnType.TIME and interval[0].date() != interval[1].date():
        raise MalformedCommand("a time-of-day interval must start and end on the same day")
    start = format_temporal_for_db(column.column_type, interval[0])
    end = format_temporal_for_db(column.column_type, interval[1])
    if op == Comparator.LT:
        return [Constraint(column=column, comparator=Comparator.LT, value=start)]
    if op == Comparator.GT:
        return [Constraint(column=column, comparator=Comparator.GTE, value=end)]
    if is_range:
        return [Constraint(column=column, comparator=op, value=format_interval_for_db(*interval))]
    if op == Comparator.EQ:
        return [
            Constraint(column=column, comparator=Comparator.GTE, value=start),
            Constraint(column=column, comparator=Comparator.LT, value=end),
        ]
    return [
        OrConstraint(
            column=column,
            first=Comparison(comparator=Comparator.LT, value=start),
            second=Comparison(comparator=Comparator.GTE, value=end),
        )
    ]


def partition_constraints(
    constraints: Sequence[AnyConstraint], column: ColumnRef
) -> Tuple[Tuple[AnyConstraint, ...], Tuple[AnyConstraint, ...]]:
    """Split into (constraints on `column`, everything else), keeping order."""
    own = tuple(c for c in constraints if c.column.element_key == column.element_key)
    others = tuple(c for c in constraints if c.column.element_key != column.element_key)
    return own, others
