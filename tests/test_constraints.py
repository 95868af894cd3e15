# tests/test_constraints.py
from datetime import datetime, timedelta

import pytest

from constraints import compile_constraint, partition_constraints
from errors import MalformedCommand
from schemas import ColumnRef, ColumnType, Comparator, Constraint, OrConstraint

AT = ColumnRef(element_key="at", display_name="At", user_label="at", column_type=ColumnType.DATETIME)
SLOT = ColumnRef(element_key="slot", display_name="Slot", user_label="slot", column_type=ColumnType.DATE_RANGE)
AGE = ColumnRef(element_key="age", display_name="Age", user_label="age", column_type=ColumnType.NUMBER)

INTERVAL = "2024-01-01T10:00/2024-01-01T11:00"
START = "2024-01-01T10:00:00"
END = "2024-01-01T11:00:00"


def _holds(constraint, value):
    checks = {
        Comparator.EQ: lambda a, b: a == b,
        Comparator.LT: lambda a, b: a < b,
        Comparator.GT: lambda a, b: a > b,
        Comparator.GTE: lambda a, b: a >= b,
        Comparator.NE: lambda a, b: a != b,
    }
    if isinstance(constraint, OrConstraint):
        return any(checks[c.comparator](value, c.value) for c in (constraint.first, constraint.second))
    return checks[constraint.comparator](value, constraint.value)


def test_non_temporal_values_are_coerced():
    assert compile_constraint(AGE, ">", "30") == [Constraint(column=AGE, comparator=Comparator.GT, value="30")]
    with pytest.raises(MalformedCommand):
        compile_constraint(AGE, "=", "thirty")


def test_missing_operand_is_rejected():
    with pytest.raises(MalformedCommand):
        compile_constraint(AGE, "=", None)


def test_instant_on_scalar_column():
    assert compile_constraint(AT, "=", "2024-01-01 10:00") == [
        Constraint(column=AT, comparator=Comparator.EQ, value=START)
    ]
    assert compile_constraint(AT, "<", "2024-01-01 10:00")[0].comparator == Comparator.LT


def test_instant_equality_on_range_column_is_rejected():
    with pytest.raises(MalformedCommand):
        compile_constraint(SLOT, "=", "2024-01-01 10:00")
    with pytest.raises(MalformedCommand):
        compile_constraint(SLOT, "!", "2024-01-01 10:00")


def test_interval_on_scalar_column():
    assert compile_constraint(AT, "=", INTERVAL) == [
        Constraint(column=AT, comparator=Comparator.GTE, value=START),
        Constraint(column=AT, comparator=Comparator.LT, value=END),
    ]
    assert compile_constraint(AT, "<", INTERVAL) == [Constraint(column=AT, comparator=Comparator.LT, value=START)]
    assert compile_constraint(AT, ">", INTERVAL) == [Constraint(column=AT, comparator=Comparator.GTE, value=END)]
    (ne,) = compile_constraint(AT, "!", INTERVAL)
    assert isinstance(ne, OrConstraint)
    assert (ne.first.comparator, ne.first.value) == (Comparator.LT, START)
    assert (ne.second.comparator, ne.second.value) == (Comparator.GTE, END)


def test_interval_on_range_column_uses_range_encoding():
    encoded = f"{START}/{END}"
    assert compile_constraint(SLOT, "=", INTERVAL) == [Constraint(column=SLOT, comparator=Comparator.EQ, value=encoded)]
    assert compile_constraint(SLOT, "!", INTERVAL) == [Constraint(column=SLOT, comparator=Comparator.NE, value=encoded)]


def test_interval_inequality_negates_containment():
    eq = compile_constraint(AT, "=", INTERVAL)
    (ne,) = compile_constraint(AT, "!", INTERVAL)
    t = datetime(2024, 1, 1, 9, 0)
    while t <= datetime(2024, 1, 1, 12, 0):
        value = t.strftime("%Y-%m-%dT%H:%M:%S")
        assert _holds(ne, value) == (not all(_holds(c, value) for c in eq))
        t += timedelta(minutes=7, seconds=30)


def test_partition_constraints():
    cs = compile_constraint(AGE, ">", "3") + compile_constraint(SLOT, "<", "2024-01-02") + compile_constraint(AT, "=", INTERVAL)
    own, others = partition_constraints(cs, SLOT)
    assert [c.column.element_key for c in own] == ["slot"]
    assert [c.column.element_key for c in others] == ["age", "at", "at"]


CLOCK = ColumnRef(element_key="clock", display_name="Clock", user_label="clock", column_type=ColumnType.TIME)


def test_time_constraints_use_time_of_day():
    assert compile_constraint(CLOCK, "=", "10:30") == [
        Constraint(column=CLOCK, comparator=Comparator.EQ, value="10:30:00")
    ]
    assert compile_constraint(CLOCK, "=", "09:00 to 17:00") == [
        Constraint(column=CLOCK, comparator=Comparator.GTE, value="09:00:00"),
        Constraint(column=CLOCK, comparator=Comparator.LT, value="17:00:00"),
    ]
    with pytest.raises(MalformedCommand):
        compile_constraint(CLOCK, "=", "today")
