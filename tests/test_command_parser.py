# tests/test_command_parser.py
import pytest

from command_parser import (
    ADD,
    QUERY,
    QueryTokenizer,
    Token,
    classify,
    find_target,
    parse_add,
    parse_command,
    parse_query,
    split_add_segments,
)
from errors import MalformedCommand, NotRecognized
from schemas import AddCommand, ColumnRef, ColumnType, Comparator, Constraint, QueryCommand, TableRef


@pytest.fixture
def table():
    return TableRef(
        table_id="t",
        display_name="t",
        columns=[
            ColumnRef(element_key="name", display_name="Name", user_label="name"),
            ColumnRef(element_key="age", display_name="Age", user_label="age", column_type=ColumnType.NUMBER),
            ColumnRef(element_key="slot", display_name="Slot", user_label="when", column_type=ColumnType.DATE_RANGE),
            ColumnRef(element_key="note", display_name="Note", user_label="note", sms_in=False),
        ],
    )


def test_find_target(table):
    assert find_target("@t ?name", [table]) is table
    with pytest.raises(NotRecognized):
        find_target("@other ?name", [table])


def test_classify():
    assert classify("@t +age 5") == ADD
    assert classify("@t ?name") == QUERY
    with pytest.raises(NotRecognized):
        classify("@t")


def test_split_add_segments():
    assert split_add_segments("@t +name Bo Diddley +age 40") == {"name": "Bo Diddley", "age": "40"}


def test_split_add_segments_requires_value():
    with pytest.raises(MalformedCommand):
        split_add_segments("@t +age")


def test_parse_add_coerces_and_drops_non_sms_columns(table):
    cmd = parse_add("@t +age 5 +note hidden +name Al", table)
    assert cmd.values == {"age": "5", "name": "Al"}


def test_parse_add_rejects_bad_values(table):
    with pytest.raises(MalformedCommand):
        parse_add("@t +age five", table)
    with pytest.raises(MalformedCommand):
        parse_add("@t +height 5", table)


def test_tokenizer_is_restartable():
    tokens = QueryTokenizer("@t ?name ?age >age 30")
    expected = [
        Token("?", "name", None),
        Token("?", "age", None),
        Token(">", "age", "30"),
    ]
    assert list(tokens) == expected
    assert list(tokens) == expected


def test_tokenizer_operand_keeps_inner_spaces():
    assert list(QueryTokenizer("@t =name Bo Diddley ~age desc")) == [
        Token("=", "name", "Bo Diddley"),
        Token("~", "age", "desc"),
    ]


def test_parse_query_scenario(table):
    cmd = parse_query("@t ?name ?age >age 30", table)
    assert [c.element_key for c in cmd.projections] == ["name", "age"]
    assert cmd.constraints == (Constraint(column=table.columns[1], comparator=Comparator.GT, value="30"),)
    assert cmd.ordering is None
    assert cmd.free_slot is None


def test_parse_query_last_ordering_wins(table):
    cmd = parse_query("@t ?name ~name ~age d", table)
    assert cmd.ordering.column.element_key == "age"
    assert cmd.ordering.descending


def test_parse_query_free_slot(table):
    cmd = parse_query("@t /when 1h30m", table)
    assert cmd.free_slot.column.element_key == "slot"
    assert cmd.free_slot.min_duration_seconds == 5400


@pytest.mark.parametrize(
    "msg",
    [
        "@t /when 1h /when 2h",
        "@t /when",
        "@t /age 1h",
        "@t /when whenever",
        "@t ?height",
        "@t >age old",
    ],
)
def test_parse_query_rejects(table, msg):
    with pytest.raises(MalformedCommand):
        parse_query(msg, table)


def test_parse_command_dispatches_on_shape(table):
    assert isinstance(parse_command("@t +age 5", table), AddCommand)
    assert isinstance(parse_command("@t ?name", table), QueryCommand)
    with pytest.raises(NotRecognized):
        parse_command("@t", table)
