# command_parser.py
"""
Classification and parsing of commands addressed to a table.

    @<table> +<label> <value> +<label> <value> ...        ADD a row
    @<table> ?<label> ~<label> [d] =<label> <value> ...   QUERY rows

Query operators are a space followed by one of = < > ! / ~ ?:

    ?col            project col (in order of appearance)
    ~col [d...]     order by col, descending if the operand starts with "d"
    /col <dur>      list free slots of at least <dur> in date-range col
    =col <v>, <col <v>, >col <v>, !col <v>   constraints
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, NamedTuple, Optional, Sequence

from constraints import compile_constraint
from datautil import parse_duration_seconds, validify_value
from errors import MalformedCommand, NotRecognized
from schemas import (
    AddCommand,
    AnyConstraint,
    ColumnRef,
    ColumnType,
    FreeSlotRequest,
    Ordering,
    ParsedCommand,
    QueryCommand,
    TableRef,
)
from shortcuts import first_token

logger = logging.getLogger(__name__)

ADD = "add"
QUERY = "query"

ADD_DELIMITER = " +"
QUERY_OPERATORS = (" =", " <", " >", " !", " /", " ~", " ?")

PROJECT = "?"
ORDER = "~"
FREE_SLOT = "/"


# ------------------------
# Classification
# ------------------------
def find_target(msg: str, tables: Sequence[TableRef]) -> TableRef:
    """The queryable table named by the first word, else NotRecognized."""
    target = first_token(msg)
    for tp in tables:
        if tp.display_name == target:
            return tp
    raise NotRecognized(f"no table named {target!r}")


def classify(msg: str) -> str:
    split = msg.split(" ")
    if len(split) < 2:
        raise NotRecognized("missing command after table name")
    return ADD if split[1].startswith("+") else QUERY


def _resolve(table: TableRef, label: str) -> ColumnRef:
    cp = table.column_by_user_label(label)
    if cp is None:
        raise MalformedCommand(f"unknown column {label!r} in {table.display_name!r}")
    return cp


def _stored(cp: ColumnRef, tag: str) -> ColumnRef:
    if not cp.persisted:
        raise MalformedCommand(f"{cp.user_label!r} is not stored and cannot be used with {tag}")
    return cp


# ------------------------
# ADD
# ------------------------
def split_add_segments(msg: str) -> Dict[str, str]:
    """Map each "+label" to the text up to the next " +" (or end)."""
    values: Dict[str, str] = {}
    pos = msg.find(ADD_DELIMITER)
    while pos >= 0:
        label_start = pos + len(ADD_DELIMITER)
        space = msg.find(" ", label_start + 1)
        if space < 0:
            raise MalformedCommand(f"no value after {msg[pos + 1:]!r}")
        label = msg[label_start:space].strip()
        nxt = msg.find(ADD_DELIMITER, space + 1)
        end = nxt if nxt >= 0 else len(msg)
        values[label] = msg[space:end].strip()
        pos = nxt
    return values


def parse_add(msg: str, table: TableRef) -> AddCommand:
    row: Dict[str, str] = {}
    for label, raw in split_add_segments(msg).items():
        cp = _resolve(table, label)
        value = validify_value(cp, raw)
        if value is None:
            raise MalformedCommand(f"{raw!r} is not a valid {cp.column_type.value} for {label!r}")
        if cp.sms_in:
            row[cp.element_key] = value
        else:
            logger.debug("dropping %r: column does not accept SMS input", label)
    return AddCommand(values=row)


# ------------------------
# QUERY
# ------------------------
class Token(NamedTuple):
    tag: str
    label: str
    value: Optional[str]


def _next_operator(msg: str, start: int) -> int:
    found = [i for i in (msg.find(op, start) for op in QUERY_OPERATORS) if i >= 0]
    return min(found) if found else -1


class QueryTokenizer:
    """
    Lazy, restartable token stream over a query message.
    Each iteration rescans the message from the table name onwards.
    """

    def __init__(self, msg: str):
        self.msg = msg

    def _positions(self) -> Iterator[int]:
        msg = self.msg
        start = msg.find(" ")
        idx = _next_operator(msg, start) if start >= 0 else -1
        while idx > 0:
            yield idx + 1
            idx = _next_operator(msg, idx + 2)
        yield len(msg)

    def __iter__(self) -> Iterator[Token]:
        positions = self._positions()
        prev = next(positions)
        for pos in positions:
            yield self._token(self.msg[prev:pos])
            prev = pos

    @staticmethod
    def _token(text: str) -> Token:
        tag = text[0]
        space = text.find(" ", 2)
        if space < 0:
            return Token(tag, text[1:].strip(), None)
        return Token(tag, text[1:space].strip(), text[space:].strip() or None)


def parse_query(msg: str, table: TableRef) -> QueryCommand:
    projections: List[ColumnRef] = []
    ordering: Optional[Ordering] = None
    constraints: List[AnyConstraint] = []
    free_slot: Optional[FreeSlotRequest] = None

    for token in QueryTokenizer(msg):
        cp = _resolve(table, token.label)
        if token.tag == PROJECT:
            projections.append(cp)
        elif token.tag == ORDER:
            descending = token.value is not None and token.value.startswith("d")
            ordering = Ordering(column=_stored(cp, ORDER), descending=descending)
        elif token.tag == FREE_SLOT:
            if free_slot is not None:
                raise MalformedCommand("only one free-slot column is allowed")
            if token.value is None or cp.column_type != ColumnType.DATE_RANGE:
                raise MalformedCommand(f"{token.label!r} cannot be searched for free slots")
            seconds = parse_duration_seconds(token.value)
            if seconds is None:
                raise MalformedCommand(f"{token.value!r} is not a duration")
            free_slot = FreeSlotRequest(column=_stored(cp, FREE_SLOT), min_duration_seconds=seconds)
        else:
            constraints.extend(compile_constraint(cp, token.tag, token.value))

    return QueryCommand(
        projections=tuple(projections),
        ordering=ordering,
        constraints=tuple(constraints),
        free_slot=free_slot,
    )


def parse_command(msg: str, table: TableRef) -> ParsedCommand:
    if classify(msg) == ADD:
        return parse_add(msg, table)
    return parse_query(msg, table)
