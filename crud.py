# crud.py

import re
from datetime import datetime as _dt
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import Float, and_, cast, insert, or_, select
from sqlalchemy.orm import Session

from datautil import format_datetime_for_db
from models import (
    ColumnDefinition,
    PASSWORD_COLUMN,
    PHONE_NUMBER_COLUMN,
    ROW_ID,
    ROW_PHONE_NUMBER,
    ROW_SAVED,
    ROW_TIMESTAMP,
    SHORTCUT_INPUT_COLUMN,
    SHORTCUT_LABEL_COLUMN,
    SHORTCUT_OUTPUT_COLUMN,
    SavedStatus,
    TableDefinition,
    TableKind,
    ensure_row_table,
)
from schemas import (
    AnyConstraint,
    ColumnRef,
    ColumnType,
    Comparator,
    Constraint,
    Ordering,
    ShortcutDefinition,
    TableRef,
)

_IDENTIFIER = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
_RESERVED_TABLES = {TableDefinition.__tablename__, ColumnDefinition.__tablename__}


# ------------------------
# Table metadata
# ------------------------

def create_table(
    db: Session,
    display_name: str,
    columns: List[Dict[str, Any]],
    *,
    table_id: Optional[str] = None,
    kind: str = TableKind.DATA,
    access_control_table_id: Optional[str] = None,
) -> TableRef:
    """
    Define a table and create its row storage.
    Each column dict needs element_key; display_name and user_label default to it.
    Raises ValueError on bad identifiers or duplicates.
    """
    table_id = table_id or display_name
    if not _IDENTIFIER.match(table_id) or table_id in _RESERVED_TABLES:
        raise ValueError(f"Invalid table id: {table_id!r}")
    if kind not in TableKind.ALL:
        raise ValueError(f"Unknown table kind: {kind!r}")
    if get_table_definition(db, table_id) is not None:
        raise ValueError(f"Table {table_id!r} already exists")

    tdef = TableDefinition(
        table_id=table_id,
        display_name=display_name,
        kind=kind,
        access_control_table_id=access_control_table_id,
    )
    seen = set()
    for pos, spec in enumerate(columns):
        key = spec["element_key"]
        if not _IDENTIFIER.match(key) or key in seen:
            raise ValueError(f"Invalid or duplicate column key: {key!r}")
        seen.add(key)
        ctype = ColumnType(spec.get("column_type", ColumnType.TEXT))
        tdef.columns.append(
            ColumnDefinition(
                element_key=key,
                display_name=spec.get("display_name", key),
                user_label=spec.get("user_label", key),
                column_type=ctype.value,
                sms_in=spec.get("sms_in", True),
                sms_label=spec.get("sms_label"),
                persisted=spec.get("persisted", True),
                position=pos,
            )
        )
    db.add(tdef)
    db.flush()
    ref = tdef.to_ref()
    ensure_row_table(db.connection(), ref)
    db.commit()
    return ref


def create_shortcut_table(db: Session, display_name: str, **kwargs) -> TableRef:
    cols = [
        {"element_key": SHORTCUT_LABEL_COLUMN},
        {"element_key": SHORTCUT_INPUT_COLUMN},
        {"element_key": SHORTCUT_OUTPUT_COLUMN},
    ]
    return create_table(db, display_name, cols, kind=TableKind.SHORTCUT, **kwargs)


def create_security_table(db: Session, display_name: str, **kwargs) -> TableRef:
    cols = [{"element_key": PASSWORD_COLUMN}, {"element_key": PHONE_NUMBER_COLUMN}]
    return create_table(db, display_name, cols, kind=TableKind.SECURITY, **kwargs)


def get_table_definition(db: Session, table_id: str) -> Optional[TableDefinition]:
    return db.query(TableDefinition).filter(TableDefinition.table_id == table_id).first()


def get_table_by_id(db: Session, table_id: str) -> Optional[TableRef]:
    tdef = get_table_definition(db, table_id)
    return tdef.to_ref() if tdef else None


def list_tables(db: Session, kind: Optional[str] = None) -> List[TableRef]:
    """All table definitions (optionally of one kind) in creation order."""
    q = db.query(TableDefinition)
    if kind is not None:
        q = q.filter(TableDefinition.kind == kind)
    return [t.to_ref() for t in q.order_by(TableDefinition.id).all()]


def get_table_by_display_name(db: Session, display_name: str, kind: str = TableKind.DATA) -> Optional[TableRef]:
    tdef = (
        db.query(TableDefinition)
        .filter(TableDefinition.display_name == display_name, TableDefinition.kind == kind)
        .order_by(TableDefinition.id)
        .first()
    )
    return tdef.to_ref() if tdef else None


def set_access_control(db: Session, table_id: str, security_table_id: Optional[str]) -> bool:
    """Gate a table with a security table (or remove the gate with None)."""
    tdef = get_table_definition(db, table_id)
    if not tdef:
        return False
    tdef.access_control_table_id = security_table_id
    db.commit()
    return True


# ------------------------
# Rows
# ------------------------

def add_row(
    db: Session,
    table: TableRef,
    values: Dict[str, str],
    *,
    phone_number: Optional[str] = None,
    saved: str = SavedStatus.COMPLETE,
    timestamp: Optional[_dt] = None,
) -> int:
    """Insert one row (element_key -> value) and return its id."""
    tbl = ensure_row_table(db.connection(), table)
    allowed = {c.element_key for c in table.columns if c.persisted}
    payload = {k: v for k, v in values.items() if k in allowed}
    payload[ROW_SAVED] = saved
    payload[ROW_PHONE_NUMBER] = phone_number
    payload[ROW_TIMESTAMP] = format_datetime_for_db(timestamp or _dt.now())
    result = db.execute(insert(tbl).values(**payload))
    db.commit()
    return result.inserted_primary_key[0]


def _column_expr(tbl, column: ColumnRef):
    expr = tbl.c[column.element_key]
    if column.column_type == ColumnType.NUMBER:
        return cast(expr, Float)
    return expr


def _coerce(column: ColumnRef, value: str):
    if column.column_type == ColumnType.NUMBER:
        return float(value)
    return value


def _compare(expr, comparator: Comparator, value):
    if comparator == Comparator.EQ:
        return expr == value
    if comparator == Comparator.LT:
        return expr < value
    if comparator == Comparator.GT:
        return expr > value
    if comparator == Comparator.GTE:
        return expr >= value
    return expr != value


def _where(tbl, c: AnyConstraint):
    expr = _column_expr(tbl, c.column)
    if isinstance(c, Constraint):
        return _compare(expr, c.comparator, _coerce(c.column, c.value))
    return or_(
        _compare(expr, c.first.comparator, _coerce(c.column, c.first.value)),
        _compare(expr, c.second.comparator, _coerce(c.column, c.second.value)),
    )


def query_rows(
    db: Session,
    table: TableRef,
    columns: Sequence[ColumnRef],
    constraints: Sequence[AnyConstraint] = (),
    ordering: Optional[Ordering] = None,
    limit: Optional[int] = None,
) -> List[tuple]:
    """
    Rows of `table` matching every constraint (an OrConstraint matches either side),
    projected onto `columns`, optionally sorted.
    """
    tbl = ensure_row_table(db.connection(), table)
    stmt = select(*[tbl.c[c.element_key] for c in columns])
    if constraints:
        stmt = stmt.where(and_(*[_where(tbl, c) for c in constraints]))
    if ordering is not None:
        expr = _column_expr(tbl, ordering.column)
        stmt = stmt.order_by(expr.desc() if ordering.descending else expr.asc())
    stmt = stmt.order_by(tbl.c[ROW_ID])
    if limit is not None:
        stmt = stmt.limit(limit)
    return [tuple(r) for r in db.execute(stmt).all()]


# ------------------------
# Passwords
# ------------------------

def _security_columns(table: TableRef):
    pw = table.column_by_display_name(PASSWORD_COLUMN)
    phone = table.column_by_display_name(PHONE_NUMBER_COLUMN)
    if pw is None or phone is None:
        raise ValueError(f"{table.table_id!r} is not an access-control table")
    return pw, phone


def get_passwords(db: Session, security_table_id: str, phone_number: str) -> List[str]:
    """Committed passwords registered for phone_number in the given security table."""
    table = get_table_by_id(db, security_table_id)
    if table is None:
        return []
    pw, phone = _security_columns(table)
    tbl = ensure_row_table(db.connection(), table)
    stmt = select(tbl.c[pw.element_key]).where(
        tbl.c[ROW_SAVED] == SavedStatus.COMPLETE,
        tbl.c[phone.element_key] == phone_number,
    )
    return [r[0] for r in db.execute(stmt).all()]


def add_password(
    db: Session,
    security_table_id: str,
    password: str,
    phone_number: str,
    *,
    saved: str = SavedStatus.COMPLETE,
) -> int:
    table = get_table_by_id(db, security_table_id)
    if table is None:
        raise ValueError(f"Unknown security table: {security_table_id!r}")
    pw, phone = _security_columns(table)
    return add_row(db, table, {pw.element_key: password, phone.element_key: phone_number}, saved=saved)


# ------------------------
# Shortcuts
# ------------------------

def get_shortcuts(db: Session) -> List[ShortcutDefinition]:
    """Every shortcut row, table by table, in stored order."""
    out: List[ShortcutDefinition] = []
    for table in list_tables(db, TableKind.SHORTCUT):
        label = table.column_by_display_name(SHORTCUT_LABEL_COLUMN)
        inp = table.column_by_display_name(SHORTCUT_INPUT_COLUMN)
        outp = table.column_by_display_name(SHORTCUT_OUTPUT_COLUMN)
        if not (label and inp and outp):
            continue
        for name, in_pat, out_pat in query_rows(db, table, [label, inp, outp]):
            if name and in_pat is not None and out_pat is not None:
                out.append(ShortcutDefinition(name=name, input_pattern=in_pat, output_pattern=out_pat))
    return out


def add_shortcut(db: Session, shortcut_table_id: str, name: str, input_pattern: str, output_pattern: str) -> int:
    table = get_table_by_id(db, shortcut_table_id)
    if table is None or table.kind != TableKind.SHORTCUT:
        raise ValueError(f"Unknown shortcut table: {shortcut_table_id!r}")
    label = table.column_by_display_name(SHORTCUT_LABEL_COLUMN)
    inp = table.column_by_display_name(SHORTCUT_INPUT_COLUMN)
    outp = table.column_by_display_name(SHORTCUT_OUTPUT_COLUMN)
    return add_row(
        db,
        table,
        {label.element_key: name, inp.element_key: input_pattern, outp.element_key: output_pattern},
    )
