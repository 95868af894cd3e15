# models.py
from __future__ import annotations

from typing import List, Optional, Set

from sqlalchemy import (
    create_engine,
    Column,
    Integer,
    String,
    Text,
    Boolean,
    DateTime,
    MetaData,
    Table,
    func,
    ForeignKey,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import declarative_base, sessionmaker, relationship

from config import DATABASE_URL
from schemas import ColumnRef, TableRef

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

Base = declarative_base()


class TableKind:
    DATA = "data"
    SHORTCUT = "shortcut"
    SECURITY = "security"

    ALL = (DATA, SHORTCUT, SECURITY)


class SavedStatus:
    COMPLETE = "COMPLETE"
    INCOMPLETE = "INCOMPLETE"


# System columns present on every physical row table.
ROW_ID = "_id"
ROW_SAVED = "_saved"
ROW_PHONE_NUMBER = "_phone_number"
ROW_TIMESTAMP = "_timestamp"

# Fixed display names for shortcut and access-control tables.
SHORTCUT_LABEL_COLUMN = "label"
SHORTCUT_INPUT_COLUMN = "input"
SHORTCUT_OUTPUT_COLUMN = "output"
PASSWORD_COLUMN = "password"
PHONE_NUMBER_COLUMN = "phone_number"


class TableDefinition(Base):
    __tablename__ = "table_definitions"

    id = Column(Integer, primary_key=True, index=True)
    table_id = Column(String(100), nullable=False, unique=True, index=True)
    display_name = Column(String(200), nullable=False, index=True)
    kind = Column(String(20), nullable=False, default=TableKind.DATA)
    # table_id of a security table gating this one
    access_control_table_id = Column(String(100), nullable=True)

    created_at = Column(DateTime, nullable=True, server_default=func.now())
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())

    columns = relationship(
        "ColumnDefinition",
        back_populates="table",
        order_by="ColumnDefinition.position",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<TableDefinition(table_id={self.table_id!r}, display_name={self.display_name!r}, "
            f"kind={self.kind!r}, access_control_table_id={self.access_control_table_id!r})>"
        )

    def to_ref(self) -> TableRef:
        return TableRef(
            table_id=self.table_id,
            display_name=self.display_name,
            kind=self.kind,
            access_control_table_id=self.access_control_table_id,
            columns=[c.to_ref() for c in self.columns],
        )


class ColumnDefinition(Base):
    __tablename__ = "column_definitions"

    id = Column(Integer, primary_key=True, index=True)
    table_pk = Column(Integer, ForeignKey("table_definitions.id"), nullable=False, index=True)
    element_key = Column(String(100), nullable=False)
    display_name = Column(String(200), nullable=False)
    user_label = Column(String(100), nullable=False)
    column_type = Column(String(20), nullable=False, default="text")
    sms_in = Column(Boolean, nullable=False, default=True)
    sms_label = Column(String(50), nullable=True)
    persisted = Column(Boolean, nullable=False, default=True)
    position = Column(Integer, nullable=False, default=0)

    table = relationship("TableDefinition", back_populates="columns")

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<ColumnDefinition(element_key={self.element_key!r}, user_label={self.user_label!r}, "
            f"column_type={self.column_type!r})>"
        )

    def to_ref(self) -> ColumnRef:
        return ColumnRef(
            element_key=self.element_key,
            display_name=self.display_name,
            user_label=self.user_label,
            column_type=self.column_type,
            sms_in=bool(self.sms_in),
            sms_label=self.sms_label,
            persisted=bool(self.persisted),
        )


# ----------------------------
# Row storage
# ----------------------------
def row_table(table: TableRef, metadata: Optional[MetaData] = None) -> Table:
    """
    Build the Core Table holding a user table's rows.
    Rebuilt on every call from the current column metadata.
    """
    md = metadata if metadata is not None else MetaData()
    cols = [
        Column(ROW_ID, Integer, primary_key=True, autoincrement=True),
        Column(ROW_SAVED, String(20), nullable=False, default=SavedStatus.COMPLETE),
        Column(ROW_PHONE_NUMBER, String(50), nullable=True),
        Column(ROW_TIMESTAMP, String(32), nullable=True),
    ]
    cols.extend(Column(c.element_key, Text, nullable=True) for c in table.columns if c.persisted)
    return Table(table.table_id, md, *cols)


# ----------------------------
# Utilities
# ----------------------------
def init_db(bind: Optional[Engine] = None) -> None:
    """
    Creates the metadata tables if they don't exist.
    Row tables are created per table definition by ensure_row_table().
    """
    Base.metadata.create_all(bind=bind or engine)


def _existing_columns(conn: Connection, table_name: str) -> Set[str]:
    rows = conn.exec_driver_sql(f'PRAGMA table_info("{table_name}");').fetchall()
    # PRAGMA table_info columns: (cid, name, type, notnull, dflt_value, pk)
    return {r[1] for r in rows}


def ensure_row_table(conn: Connection, table: TableRef) -> Table:
    """
    Creates the row table for `table` and adds any persisted columns declared
    since it was created. Re-runnable (no-ops if already applied).
    """
    tbl = row_table(table)
    tbl.create(bind=conn, checkfirst=True)

    if conn.dialect.name != "sqlite":
        return tbl

    cols = _existing_columns(conn, table.table_id)
    to_add: List[str] = []
    for c in table.columns:
        if c.persisted and c.element_key not in cols:
            to_add.append(f'ALTER TABLE "{table.table_id}" ADD COLUMN "{c.element_key}" TEXT;')

    for stmt in to_add:
        conn.exec_driver_sql(stmt)
    return tbl
