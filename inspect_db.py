# inspect_db.py
from __future__ import annotations

import argparse
from typing import List

from crud import get_table_by_display_name, get_table_by_id, list_tables, query_rows
from database import db_session
from models import TableKind, init_db
from schemas import ColumnRef, Ordering, TableRef


def _columns(table: TableRef) -> List[ColumnRef]:
    return [c for c in table.columns if c.persisted]


def print_tables() -> None:
    with db_session() as db:
        tables = list_tables(db)
    if not tables:
        print("No tables defined.")
        return
    print(f"{'ID':<20}  {'KIND':<9}  {'NAME':<20}  COLUMNS")
    print("-" * 70)
    for t in tables:
        labels = " ".join(f"{c.user_label}:{c.column_type.value}" for c in t.columns)
        print(f"{t.table_id:<20}  {t.kind:<9}  {t.display_name:<20}  {labels}")


def print_rows(name: str, limit: int, order_by: str = "") -> None:
    with db_session() as db:
        table = get_table_by_id(db, name)
        if table is None:
            for kind in TableKind.ALL:
                table = get_table_by_display_name(db, name, kind)
                if table is not None:
                    break
        if table is None:
            print(f"No table named {name!r}.")
            return

        cols = _columns(table)
        ordering = None
        if order_by:
            col = table.column_by_user_label(order_by.lstrip("-"))
            if col is None:
                raise SystemExit(f"Unknown column label: {order_by.lstrip('-')!r}")
            ordering = Ordering(column=col, descending=order_by.startswith("-"))
        rows = query_rows(db, table, cols, ordering=ordering, limit=limit)

    if not rows:
        print(f"No rows found in {table.display_name!r}.")
        return

    # Pretty print
    print("  |  ".join(c.user_label for c in cols))
    print("-" * 70)
    for r in rows:
        print("  |  ".join("" if v is None else str(v) for v in r))
    print("-" * 70)
    print(f"{len(rows)} row(s).")


def main():
    parser = argparse.ArgumentParser(
        description="List table definitions or print the rows of one table."
    )
    parser.add_argument("table", nargs="?", help="Table id or display name (omit to list tables)")
    parser.add_argument("--order-by", default="", help="Column label to sort by; prefix with - for descending")
    parser.add_argument("--limit", type=int, default=200, help="Max rows (default 200)")
    args = parser.parse_args()

    init_db()
    if args.table:
        print_rows(args.table, args.limit, args.order_by)
    else:
        print_tables()


if __name__ == "__main__":
    main()
