# scripts/seed_demo.py
import sys
from pathlib import Path
# Ensure project root is importable when running from scripts/
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from datetime import date, datetime, time, timedelta

from crud import (
    add_password,
    add_row,
    add_shortcut,
    create_security_table,
    create_shortcut_table,
    create_table,
    get_table_by_id,
)
from datautil import format_interval_for_db
from models import SessionLocal, init_db

START = date.today()
DAYS = 7
DEMO_PHONE = "+15550100"
DEMO_PASSWORD = "secret"


def t(h, m=0):
    return time(h, m)


def slot(d, s, e):
    return format_interval_for_db(datetime.combine(d, s), datetime.combine(d, e))


def main():
    # Ensure metadata tables exist
    init_db()

    db = SessionLocal()
    try:
        if get_table_by_id(db, "appts") is not None:
            print("Demo tables already present; nothing to do.")
            return

        # 1) Password table gating the calendar
        create_security_table(db, "passwords")
        add_password(db, "passwords", DEMO_PASSWORD, DEMO_PHONE)

        # 2) Data tables
        appts = create_table(
            db,
            "appts",
            [
                {"element_key": "title", "user_label": "what", "sms_label": "w"},
                {"element_key": "slot", "user_label": "when", "column_type": "date_range"},
                {"element_key": "room", "user_label": "where"},
            ],
            access_control_table_id="passwords",
        )
        people = create_table(
            db,
            "people",
            [
                {"element_key": "name", "user_label": "name"},
                {"element_key": "age", "user_label": "age", "column_type": "number"},
                {"element_key": "born", "user_label": "born", "column_type": "date"},
            ],
        )

        # 3) Shortcuts
        create_shortcut_table(db, "shortcuts")
        add_shortcut(db, "shortcuts", "free", "%day%", "@appts /when 30m =when %day% #" + DEMO_PASSWORD)
        add_shortcut(db, "shortcuts", "book", "%what% at %when%", "@appts +what %what% +when %when%")
        add_shortcut(db, "shortcuts", "older", "%age%", "@people ?name ?age >age %age% ~age")

        # 4) Rows: a few blocks per day
        d = START
        for _ in range(DAYS):
            add_row(db, appts, {"title": "Morning stand-up", "slot": slot(d, t(9), t(10)), "room": "A"})
            add_row(db, appts, {"title": "Lunch", "slot": slot(d, t(12), t(13))})
            if d.weekday() < 5:
                add_row(db, appts, {"title": "Review", "slot": slot(d, t(15), t(16, 30)), "room": "B"})
            d += timedelta(days=1)

        for name, age, born in (("Al", "30", "1995-02-11"), ("Bo", "40", "1985-06-01"), ("Cy", "25", "2000-12-24")):
            add_row(db, people, {"name": name, "age": age, "born": born + "T00:00:00"})

        print(f"Seed complete. Try '@free today' or '@older 28' from {DEMO_PHONE}.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
