# database.py
from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from sqlalchemy.orm import Session

from models import SessionLocal


def get_db() -> Session:
    """
    Provide a SQLAlchemy session.
    Caller is responsible for closing, or use db_session().
    """
    return SessionLocal()


@contextmanager
def db_session(factory: Optional[Callable[[], Session]] = None) -> Iterator[Session]:
    db = factory() if factory is not None else get_db()
    try:
        yield db
    finally:
        db.close()
