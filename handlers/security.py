# handlers/security.py
"""Password check for tables gated by an access-control table."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from crud import get_passwords
from errors import AuthFailure
from schemas import TableRef

logger = logging.getLogger(__name__)

PASSWORD_MARK = "#"


def _password_index(msg: str) -> Optional[int]:
    """Index of a trailing " #password" delimiter, if the message has one."""
    idx = msg.rfind(PASSWORD_MARK)
    if idx > 0 and msg[idx - 1] == " " and len(msg) > idx + 1:
        return idx
    return None


def extract_password(msg: str) -> str:
    idx = _password_index(msg)
    return msg[idx + 1:] if idx is not None else ""


def strip_password(msg: str) -> str:
    idx = _password_index(msg)
    return msg[:idx].strip() if idx is not None else msg


def check_access(db: Session, table: TableRef, msg: str, phone_number: str) -> None:
    """Raise AuthFailure unless the table is open or the message carries a valid password."""
    if table.access_control_table_id is None:
        return
    password = extract_password(msg)
    if password in get_passwords(db, table.access_control_table_id, phone_number):
        return
    logger.info("access denied to %r for %s", table.display_name, phone_number)
    raise AuthFailure(table.display_name)
