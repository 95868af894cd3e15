# handlers/messages.py
"""
Inbound text command pipeline:

    expand shortcuts -> find table -> ADD or QUERY -> password check
    -> parse -> run against the store -> reply

Rejections are silent: nothing is sent back and handle() returns False.
"""

import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from command_parser import classify, find_target, parse_command
from config import ROW_LIMIT
from constraints import partition_constraints
from crud import add_row, get_shortcuts, list_tables, query_rows
from database import db_session
from errors import AuthFailure, MalformedCommand, NotRecognized
from handlers.responses import format_free_intervals, format_rows
from handlers.security import check_access, strip_password
from models import TableKind
from scheduler.free_slots import resolve_free_slots
from schemas import AddCommand, Ordering, QueryCommand, TableRef
from shortcuts import expand, is_candidate
from sms_sender import SMSSendError, SMSSender

logger = logging.getLogger(__name__)


class MessageHandler:
    def __init__(
        self,
        sender: SMSSender,
        session_factory: Optional[Callable[[], Session]] = None,
        row_limit: int = ROW_LIMIT,
    ):
        self.sender = sender
        self.session_factory = session_factory
        self.row_limit = row_limit

    def handle(self, raw_message: str, phone_number: str) -> bool:
        """
        Process one inbound message. True if it was addressed to a table and
        processed (including a failed password check), False otherwise.
        """
        msg = (raw_message or "").strip()
        logger.debug("handling message: %s", msg)
        if not is_candidate(msg):
            logger.debug("not a command: %r", msg)
            return False
        try:
            with db_session(self.session_factory) as db:
                return self._process(db, msg, phone_number)
        except (NotRecognized, MalformedCommand) as e:
            logger.info("ignoring message from %s: %s", phone_number, e)
            return False
        except AuthFailure:
            return True
        except (SQLAlchemyError, SMSSendError):
            logger.exception("failed to process message from %s", phone_number)
            return False

    def _process(self, db: Session, msg: str, phone_number: str) -> bool:
        # Metadata and shortcuts are re-read for every message.
        msg = expand(msg, get_shortcuts(db))
        logger.debug("standardized message is: %s", msg)
        table = find_target(msg, list_tables(db, TableKind.DATA))
        classify(msg)  # shape check before the password lookup
        check_access(db, table, msg, phone_number)
        cmd = parse_command(strip_password(msg), table)
        if isinstance(cmd, AddCommand):
            return self._handle_add(db, table, cmd, phone_number)
        return self._handle_query(db, table, cmd, phone_number)

    def _handle_add(self, db: Session, table: TableRef, cmd: AddCommand, phone_number: str) -> bool:
        row_id = add_row(db, table, cmd.values, phone_number=phone_number)
        logger.info("added row %s to %r from %s", row_id, table.display_name, phone_number)
        return True

    def _handle_query(self, db: Session, table: TableRef, cmd: QueryCommand, phone_number: str) -> bool:
        if cmd.free_slot is not None:
            resp = self._free_slot_response(db, table, cmd)
        else:
            resp = self._simple_response(db, table, cmd)
        self.sender.send_with_cutoff(phone_number, resp)
        return True

    def _simple_response(self, db: Session, table: TableRef, cmd: QueryCommand) -> str:
        columns = [c for c in cmd.projections if c.persisted]
        if not columns:
            raise MalformedCommand("query selects no stored columns")
        rows = query_rows(db, table, columns, cmd.constraints, cmd.ordering, limit=self.row_limit)
        return format_rows(columns, rows, self.row_limit)

    def _free_slot_response(self, db: Session, table: TableRef, cmd: QueryCommand) -> str:
        slot = cmd.free_slot
        own, others = partition_constraints(cmd.constraints, slot.column)
        rows = query_rows(db, table, [slot.column], others, Ordering(column=slot.column))
        intervals = resolve_free_slots([r[0] for r in rows], own, slot.min_duration_seconds)
        return format_free_intervals(intervals)
