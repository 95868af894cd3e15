# app.py  - SMS webhook

import logging
from datetime import datetime as _dt
from typing import Any, Dict

from flask import Flask, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError

from config import LOG_LEVEL
from crud import list_tables
from database import db_session
from handlers.messages import MessageHandler
from models import TableKind, init_db
from schemas import InboundMessage
from sms_sender import OutboxSender, build_sender

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)


def get_handler() -> MessageHandler:
    """
    The handler behind the webhook. Built on first use from the environment
    unless app.config["MESSAGE_HANDLER"] was set beforehand.
    """
    handler = app.config.get("MESSAGE_HANDLER")
    if handler is None:
        init_db()
        handler = MessageHandler(build_sender())
        app.config["MESSAGE_HANDLER"] = handler
    return handler


def _inbound_payload() -> Dict[str, Any]:
    """JSON {"message", "from"} or a Twilio-style form post (Body / From)."""
    if request.is_json:
        return request.get_json() or {}
    form = request.form
    return {"message": form.get("Body", form.get("message", "")), "from": form.get("From", form.get("from", ""))}


def _serialize_table(table) -> Dict[str, Any]:
    return {
        "name": table.display_name,
        "id": table.table_id,
        "protected": table.access_control_table_id is not None,
        "columns": [
            {"label": c.user_label, "name": c.display_name, "type": c.column_type.value}
            for c in table.columns
            if c.sms_in
        ],
    }


@app.get('/health')
def health():
    return jsonify({'ok': True, 'service': 'sms-tables', 'time': _dt.now().isoformat()})


# Tiny root route for manual pings
@app.get('/')
def root():
    return jsonify({'status': 'running'})


# JSON/error handler for bad JSON bodies
@app.errorhandler(400)
def handle_400(err):
    return jsonify({'error': 'Bad Request', 'details': getattr(err, 'description', str(err))}), 400


# ---------- routes ----------
@app.route('/sms', methods=['POST', 'OPTIONS'])
def inbound_sms():
    if request.method == 'OPTIONS':
        return ('', 204)
    try:
        inbound = InboundMessage.model_validate(_inbound_payload())
    except ValidationError as e:
        return jsonify({'error': 'Bad Request', 'details': str(e)}), 400

    handler = get_handler()
    handled = handler.handle(inbound.message, inbound.phone_number)
    logger.info("inbound sms from %s handled=%s", inbound.phone_number, handled)
    payload: Dict[str, Any] = {'handled': handled}
    if isinstance(handler.sender, OutboxSender):
        payload['replies'] = handler.sender.pop(inbound.phone_number)
    return jsonify(payload)


@app.get('/tables')
def tables():
    with db_session(get_handler().session_factory) as db:
        refs = list_tables(db, TableKind.DATA)
    return jsonify({'tables': [_serialize_table(t) for t in refs]})


if __name__ == '__main__':
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    get_handler()
    app.run(host='0.0.0.0', port=5000, debug=False)
