# tests/conftest.py
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from crud import add_password, create_security_table, create_table
from handlers.messages import MessageHandler
from models import init_db
from sms_sender import OutboxSender

PHONE = "+15550100"


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def people(db):
    """Open table t(name text, age number)."""
    return create_table(
        db,
        "t",
        [
            {"element_key": "name"},
            {"element_key": "age", "column_type": "number"},
        ],
    )


@pytest.fixture
def calendar(db):
    """Open table cal(what text, when date_range)."""
    return create_table(
        db,
        "cal",
        [
            {"element_key": "what"},
            {"element_key": "slot", "user_label": "when", "column_type": "date_range"},
        ],
    )


@pytest.fixture
def locked(db):
    """Table vault(age number) gated by password "secret" for PHONE."""
    create_security_table(db, "pw")
    add_password(db, "pw", "secret", PHONE)
    return create_table(
        db,
        "vault",
        [{"element_key": "age", "column_type": "number"}],
        access_control_table_id="pw",
    )


@pytest.fixture
def outbox():
    return OutboxSender()


@pytest.fixture
def handler(outbox, session_factory):
    return MessageHandler(outbox, session_factory=session_factory)
