"""
Shared pytest fixtures.
"""
import sys
import os
from typing import Generator

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add backend directory to sys.path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../backend"))

from app.database import Base, set_sqlite_pragma
from app.models import Conversation, Message, ModelQuestion, PredefinedQuestion, ScooterModel  # noqa: F401  registers tables
from app.services.chat_session import ChatContext
from app.services.notifications import RecordingNotificationSink
from app.services.scheduler import ManualScheduler
from app.services.storage_service import LocalBlobStorage

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of a test."""
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", set_sqlite_pragma)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def test_db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def db_session(test_db):
    """Alias for test_db for clarity"""
    return test_db


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def storage(tmp_path) -> LocalBlobStorage:
    return LocalBlobStorage(str(tmp_path / "blobs"), "http://testserver/files")


@pytest.fixture
def notifier() -> RecordingNotificationSink:
    return RecordingNotificationSink()


@pytest.fixture
def chat_context(session_factory, scheduler, storage, notifier):
    context = ChatContext.build(
        session_factory=session_factory,
        scheduler=scheduler,
        storage=storage,
        notifier=notifier,
        auto_reply_delay=1.0,
        typing_timeout=3.0,
    )
    yield context
    context.close()


@pytest.fixture
def conversation(test_db, chat_context) -> Conversation:
    """A conversation owned by USER_ID."""
    return chat_context.conversations.create_conversation(test_db, USER_ID, "Support Chat")


@pytest.fixture
def scooter_models(test_db):
    """Two active scooter models with overlapping questions and one retired model."""
    test_db.add_all(
        [
            ScooterModel(
                id="glide-200", model_name="Glide 200", model_code="G200",
                max_speed=25, range_km=40, motor_power="350W", price=499.0,
            ),
            ScooterModel(
                id="apex-500", model_name="Apex 500", model_code="A500",
                max_speed=45, range_km=70, motor_power="1000W", price=1299.0,
            ),
            ScooterModel(id="retro-1", model_name="Retro 1", model_code="R1", is_active=False),
        ]
    )
    test_db.add_all(
        [
            ModelQuestion(
                id="g200-speed", model_id="glide-200", question="What is the top speed?",
                answer="The Glide 200 reaches 25 km/h.", question_type="specification",
                category="Performance", display_order=0,
            ),
            ModelQuestion(
                id="g200-beep", model_id="glide-200", question="Why does my scooter beep?",
                answer="Three beeps mean the battery is below 10%.", question_type="troubleshooting",
                category="Alerts", display_order=1,
            ),
            ModelQuestion(
                id="g200-old", model_id="glide-200", question="Is there a seat kit?",
                answer="Discontinued.", question_type="compatibility", category="Accessories",
                is_active=False,
            ),
            ModelQuestion(
                id="a500-speed", model_id="apex-500", question="What is the top speed?",
                answer="The Apex 500 reaches 45 km/h.", question_type="specification",
                category="Performance", display_order=0,
            ),
        ]
    )
    test_db.commit()
    return ["glide-200", "apex-500"]
