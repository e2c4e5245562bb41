"""
Shared pytest fixtures.

The environment is set before any backend module is imported so that the
module-level engine and settings never touch a real database or provider.
"""

import os
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ.pop("ULTRAMSG_TOKEN", None)
os.environ.pop("ULTRAMSG_INSTANCE_ID", None)

from database import Base  # noqa: E402
from models import Appointment, Client, service_duration  # noqa: E402
from repository import ReminderClaimStore  # noqa: E402
from timeutils import BusinessClock  # noqa: E402
from whatsapp import WhatsAppSender  # noqa: E402


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture
def engine():
    """In-memory SQLite shared across sessions."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def claim_store(session_factory):
    return ReminderClaimStore(session_factory)


@pytest.fixture
def make_appointment(db_session):
    """Factory that stores a client and one appointment (start given in UTC)."""

    def _make(start_utc="2024-06-04T08:30:00", name="Lina", phone="0599123456",
              service_type="MANICURE", last_day=None):
        client = db_session.query(Client).filter(Client.phone == phone).first()
        if client is None:
            client = Client(name=name, phone=phone)
            db_session.add(client)
            db_session.flush()

        start = datetime.fromisoformat(start_utc)
        appointment = Appointment(
            client_id=client.id,
            service_type=service_type,
            start_time=start,
            end_time=start + service_duration(service_type),
            last_reminder_sent_for_day=last_day,
        )
        db_session.add(appointment)
        db_session.commit()
        return appointment

    return _make


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def offset_clock():
    """Clock with no tz data, fixed at UTC+2."""
    return BusinessClock([], utc_offset_minutes=120)


@pytest.fixture
def utc_clock():
    return BusinessClock([], utc_offset_minutes=0)


@pytest.fixture
def whatsapp_sender():
    return WhatsAppSender(
        instance_id="12345",
        token="test_token",
        media_url="https://example.com/logo.png",
        api_base="https://api.ultramsg.com",
        timeout=5.0,
    )


@pytest.fixture
def mock_sender():
    sender = MagicMock(spec=WhatsAppSender)
    sender.send_reminder = AsyncMock(return_value=True)
    return sender
