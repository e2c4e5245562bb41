# backend/models.py
import enum
from datetime import datetime, timedelta

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from database import Base


class ServiceType(str, enum.Enum):
    MANICURE = "MANICURE"
    PEDICURE = "PEDICURE"
    BOTH_BASIC = "BOTH_BASIC"
    BOTH_FULL = "BOTH_FULL"
    EYEBROWS = "EYEBROWS"
    LASHES = "LASHES"


# Minutes per service
SERVICE_DURATIONS = {
    ServiceType.MANICURE: 30,
    ServiceType.PEDICURE: 45,
    ServiceType.BOTH_BASIC: 60,
    ServiceType.BOTH_FULL: 90,
    ServiceType.EYEBROWS: 30,
    ServiceType.LASHES: 120,
}


LEGACY_SERVICE_DURATION = 60


def service_duration(service_type) -> timedelta:
    try:
        minutes = SERVICE_DURATIONS[ServiceType(service_type)]
    except ValueError:
        # Older MANICURE/PEDICURE/BOTH rows
        minutes = LEGACY_SERVICE_DURATION
    return timedelta(minutes=minutes)


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=False, unique=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    appointments = relationship(
        "Appointment",
        back_populates="client",
        cascade="all, delete-orphan",
        order_by="Appointment.start_time",
    )


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    # Stored as a plain string so rows from the older MANICURE/PEDICURE/BOTH set still load
    service_type = Column(String, nullable=False)
    # Naive UTC instants
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    notes = Column(Text, default="")
    last_reminder_sent_for_day = Column(String(10))  # YYYY-MM-DD
    last_reminder_sent_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    client = relationship("Client", back_populates="appointments")

    __table_args__ = (
        Index("ix_appointments_client_start", "client_id", "start_time"),
        Index("ix_appointments_reminder_day_start", "last_reminder_sent_for_day", "start_time"),
    )
