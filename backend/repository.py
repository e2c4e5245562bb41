# backend/repository.py
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import or_, update
from sqlalchemy.orm import Session, joinedload

from models import Appointment, Client, service_duration

logger = logging.getLogger(__name__)


def to_utc_naive(instant: datetime) -> datetime:
    """Convert an aware datetime to the naive UTC form stored in the database."""
    if instant.tzinfo is None:
        return instant
    return instant.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class DueReminder:
    """Snapshot of an appointment and its client, detached from the session"""
    appointment_id: int
    client_name: str
    client_phone: Optional[str]
    service_type: str
    start_time: datetime  # aware, UTC


class ReminderClaimStore:
    """
    Reads tomorrow's appointments and records which day a reminder was
    claimed for.

    ``claim`` is a single conditional UPDATE, so two runs racing on the
    same appointment cannot both win it.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def find_due(self, window_start: datetime, window_end: datetime, day_key: str) -> List[DueReminder]:
        db: Session = self.session_factory()
        try:
            appointments = (
                db.query(Appointment)
                .options(joinedload(Appointment.client))
                .filter(
                    Appointment.start_time >= to_utc_naive(window_start),
                    Appointment.start_time <= to_utc_naive(window_end),
                    or_(
                        Appointment.last_reminder_sent_for_day.is_(None),
                        Appointment.last_reminder_sent_for_day != day_key,
                    ),
                )
                .order_by(Appointment.start_time, Appointment.id)
                .all()
            )

            return [
                DueReminder(
                    appointment_id=appointment.id,
                    client_name=appointment.client.name if appointment.client else "",
                    client_phone=appointment.client.phone if appointment.client else None,
                    service_type=appointment.service_type,
                    start_time=appointment.start_time.replace(tzinfo=timezone.utc),
                )
                for appointment in appointments
            ]
        finally:
            db.close()

    def claim(self, appointment_id: int, day_key: str) -> bool:
        """Mark the appointment as reminded for day_key; True only for the caller that won."""
        db: Session = self.session_factory()
        try:
            result = db.execute(
                update(Appointment)
                .where(
                    Appointment.id == appointment_id,
                    or_(
                        Appointment.last_reminder_sent_for_day.is_(None),
                        Appointment.last_reminder_sent_for_day != day_key,
                    ),
                )
                .values(
                    last_reminder_sent_for_day=day_key,
                    last_reminder_sent_at=datetime.utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            db.commit()
            return result.rowcount == 1
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def release(self, appointment_id: int, day_key: str) -> bool:
        """
        Undo a claim so a later run may send again.

        Not used by the scheduler: a failed send keeps its claim. Meant for
        an operator who wants to re-send a reminder by hand.
        """
        db: Session = self.session_factory()
        try:
            result = db.execute(
                update(Appointment)
                .where(
                    Appointment.id == appointment_id,
                    Appointment.last_reminder_sent_for_day == day_key,
                )
                .values(last_reminder_sent_for_day=None, last_reminder_sent_at=None)
                .execution_options(synchronize_session=False)
            )
            db.commit()
            return result.rowcount == 1
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


class AppointmentRepository:
    """Appointment and client persistence used by the HTTP endpoints"""

    def __init__(self, db: Session):
        self.db = db

    def get_client(self, client_id: int) -> Optional[Client]:
        return self.db.query(Client).filter(Client.id == client_id).first()

    def get_client_by_phone(self, phone: str) -> Optional[Client]:
        return self.db.query(Client).filter(Client.phone == phone).first()

    def create_client(self, name: str, phone: str) -> Client:
        client = Client(name=name.strip(), phone=phone.strip())
        self.db.add(client)
        self.db.commit()
        self.db.refresh(client)
        return client

    def get_or_create_client(self, name: str, phone: str) -> Client:
        client = self.get_client_by_phone(phone.strip())
        if client:
            if name and client.name != name.strip():
                client.name = name.strip()
                self.db.commit()
            return client
        return self.create_client(name, phone)

    def delete_client(self, client_id: int) -> bool:
        client = self.get_client(client_id)
        if not client:
            return False
        # Cascades to the client's appointments
        self.db.delete(client)
        self.db.commit()
        return True

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        return (
            self.db.query(Appointment)
            .options(joinedload(Appointment.client))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    def list_appointments(self, start: datetime, end: datetime) -> List[Appointment]:
        return (
            self.db.query(Appointment)
            .options(joinedload(Appointment.client))
            .filter(
                Appointment.start_time >= to_utc_naive(start),
                Appointment.start_time <= to_utc_naive(end),
            )
            .order_by(Appointment.start_time, Appointment.id)
            .all()
        )

    def create_appointment(self, client: Client, service_type: str, start_time: datetime,
                           notes: Optional[str] = None) -> Appointment:
        start = to_utc_naive(start_time)
        appointment = Appointment(
            client_id=client.id,
            service_type=service_type,
            start_time=start,
            end_time=start + service_duration(service_type),
            notes=notes or "",
        )
        self.db.add(appointment)
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"Created appointment {appointment.id} for client {client.id}")
        return appointment

    def update_appointment(self, appointment: Appointment, service_type: Optional[str] = None,
                           start_time: Optional[datetime] = None,
                           notes: Optional[str] = None) -> Appointment:
        if service_type is not None:
            appointment.service_type = service_type
        if start_time is not None:
            appointment.start_time = to_utc_naive(start_time)
        if notes is not None:
            appointment.notes = notes
        if service_type is not None or start_time is not None:
            appointment.end_time = appointment.start_time + service_duration(appointment.service_type)

        self.db.commit()
        self.db.refresh(appointment)
        return appointment

    def delete_appointment(self, appointment_id: int) -> bool:
        appointment = self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not appointment:
            return False
        self.db.delete(appointment)
        self.db.commit()
        return True
