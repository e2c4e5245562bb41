# backend/schemas.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime, timezone
from typing import Optional, List

from models import ServiceType


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# Client schemas
class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=3)

class ClientResponse(BaseModel):
    id: int
    name: str
    phone: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# Appointment schemas
class AppointmentCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=3)
    service_type: ServiceType
    # Naive values are taken as salon local time
    start_time: datetime
    notes: Optional[str] = None

class AppointmentUpdate(BaseModel):
    service_type: Optional[ServiceType] = None
    start_time: Optional[datetime] = None
    notes: Optional[str] = None

class AppointmentResponse(BaseModel):
    id: int
    client_id: int
    client_name: str
    client_phone: str
    service_type: str
    start_time: datetime
    end_time: datetime
    notes: Optional[str] = None
    last_reminder_sent_for_day: Optional[str] = None
    last_reminder_sent_at: Optional[datetime] = None

    @field_validator("start_time", "end_time", "last_reminder_sent_at")
    @classmethod
    def attach_utc(cls, value):
        # Stored as naive UTC
        return _utc(value)

    @classmethod
    def from_model(cls, appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            client_id=appointment.client_id,
            client_name=appointment.client.name,
            client_phone=appointment.client.phone,
            service_type=appointment.service_type,
            start_time=appointment.start_time,
            end_time=appointment.end_time,
            notes=appointment.notes,
            last_reminder_sent_for_day=appointment.last_reminder_sent_for_day,
            last_reminder_sent_at=appointment.last_reminder_sent_at,
        )

# Reminder schemas
class ReminderRunResponse(BaseModel):
    success: bool = True
    message: str
    target_day: str
    skipped_rest_day: bool
    candidates: int
    attempted: int
    succeeded: int
    failed: int
    skipped: int

class ScheduledJob(BaseModel):
    id: str
    name: str
    next_run: Optional[str] = None
    trigger: str

class ScheduledJobsResponse(BaseModel):
    scheduler: str
    jobs: List[ScheduledJob]
