# backend/main.py
from fastapi import FastAPI, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime, date as date_type
from contextlib import asynccontextmanager
import logging

from config import get_settings
from database import get_db, engine, Base, SessionLocal
from repository import AppointmentRepository, ReminderClaimStore
from schemas import (
    ClientCreate, ClientResponse,
    AppointmentCreate, AppointmentUpdate, AppointmentResponse,
    ReminderRunResponse, ScheduledJobsResponse,
)
from scheduler import ReminderScheduler
from timeutils import BusinessClock
from whatsapp import WhatsAppSender

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings = get_settings()
clock = BusinessClock.from_settings(settings)
reminder_scheduler: Optional[ReminderScheduler] = None

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Nail Salon Appointments API...")
    global reminder_scheduler
    Base.metadata.create_all(bind=engine)
    reminder_scheduler = ReminderScheduler.from_settings(
        settings,
        claim_store=ReminderClaimStore(SessionLocal),
        sender=WhatsAppSender.from_settings(settings),
        clock=clock,
    )
    if settings.scheduler_enabled:
        reminder_scheduler.start()
    yield
    # Shutdown
    logger.info("Shutting down Nail Salon Appointments API...")
    if reminder_scheduler:
        reminder_scheduler.shutdown()

app = FastAPI(
    title="Nail Salon Appointments API",
    version="1.0.0",
    description="Appointment booking backend with WhatsApp reminders",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

def get_clock() -> BusinessClock:
    return clock

def get_reminder_scheduler() -> ReminderScheduler:
    if reminder_scheduler is None:
        raise HTTPException(status_code=503, detail="Reminder scheduler not initialized")
    return reminder_scheduler

def _as_local(value: datetime, business_clock: BusinessClock) -> datetime:
    # Naive input is salon wall-clock time
    if value.tzinfo is None:
        return value.replace(tzinfo=business_clock.tzinfo)
    return value

# REST endpoints
@app.get("/")
async def root():
    return {"message": "Appointments API Server", "status": "running"}

@app.get("/api/health")
async def health_check(business_clock: BusinessClock = Depends(get_clock)):
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow(),
        "service": "Nail Salon Appointments",
        "timezone": str(business_clock.tzinfo),
        "timezone_fallback": business_clock.uses_offset_fallback,
        "whatsapp": "configured" if settings.ultramsg_token and settings.ultramsg_instance_id else "not configured",
        "scheduler": "running" if reminder_scheduler and reminder_scheduler.is_running else "stopped"
    }

# Reminder endpoints
@app.post("/api/reminders/send-tomorrow", response_model=ReminderRunResponse)
async def send_tomorrow_reminders(scheduler: ReminderScheduler = Depends(get_reminder_scheduler)):
    """Run the reminder batch now; the daily job runs the same logic."""
    try:
        summary = await scheduler.run_reminder_batch_now()
    except Exception as e:
        logger.error(f"Error sending reminders: {e}")
        raise HTTPException(status_code=500, detail="Failed to send reminders")

    if summary.skipped_rest_day:
        message = f"No reminders sent: {summary.target_day} is a rest day"
    else:
        message = f"Reminders for {summary.target_day} processed"

    return ReminderRunResponse(message=message, **summary.to_dict())

@app.get("/api/reminders/jobs", response_model=ScheduledJobsResponse)
async def get_reminder_jobs(scheduler: ReminderScheduler = Depends(get_reminder_scheduler)):
    return {
        "scheduler": "running" if scheduler.is_running else "stopped",
        "jobs": scheduler.get_scheduled_jobs(),
    }

# Client endpoints
@app.post("/api/clients", response_model=ClientResponse, status_code=201)
async def create_client(client: ClientCreate, db: Session = Depends(get_db)):
    repo = AppointmentRepository(db)
    if repo.get_client_by_phone(client.phone.strip()):
        raise HTTPException(status_code=409, detail="A client with this phone already exists")
    return repo.create_client(client.name, client.phone)

@app.get("/api/clients/{client_id}", response_model=ClientResponse)
async def get_client(client_id: int, db: Session = Depends(get_db)):
    client = AppointmentRepository(db).get_client(client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client

@app.delete("/api/clients/{client_id}")
async def delete_client(client_id: int, db: Session = Depends(get_db)):
    if not AppointmentRepository(db).delete_client(client_id):
        raise HTTPException(status_code=404, detail="Client not found")
    return {"message": "Client deleted", "id": client_id}

# Appointment endpoints
@app.get("/api/appointments", response_model=List[AppointmentResponse])
async def get_appointments(
    date: str,
    db: Session = Depends(get_db),
    business_clock: BusinessClock = Depends(get_clock)
):
    try:
        day = date_type.fromisoformat(date)
    except ValueError:
        raise HTTPException(status_code=400, detail="Date must be YYYY-MM-DD")

    bounds = business_clock.day_bounds(day)
    appointments = AppointmentRepository(db).list_appointments(bounds.start, bounds.end)
    return [AppointmentResponse.from_model(a) for a in appointments]

@app.get("/api/appointments/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(appointment_id: int, db: Session = Depends(get_db)):
    appointment = AppointmentRepository(db).get_appointment(appointment_id)
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return AppointmentResponse.from_model(appointment)

@app.post("/api/appointments", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    appointment: AppointmentCreate,
    db: Session = Depends(get_db),
    business_clock: BusinessClock = Depends(get_clock)
):
    repo = AppointmentRepository(db)
    # First booking creates the client
    client = repo.get_or_create_client(appointment.name, appointment.phone)
    db_appointment = repo.create_appointment(
        client,
        appointment.service_type.value,
        _as_local(appointment.start_time, business_clock),
        appointment.notes,
    )
    return AppointmentResponse.from_model(db_appointment)

@app.put("/api/appointments/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    changes: AppointmentUpdate,
    db: Session = Depends(get_db),
    business_clock: BusinessClock = Depends(get_clock)
):
    repo = AppointmentRepository(db)
    appointment = repo.get_appointment(appointment_id)
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")

    updated = repo.update_appointment(
        appointment,
        service_type=changes.service_type.value if changes.service_type else None,
        start_time=_as_local(changes.start_time, business_clock) if changes.start_time else None,
        notes=changes.notes,
    )
    return AppointmentResponse.from_model(updated)

@app.delete("/api/appointments/{appointment_id}")
async def delete_appointment(appointment_id: int, db: Session = Depends(get_db)):
    if not AppointmentRepository(db).delete_appointment(appointment_id):
        raise HTTPException(status_code=404, detail="Appointment not found")
    return {"message": "Appointment deleted", "id": appointment_id}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=4002)
