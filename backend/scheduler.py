# backend/scheduler.py
import asyncio
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Callable, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from composer import service_label
from phone import is_dialable, normalize_phone
from repository import DueReminder, ReminderClaimStore
from timeutils import BusinessClock, WEEKDAY_NAMES
from whatsapp import WhatsAppSender

logger = logging.getLogger(__name__)

JOB_ID = "send_tomorrow_reminders"


@dataclass
class ReminderRunSummary:
    target_day: str
    skipped_rest_day: bool = False
    candidates: int = 0
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class ReminderScheduler:
    """
    Sends WhatsApp reminders the evening before each appointment.

    A daily cron job and the manual "run now" endpoint both call
    ``run_reminder_batch_now``. They may overlap; duplicate sends are
    prevented by the claim store, not by a lock.
    """

    def __init__(
        self,
        claim_store: ReminderClaimStore,
        sender: WhatsAppSender,
        clock: BusinessClock,
        default_country_code: str = "970",
        language: str = "ar",
        rest_day: Optional[int] = 0,
        reminder_hour: int = 20,
        reminder_minute: int = 0,
        send_delay_seconds: float = 0.0,
        min_phone_length: int = 11,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.scheduler = AsyncIOScheduler(timezone=clock.tzinfo)
        self.claim_store = claim_store
        self.sender = sender
        self.clock = clock
        self.default_country_code = default_country_code
        self.language = language
        self.rest_day = rest_day
        self.reminder_hour = reminder_hour
        self.reminder_minute = reminder_minute
        self.send_delay_seconds = send_delay_seconds
        self.min_phone_length = min_phone_length
        self._now = now or clock.now
        self.is_running = False

    @classmethod
    def from_settings(cls, settings, claim_store: ReminderClaimStore, sender: WhatsAppSender,
                      clock: Optional[BusinessClock] = None) -> "ReminderScheduler":
        return cls(
            claim_store=claim_store,
            sender=sender,
            clock=clock or BusinessClock.from_settings(settings),
            default_country_code=settings.country_code_digits,
            language=settings.reminder_language,
            rest_day=settings.rest_day,
            reminder_hour=settings.reminder_hour,
            reminder_minute=settings.reminder_minute,
            send_delay_seconds=settings.send_delay_seconds,
            min_phone_length=settings.min_phone_length,
        )

    def start(self):
        """Start the scheduler"""
        if self.is_running:
            logger.warning("Scheduler is already running")
            return

        self._schedule_tasks()

        self.scheduler.start()
        self.is_running = True
        logger.info("Scheduler started successfully")

    def shutdown(self):
        """Shutdown the scheduler"""
        if not self.is_running:
            return

        self.scheduler.shutdown()
        self.is_running = False
        logger.info("Scheduler shut down")

    def _schedule_tasks(self):
        self.scheduler.add_job(
            self._scheduled_run,
            trigger=CronTrigger(
                hour=self.reminder_hour,
                minute=self.reminder_minute,
                timezone=self.clock.tzinfo,
            ),
            id=JOB_ID,
            name="Send Tomorrow's Appointment Reminders",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        logger.info(
            f"Reminders scheduled daily at {self.reminder_hour:02d}:{self.reminder_minute:02d} "
            f"({self.clock.tzinfo})"
        )

    async def _scheduled_run(self):
        try:
            await self.run_reminder_batch_now()
        except Exception as e:
            logger.error(f"Error in scheduled reminder run: {e}")

    async def run_reminder_batch_now(self) -> ReminderRunSummary:
        """
        Send reminders for every appointment tomorrow (salon local time).

        Per-appointment failures are counted in the summary. Errors while
        loading the appointments propagate to the caller.
        """
        window = self.clock.tomorrow_window(self._now())
        summary = ReminderRunSummary(target_day=window.day_key)
        logger.info(f"Running: Send reminders for {window.day_key}")

        if self.rest_day is not None and window.weekday_index == self.rest_day:
            summary.skipped_rest_day = True
            day_name = WEEKDAY_NAMES["en"][window.weekday_index]
            logger.info(f"Skipping reminders: {window.day_key} is a rest day ({day_name})")
            return summary

        due = self.claim_store.find_due(window.start, window.end, window.day_key)
        summary.candidates = len(due)

        if not due:
            logger.info("No appointments for tomorrow.")
            return summary

        logger.info(f"Found {len(due)} appointments for tomorrow")

        for index, reminder in enumerate(due):
            sent = await self._process(reminder, window.day_key, summary)
            if sent and self.send_delay_seconds and index < len(due) - 1:
                await asyncio.sleep(self.send_delay_seconds)

        logger.info(
            f"Finished reminders for {window.day_key}: {summary.succeeded} sent, "
            f"{summary.failed} failed, {summary.skipped} skipped"
        )
        return summary

    async def _process(self, reminder: DueReminder, day_key: str, summary: ReminderRunSummary) -> bool:
        """Handle one appointment; returns True when a send was attempted."""
        try:
            phone = normalize_phone(reminder.client_phone, self.default_country_code)
            if not is_dialable(phone, self.min_phone_length):
                logger.info(
                    f"Skipping reminder for appointment {reminder.appointment_id} - no usable phone number"
                )
                summary.skipped += 1
                return False

            if not self.claim_store.claim(reminder.appointment_id, day_key):
                # Another run already took this one
                summary.skipped += 1
                return False

            summary.attempted += 1
            formatted = self.clock.format_instant(reminder.start_time, self.language)
            sent = await self.sender.send_reminder(
                phone,
                reminder.client_name,
                formatted.date,
                formatted.time,
                service_label(reminder.service_type, self.language),
                formatted.weekday,
                self.language,
            )
        except Exception as e:
            summary.failed += 1
            logger.error(f"Error sending reminder for appointment {reminder.appointment_id}: {e}")
            return False

        if sent:
            summary.succeeded += 1
            logger.info(f"Reminder sent to {reminder.client_name} ({phone})")
        else:
            summary.failed += 1
            logger.error(f"Failed to send reminder to {reminder.client_name} ({phone})")
        return True

    def get_scheduled_jobs(self) -> List[dict]:
        """Get list of scheduled jobs"""
        jobs = []
        for job in self.scheduler.get_jobs():
            # Pending jobs have no next_run_time until the scheduler starts
            next_run = getattr(job, 'next_run_time', None)
            jobs.append({
                'id': job.id,
                'name': job.name,
                'next_run': next_run.isoformat() if next_run else None,
                'trigger': str(job.trigger)
            })
        return jobs
