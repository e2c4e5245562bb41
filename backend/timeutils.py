# backend/timeutils.py
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

# Index 0 = Sunday
WEEKDAY_NAMES = {
    "ar": ("الأحد", "الإثنين", "الثلاثاء", "الأربعاء", "الخميس", "الجمعة", "السبت"),
    "en": ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"),
}

DAY_PERIODS = {
    "ar": ("ص", "م"),
    "en": ("AM", "PM"),
}

END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class FormattedDateTime:
    date: str
    time: str
    weekday: str


@dataclass(frozen=True)
class ReminderWindow:
    start: datetime
    end: datetime
    day_key: str
    weekday_index: int  # 0 = Sunday


def sunday_based_weekday(day: date) -> int:
    return day.isoweekday() % 7


def _table_for(lang: str, tables: dict):
    return tables["ar"] if lang == "ar" else tables["en"]


def timezone_available(name: Optional[str]) -> bool:
    """Check whether the runtime has tz data for the given zone name."""
    if not name:
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def resolve_timezone(candidates: Iterable[str]) -> Optional[ZoneInfo]:
    """Return the first usable zone from candidates, or None when none is usable."""
    for name in candidates:
        if timezone_available(name):
            return ZoneInfo(name)
        logger.warning(f"Timezone {name!r} is not available on this system")
    return None


def _render(year: int, month: int, day: int, hour: int, minute: int, weekday_index: int,
            lang: str) -> FormattedDateTime:
    am, pm = _table_for(lang, DAY_PERIODS)
    hour12 = hour % 12 or 12
    period = am if hour < 12 else pm
    return FormattedDateTime(
        date=f"{day:02d}/{month:02d}/{year:04d}",
        time=f"{hour12}:{minute:02d} {period}",
        weekday=_table_for(lang, WEEKDAY_NAMES)[weekday_index],
    )


def _as_utc(instant: datetime) -> datetime:
    # Naive values come from the database and are UTC
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


class BusinessClock:
    """
    The salon's notion of local time.

    Uses the first available timezone from the candidate list; when none
    of them can be loaded it falls back to a fixed UTC offset.
    """

    def __init__(self, timezone_candidates: Iterable[str], utc_offset_minutes: int = 120):
        self.candidates = list(timezone_candidates)
        self.utc_offset_minutes = utc_offset_minutes
        self.zone = resolve_timezone(self.candidates)

        if self.zone is None:
            logger.warning(
                f"No timezone available from {self.candidates}; "
                f"using fixed offset of {utc_offset_minutes} minutes"
            )

    @classmethod
    def from_settings(cls, settings) -> "BusinessClock":
        return cls(settings.timezone_candidates, settings.utc_offset_minutes)

    @property
    def uses_offset_fallback(self) -> bool:
        return self.zone is None

    @property
    def tzinfo(self) -> tzinfo:
        if self.zone is not None:
            return self.zone
        return timezone(timedelta(minutes=self.utc_offset_minutes))

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def localize(self, instant: datetime) -> datetime:
        return _as_utc(instant).astimezone(self.tzinfo)

    def day_bounds(self, day: date) -> ReminderWindow:
        """Local midnight to 23:59:59.999 of the given calendar day."""
        return ReminderWindow(
            start=datetime.combine(day, time.min, tzinfo=self.tzinfo),
            end=datetime.combine(day, END_OF_DAY, tzinfo=self.tzinfo),
            day_key=day.isoformat(),
            weekday_index=sunday_based_weekday(day),
        )

    def tomorrow_window(self, now: Optional[datetime] = None) -> ReminderWindow:
        """Window covering the local calendar day after ``now``."""
        current = self.localize(now or self.now())
        return self.day_bounds(current.date() + timedelta(days=1))

    def format_instant(self, instant: datetime, lang: str = "ar") -> FormattedDateTime:
        """Render (date, time, weekday) for an instant in the salon's local time."""
        if self.zone is not None:
            local = _as_utc(instant).astimezone(self.zone)
            return _render(local.year, local.month, local.day, local.hour, local.minute,
                           sunday_based_weekday(local.date()), lang)

        # Fixed-offset path: shift the UTC wall clock and read the fields directly
        shifted = _as_utc(instant).replace(tzinfo=None) + timedelta(minutes=self.utc_offset_minutes)
        return _render(shifted.year, shifted.month, shifted.day, shifted.hour, shifted.minute,
                       sunday_based_weekday(shifted.date()), lang)
