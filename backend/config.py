# backend/config.py
import os
from functools import lru_cache
from typing import List, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_CORS_ORIGINS = (
    "https://lina-pure-nails.ps",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
)


def _split_csv(value: Optional[str], default: Tuple[str, ...]) -> Tuple[str, ...]:
    if value is None:
        return default
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """
    Application configuration.

    Built once from the environment and passed explicitly to the
    components that need it; nothing below reads os.environ directly.
    """

    database_url: str = "sqlite:///./nail_salon.db"

    # UltraMsg WhatsApp provider
    ultramsg_api_base: str = "https://api.ultramsg.com"
    ultramsg_instance_id: Optional[str] = None
    ultramsg_token: Optional[str] = None
    reminder_media_url: Optional[str] = None
    send_timeout_seconds: float = Field(15.0, gt=0)
    send_delay_seconds: float = Field(1.0, ge=0)
    min_phone_length: int = Field(11, ge=2)

    # Phone and locale
    default_country_code: str = "970"
    reminder_language: str = "ar"

    # Business clock
    business_timezone: str = "Asia/Hebron"
    fallback_timezones: Tuple[str, ...] = ("Asia/Gaza", "Asia/Jerusalem")
    utc_offset_minutes: int = Field(120, ge=-720, le=840)
    rest_day: int = Field(0, ge=0, le=6)  # 0 = Sunday
    reminder_hour: int = Field(20, ge=0, le=23)
    reminder_minute: int = Field(0, ge=0, le=59)
    scheduler_enabled: bool = True

    cors_origins: Tuple[str, ...] = DEFAULT_CORS_ORIGINS

    class Config:
        frozen = True

    @property
    def timezone_candidates(self) -> List[str]:
        """Configured zone first, then the fixed fallbacks."""
        candidates = [self.business_timezone] if self.business_timezone else []
        candidates.extend(tz for tz in self.fallback_timezones if tz not in candidates)
        return candidates

    @property
    def country_code_digits(self) -> str:
        return "".join(ch for ch in self.default_country_code if ch.isdigit())

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        values = {
            "database_url": os.getenv("DATABASE_URL"),
            "ultramsg_api_base": os.getenv("ULTRAMSG_API_BASE"),
            "ultramsg_instance_id": os.getenv("ULTRAMSG_INSTANCE_ID"),
            "ultramsg_token": os.getenv("ULTRAMSG_TOKEN"),
            "reminder_media_url": os.getenv("ULTRAMSG_IMAGE_URL"),
            "send_timeout_seconds": os.getenv("WHATSAPP_TIMEOUT_SECONDS"),
            "send_delay_seconds": os.getenv("REMINDER_SEND_DELAY_SECONDS"),
            "min_phone_length": os.getenv("MIN_PHONE_LENGTH"),
            "default_country_code": os.getenv("DEFAULT_COUNTRY_CODE"),
            "reminder_language": os.getenv("REMINDER_LANGUAGE"),
            "business_timezone": os.getenv("BUSINESS_TIMEZONE"),
            "utc_offset_minutes": os.getenv("UTC_OFFSET_MINUTES"),
            "rest_day": os.getenv("REST_DAY"),
            "reminder_hour": os.getenv("REMINDER_HOUR"),
            "reminder_minute": os.getenv("REMINDER_MINUTE"),
        }
        # Unset variables fall back to the field defaults
        values = {key: value for key, value in values.items() if value not in (None, "")}

        defaults = cls.model_fields
        values["fallback_timezones"] = _split_csv(
            os.getenv("FALLBACK_TIMEZONES"), defaults["fallback_timezones"].default
        )
        values["cors_origins"] = _split_csv(os.getenv("CORS_ORIGINS"), DEFAULT_CORS_ORIGINS)
        values["scheduler_enabled"] = _as_bool(os.getenv("SCHEDULER_ENABLED"), True)

        return cls(**values)


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
