# backend/composer.py
from typing import Dict, Optional

SERVICE_LABELS: Dict[str, Dict[str, str]] = {
    "ar": {
        "MANICURE": "مانيكير",
        "PEDICURE": "بيديكير",
        "BOTH_BASIC": "مانيكير و باديكير أساسي",
        "BOTH_FULL": "مانيكير و باديكير كامل",
        "EYEBROWS": "حواجب",
        "LASHES": "رموش",
    },
    "en": {
        "MANICURE": "Manicure",
        "PEDICURE": "Pedicure",
        "BOTH_BASIC": "Basic manicure & pedicure",
        "BOTH_FULL": "Full manicure & pedicure",
        "EYEBROWS": "Eyebrows",
        "LASHES": "Lashes",
    },
}

DEFAULT_TEMPLATES: Dict[str, str] = {
    "ar": (
        "مرحبا {client_name}\n"
        "منحب نذكركم بموعدكم {service} يوم {weekday} {date}\n"
        "الساعة {time}\n"
        "\n"
        "منستناكم ❤️"
    ),
    "en": (
        "Hello {client_name}\n"
        "Reminder for your {service} on {weekday} {date}\n"
        "at {time}\n"
        "\n"
        "We'll be waiting for you ❤️"
    ),
}


def _lang_key(lang: Optional[str]) -> str:
    return "ar" if lang == "ar" else "en"


def service_label(service_type, lang: str = "ar") -> str:
    """Localized label for a service type; unknown values come back unchanged."""
    raw = getattr(service_type, "value", service_type)
    return SERVICE_LABELS[_lang_key(lang)].get(raw, raw)


class ReminderComposer:
    """Builds reminder captions from a language-keyed template table"""

    def __init__(self, templates: Optional[Dict[str, str]] = None):
        self.templates = dict(DEFAULT_TEMPLATES)
        if templates:
            self.templates.update(templates)

    def compose(self, client_name: str, date: str, time: str, service: str, weekday: str,
                lang: str = "ar") -> str:
        template = self.templates.get(lang) or self.templates[_lang_key(lang)]
        return template.format(
            client_name=client_name,
            date=date,
            time=time,
            service=service,
            weekday=weekday,
        )


_default_composer = ReminderComposer()


def compose_reminder(client_name: str, date: str, time: str, service: str, weekday: str,
                     lang: str = "ar") -> str:
    return _default_composer.compose(client_name, date, time, service, weekday, lang)
