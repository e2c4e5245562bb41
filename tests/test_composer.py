from composer import ReminderComposer, compose_reminder, service_label
from models import ServiceType


class TestServiceLabel:

    def test_arabic_labels(self):
        assert service_label("MANICURE", "ar") == "مانيكير"
        assert service_label("BOTH_FULL", "ar") == "مانيكير و باديكير كامل"

    def test_enum_member(self):
        assert service_label(ServiceType.LASHES, "en") == "Lashes"

    def test_legacy_value_passes_through(self):
        assert service_label("BOTH", "ar") == "BOTH"


class TestComposeReminder:

    def test_arabic_caption_contains_every_field(self):
        caption = compose_reminder("Lina", "04/06/2024", "10:30 ص", "مانيكير", "الثلاثاء", "ar")

        assert caption.startswith("مرحبا Lina")
        for part in ("04/06/2024", "10:30 ص", "مانيكير", "الثلاثاء", "منستناكم"):
            assert part in caption

    def test_other_languages_use_english(self):
        caption = compose_reminder("Sara", "04/06/2024", "3:05 PM", "Pedicure", "Tuesday", "fr")

        assert caption.startswith("Hello Sara")
        assert "Reminder for your Pedicure on Tuesday 04/06/2024" in caption
        assert "at 3:05 PM" in caption

    def test_deterministic(self):
        args = ("Lina", "04/06/2024", "10:30 ص", "مانيكير", "الثلاثاء", "ar")
        assert compose_reminder(*args) == compose_reminder(*args)

    def test_braces_in_name_are_not_template_fields(self):
        caption = compose_reminder("{weekday}", "d", "t", "s", "w", "en")
        assert caption.startswith("Hello {weekday}")

    def test_custom_template(self):
        composer = ReminderComposer({"en": "{client_name}|{date}|{time}|{service}|{weekday}"})
        assert composer.compose("A", "B", "C", "D", "E", "en") == "A|B|C|D|E"
