from datetime import date, datetime, timedelta, timezone

import pytest

from timeutils import BusinessClock, resolve_timezone, timezone_available


def utc(value: str) -> datetime:
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


class TestTimezoneResolution:

    def test_unknown_zone_is_unavailable(self):
        assert timezone_available("Not/AZone") is False
        assert timezone_available("") is False

    def test_resolve_returns_none_without_usable_candidates(self):
        assert resolve_timezone(["Not/AZone", "Also/Missing"]) is None

    def test_clock_falls_back_to_offset(self):
        clock = BusinessClock(["Not/AZone"], utc_offset_minutes=120)
        assert clock.uses_offset_fallback
        assert clock.tzinfo.utcoffset(None) == timedelta(minutes=120)

    @pytest.mark.skipif(not timezone_available("Europe/London"), reason="tz data not installed")
    def test_first_available_candidate_wins(self):
        clock = BusinessClock(["Not/AZone", "Europe/London", "UTC"], utc_offset_minutes=120)
        assert not clock.uses_offset_fallback
        assert str(clock.tzinfo) == "Europe/London"


class TestTomorrowWindow:

    def test_window_with_zero_offset(self, utc_clock):
        window = utc_clock.tomorrow_window(utc("2024-06-01T10:00:00"))

        assert window.start == utc("2024-06-02T00:00:00")
        assert window.end == utc("2024-06-02T23:59:59.999000")
        assert window.day_key == "2024-06-02"
        assert window.weekday_index == 0  # Sunday

    def test_window_uses_local_calendar_day(self, offset_clock):
        # 22:30 UTC is already 00:30 on June 2nd at UTC+2
        window = offset_clock.tomorrow_window(utc("2024-06-01T22:30:00"))

        assert window.day_key == "2024-06-03"
        assert window.start == utc("2024-06-02T22:00:00")

    def test_day_bounds(self, offset_clock):
        bounds = offset_clock.day_bounds(date(2024, 6, 4))
        assert bounds.start.isoformat() == "2024-06-04T00:00:00+02:00"
        assert bounds.end.isoformat() == "2024-06-04T23:59:59.999000+02:00"
        assert bounds.weekday_index == 2


class TestFormatInstant:

    def test_arabic_offset_fallback(self, offset_clock):
        formatted = offset_clock.format_instant(utc("2024-06-04T08:30:00"), "ar")

        assert formatted.date == "04/06/2024"
        assert formatted.time == "10:30 ص"
        assert formatted.weekday == "الثلاثاء"

    def test_english_afternoon(self, offset_clock):
        formatted = offset_clock.format_instant(utc("2024-06-04T13:05:00"), "en")

        assert formatted.time == "3:05 PM"
        assert formatted.weekday == "Tuesday"

    def test_midnight_rolls_into_next_day(self, offset_clock):
        formatted = offset_clock.format_instant(utc("2024-06-04T22:00:00"), "ar")

        assert formatted.date == "05/06/2024"
        assert formatted.time == "12:00 ص"
        assert formatted.weekday == "الأربعاء"

    def test_naive_instant_is_utc(self, offset_clock):
        aware = offset_clock.format_instant(utc("2024-06-04T08:30:00"), "ar")
        naive = offset_clock.format_instant(datetime(2024, 6, 4, 8, 30), "ar")
        assert aware == naive

    def test_deterministic(self, offset_clock):
        instant = utc("2024-06-04T08:30:00")
        assert offset_clock.format_instant(instant, "ar") == offset_clock.format_instant(instant, "ar")

    @pytest.mark.skipif(not timezone_available("Europe/London"), reason="tz data not installed")
    def test_real_zone_applies_daylight_saving(self):
        clock = BusinessClock(["Europe/London"], utc_offset_minutes=0)
        formatted = clock.format_instant(utc("2024-06-04T08:30:00"), "en")

        assert formatted.time == "9:30 AM"
        assert formatted.date == "04/06/2024"
