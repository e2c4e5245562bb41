import pytest

from phone import is_dialable, normalize_phone


class TestNormalizePhone:

    def test_local_number_with_trunk_prefix(self):
        assert normalize_phone("0599123456", "970") == "+970599123456"

    def test_plus_prefixed_number_is_kept(self):
        assert normalize_phone("+1 555 0100", "970") == "+15550100"

    def test_empty_input(self):
        assert normalize_phone("", "970") == ""
        assert normalize_phone(None, "970") == ""

    def test_input_without_digits(self):
        assert normalize_phone("n/a", "970") == ""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("970599123456", "+970599123456"),  # country code already present
            ("15550100", "+15550100"),  # North American number
            ("599123456", "+970599123456"),  # country code omitted
            ("(059) 912-3456", "+970599123456"),
            ("  +972 59-912-3456 ", "+972599123456"),
        ],
    )
    def test_rules(self, raw, expected):
        assert normalize_phone(raw, "970") == expected

    @pytest.mark.parametrize("raw", ["0599123456", "+1 555 0100", "599123456", "00970599123456"])
    def test_idempotent(self, raw):
        once = normalize_phone(raw, "970")
        assert normalize_phone(once, "970") == once


class TestIsDialable:

    def test_normalized_number(self):
        assert is_dialable("+970599123456", 11)

    def test_missing_plus(self):
        assert not is_dialable("970599123456", 11)

    def test_too_short(self):
        assert not is_dialable("+97059", 11)

    def test_non_digits_after_plus(self):
        assert not is_dialable("+970 599 123", 5)

    def test_empty(self):
        assert not is_dialable("", 11)
