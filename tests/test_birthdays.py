"""Tests for kindred.core.birthdays — parsing, validation and priority."""

from datetime import date

from kindred.core.birthdays import (
    Birthday,
    is_birthday_today,
    normalize_birthday,
    parse_birthday,
    reminder_priority,
    validate_birthday,
)

from conftest import make_contact

TODAY = date(2026, 1, 13)


class TestParseBirthday:
    def test_month_day(self):
        assert parse_birthday("03-15") == Birthday(month=3, day=15)

    def test_full_date(self):
        assert parse_birthday("1990-01-13") == Birthday(month=1, day=13, year=1990)

    def test_leap_day_needs_leap_year(self):
        assert parse_birthday("2000-02-29") is not None
        assert parse_birthday("2001-02-29") is None
        assert parse_birthday("02-29") is not None

    def test_invalid_values(self):
        assert parse_birthday("") is None
        assert parse_birthday(None) is None
        assert parse_birthday("13-01") is None
        assert parse_birthday("04-31") is None
        assert parse_birthday("soon") is None


class TestValidateBirthday:
    def test_empty_is_valid(self):
        assert validate_birthday("  ").valid is True

    def test_slash_format(self):
        assert validate_birthday("3/15").valid is True

    def test_bad_format(self):
        result = validate_birthday("March 15")
        assert result.valid is False
        assert result.error == "Use format MM/DD"

    def test_bad_month(self):
        assert validate_birthday("13/01").error == "Month must be 1-12"

    def test_bad_day(self):
        assert validate_birthday("02/30").error == "Invalid day for this month"


class TestNormalizeBirthday:
    def test_pads(self):
        assert normalize_birthday("3/5") == "03-05"

    def test_invalid_becomes_empty(self):
        assert normalize_birthday("99/99") == ""
        assert normalize_birthday("") == ""


class TestIsBirthdayToday:
    def test_full_date_match(self):
        assert is_birthday_today(make_contact(birthday="1990-01-13"), TODAY) is True

    def test_month_day_match(self):
        assert is_birthday_today(make_contact(birthday="01-13"), TODAY) is True

    def test_no_match(self):
        assert is_birthday_today(make_contact(birthday="1990-06-15"), TODAY) is False

    def test_no_birthday(self):
        assert is_birthday_today(make_contact(birthday=None), TODAY) is False


class TestReminderPriority:
    def test_birthday_beats_standard(self):
        contact = make_contact(birthday="1985-01-13", next_reminder_at=0)
        assert reminder_priority(contact, TODAY) == "birthday"

    def test_standard_otherwise(self):
        contact = make_contact(birthday="1985-06-11", next_reminder_at=0)
        assert reminder_priority(contact, TODAY) == "standard"
